"""Server and engine configuration.

Two layers feed every server's engine settings:

- ``engines``: global defaults keyed by engine kind;
- ``servers[i]``: per-server overrides, which win.

The engine kind itself comes from ``servers[i].engine`` or, when absent, from
``default_engines[<backend type>]``.

Example::

    engines:
      notmuch: {program: notmuch, switches: ["--sort=newest-first"]}
    default_engines:
      maildir: notmuch
    servers:
      - name: mail
        type: maildir
        remove_prefix: ~/Mail
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from FedSearch.config.common import (
    expect_bool,
    expect_float,
    expect_mapping,
    expect_optional_str,
    expect_str,
    expect_str_list,
    get_required_value,
)
from FedSearch.core.errors import SearchConfigError
from FedSearch.engines.registry import supported_engine_kinds

_ENGINE_FIELDS = frozenset(
    {"program", "switches", "remove_prefix", "config_file", "index_dir", "raw_queries", "timeout"}
)
_SERVER_FIELDS = frozenset({"name", "type", "engine"})


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Resolved settings for one engine instance.

    Attributes:
        kind: Engine kind, e.g. ``notmuch`` or ``imap``.
        program: Executable to run; None uses the engine's default.
        switches: Extra command-line switches.
        remove_prefix: Directory stripped from result paths.
        config_file: Engine configuration/database file.
        index_dir: Index location (namazu index dir, swish-e index file).
        raw_queries: Send the unparsed query text instead of a rendered one.
        timeout: Seconds before a process or network call is abandoned.
        options: Engine-specific extras (IMAP host, web url, ...).
    """

    kind: str
    program: Optional[str] = None
    switches: tuple[str, ...] = ()
    remove_prefix: Optional[str] = None
    config_file: Optional[str] = None
    index_dir: Optional[str] = None
    raw_queries: bool = False
    timeout: Optional[float] = None
    options: Mapping[str, Any] = field(default_factory=dict)

    def option(self, name: str, default: Any = None) -> Any:
        return self.options.get(name, default)


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """One configured server.

    Attributes:
        name: Server name as used in collection names (``name:group``).
        backend_type: Storage type (``maildir``, ``mh``, ``imap``, ``nntp``...).
        engine: Resolved engine settings.
    """

    name: str
    backend_type: str
    engine: EngineConfig


def load_servers(raw: Mapping[str, Any]) -> tuple[ServerConfig, ...]:
    """Load ``servers`` and resolve each one's engine settings.

    Args:
        raw: Root configuration mapping.

    Returns:
        Servers in configured order.

    Raises:
        TypeError: If a section or value has the wrong type.
        ValueError: If a required key is missing.
        SearchConfigError: If a server's engine kind cannot be resolved.
    """
    engine_defaults = expect_mapping(raw.get("engines") or {}, "engines")
    default_engines = expect_mapping(raw.get("default_engines") or {}, "default_engines")
    servers_obj = raw.get("servers") or []
    if not isinstance(servers_obj, list):
        raise TypeError("servers must be a list")

    servers: list[ServerConfig] = []
    for idx, item in enumerate(servers_obj):
        prefix = f"servers[{idx}]"
        entry = expect_mapping(item, prefix)
        name = expect_str(get_required_value(entry, "name", f"{prefix}.name"), f"{prefix}.name")
        backend_type = expect_str(get_required_value(entry, "type", f"{prefix}.type"), f"{prefix}.type")

        kind = entry.get("engine") or default_engines.get(backend_type)
        if kind is None:
            raise SearchConfigError(
                f"{prefix}.engine is not set and default_engines has no entry for type {backend_type!r}"
            )
        kind = expect_str(kind, f"{prefix}.engine")

        base = expect_mapping(engine_defaults.get(kind) or {}, f"engines.{kind}")
        overrides = {key: value for key, value in entry.items() if key not in _SERVER_FIELDS}
        merged = {**base, **overrides}
        servers.append(
            ServerConfig(
                name=name,
                backend_type=backend_type,
                engine=parse_engine_config(kind, merged, prefix),
            )
        )
    return tuple(servers)


def parse_engine_config(kind: str, section: Mapping[str, Any], config_key: str) -> EngineConfig:
    """Build an `EngineConfig` from one merged settings mapping.

    Keys that are not `EngineConfig` fields are kept in ``options``.
    """
    switches = section.get("switches") or []
    timeout = section.get("timeout")
    options = {key: value for key, value in section.items() if key not in _ENGINE_FIELDS}
    return EngineConfig(
        kind=kind,
        program=expect_optional_str(section.get("program"), f"{config_key}.program"),
        switches=tuple(expect_str_list(switches, f"{config_key}.switches")),
        remove_prefix=expect_optional_str(section.get("remove_prefix"), f"{config_key}.remove_prefix"),
        config_file=expect_optional_str(section.get("config_file"), f"{config_key}.config_file"),
        index_dir=expect_optional_str(section.get("index_dir"), f"{config_key}.index_dir"),
        raw_queries=expect_bool(section.get("raw_queries", False), f"{config_key}.raw_queries"),
        timeout=expect_float(timeout, f"{config_key}.timeout") if timeout is not None else None,
        options=MappingProxyType(options),
    )


def check_servers(servers: tuple[ServerConfig, ...]) -> None:
    """Validate server constraints.

    Raises:
        ValueError: On duplicate or empty names, or non-positive timeouts.
        SearchConfigError: On an engine kind nobody can build.
    """
    known = set(supported_engine_kinds())
    seen: set[str] = set()
    for server in servers:
        if not server.name.strip() or ":" in server.name:
            raise ValueError(f"servers.{server.name!r}: name must be non-empty and contain no ':'")
        if server.name in seen:
            raise ValueError(f"servers has duplicate name: {server.name}")
        seen.add(server.name)
        if server.engine.kind not in known:
            raise SearchConfigError(
                f"servers.{server.name}.engine: unknown engine {server.engine.kind!r}, expected one of {sorted(known)}"
            )
        if server.engine.timeout is not None and server.engine.timeout <= 0:
            raise ValueError(f"servers.{server.name}.timeout must be positive")
