from __future__ import annotations

"""Application config orchestration and YAML loading entrypoints."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from FedSearch.config.output import OutputConfig, check_output, load_output
from FedSearch.config.query import QueryConfig, check_query, load_query
from FedSearch.config.runtime import RuntimeConfig, check_runtime, load_runtime
from FedSearch.config.servers import ServerConfig, check_servers, load_servers
from FedSearch.core.errors import SearchConfigError

DEFAULT_CONFIG_PATH = Path("config/default.yml")


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application root configuration."""

    runtime: RuntimeConfig
    query: QueryConfig
    servers: tuple[ServerConfig, ...]
    output: OutputConfig

    def server(self, name: str) -> ServerConfig:
        """Return the server called ``name``.

        Raises:
            SearchConfigError: If no such server is configured.
        """
        for server in self.servers:
            if server.name == name:
                return server
        raise SearchConfigError(f"Unknown server: {name}")


def parse_config_dict(raw: Mapping[str, Any]) -> AppConfig:
    """Parse a merged mapping into a validated AppConfig."""
    runtime = load_runtime(raw)
    query = load_query(raw)
    servers = load_servers(raw)
    output = load_output(raw)

    check_runtime(runtime)
    check_query(query)
    check_servers(servers)
    check_output(output)

    return AppConfig(runtime=runtime, query=query, servers=servers, output=output)


def load_config(path: Path) -> AppConfig:
    """Load one YAML config file without default merge."""
    return load_config_with_defaults(path, default_path=path)


def load_config_with_defaults(config_path: Path, default_path: Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    """Load config by deep-merging ``config_path`` over ``default_path``.

    A missing default file is treated as empty so a standalone config still loads.
    """
    base = parse_yaml(default_path.read_text(encoding="utf-8")) if default_path.exists() else {}
    if config_path == default_path:
        return parse_config_dict(base)
    override = parse_yaml(config_path.read_text(encoding="utf-8"))
    return parse_config_dict(merge_config_dicts(base, override))


def parse_yaml(text: str) -> dict[str, Any]:
    """Parse raw YAML text into a mapping."""
    data = yaml.safe_load(text) or {}
    if not isinstance(data, Mapping):
        raise ValueError("Config root must be a mapping/object")
    return dict(data)


def merge_config_dicts(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge two config mappings; lists (such as ``servers``) are replaced whole."""
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], Mapping) and isinstance(value, Mapping):
            merged[key] = merge_config_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged
