"""Engine registry: builders per engine kind and a lazily-filled per-server cache."""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from FedSearch.core.errors import SearchConfigError
from FedSearch.utils.log import log

if TYPE_CHECKING:
    from FedSearch.config import ServerConfig
    from FedSearch.engines.indexed.parser import ArticleResolver
    from FedSearch.services.search import SearchEngine

EngineBuilder = Callable[["ServerConfig", "Optional[ArticleResolver]"], "SearchEngine"]


def build_engine(server: ServerConfig, *, article_resolver: Optional[ArticleResolver] = None) -> SearchEngine:
    """Build the engine configured for ``server``.

    Args:
        server: Resolved server configuration.
        article_resolver: Maps non-numeric file names to item ids for
            indexed engines.

    Returns:
        SearchEngine: Ready-to-use engine for this server.

    Raises:
        SearchConfigError: If the engine kind is not registered.
    """
    builder = _engine_builders().get(server.engine.kind)
    if builder is None:
        raise SearchConfigError(f"Unsupported engine for server {server.name}: {server.engine.kind}")
    return builder(server, article_resolver)


def supported_engine_kinds() -> tuple[str, ...]:
    """Return every engine kind the registry can build, in registry order."""
    return tuple(_engine_builders().keys())


def _engine_builders() -> dict[str, EngineBuilder]:
    return {
        "notmuch": _build_indexed,
        "mairix": _build_indexed,
        "namazu": _build_indexed,
        "swish-e": _build_indexed,
        "swish++": _build_indexed,
        "find-grep": _build_indexed,
        "imap": _build_imap,
        "web": _build_web,
    }


def _build_indexed(server: ServerConfig, article_resolver: Optional[ArticleResolver]) -> SearchEngine:
    from FedSearch.engines.indexed.client import ProcessRunner
    from FedSearch.engines.indexed.source import IndexedEngine, profile_for

    config = server.engine
    return IndexedEngine(
        config=config,
        profile=profile_for(config.kind),
        runner=ProcessRunner(engine=config.kind, timeout=config.timeout),
        article_resolver=article_resolver,
    )


def _build_imap(server: ServerConfig, article_resolver: Optional[ArticleResolver]) -> SearchEngine:
    del article_resolver
    from FedSearch.engines.imap.client import ImapSession
    from FedSearch.engines.imap.source import ImapEngine

    return ImapEngine(config=server.engine, session=ImapSession.from_config(server.engine))


def _build_web(server: ServerConfig, article_resolver: Optional[ArticleResolver]) -> SearchEngine:
    del article_resolver
    from FedSearch.engines.web.client import WebSearchClient
    from FedSearch.engines.web.source import WebEngine

    return WebEngine(config=server.engine, client=WebSearchClient.from_config(server.engine))


@dataclass(slots=True)
class EngineRegistry:
    """Per-server engine cache.

    Engines are built on first use and reused afterwards. `reload` drops the
    cache (closing cached engines) so the next lookup rebuilds from config.

    Attributes:
        servers: Configured servers in order.
        article_resolver: Passed to indexed engines.
        builder: Engine factory; replaced in tests.
    """

    servers: Sequence[ServerConfig]
    article_resolver: Optional[ArticleResolver] = None
    builder: Callable[..., SearchEngine] = build_engine
    _cache: dict[str, SearchEngine] = field(default_factory=dict, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def server_names(self) -> tuple[str, ...]:
        return tuple(server.name for server in self.servers)

    def server(self, name: str) -> ServerConfig:
        for server in self.servers:
            if server.name == name:
                return server
        raise SearchConfigError(f"Unknown server: {name}")

    def get(self, name: str) -> SearchEngine:
        """Return the cached engine for server ``name``, building it if needed.

        Raises:
            SearchConfigError: If the server is unknown or its engine cannot be built.
        """
        with self._lock:
            engine = self._cache.get(name)
            if engine is None:
                server = self.server(name)
                engine = self.builder(server, article_resolver=self.article_resolver)
                log.debug("Built %s engine for server %s", server.engine.kind, name)
                self._cache[name] = engine
            return engine

    def reload(self, servers: Optional[Sequence[ServerConfig]] = None) -> None:
        """Close and forget cached engines, optionally swapping the server list."""
        with self._lock:
            cached = list(self._cache.items())
            self._cache.clear()
            if servers is not None:
                self.servers = servers
        _close_all(cached)

    def close(self) -> None:
        self.reload()


def _close_all(engines: Sequence[tuple[str, SearchEngine]]) -> None:
    failed: list[str] = []
    for name, engine in engines:
        close_func = getattr(engine, "close", None)
        if not callable(close_func):
            continue
        try:
            close_func()
        except Exception as error:  # noqa: BLE001 - close failure must be isolated
            failed.append(name)
            log.warning("Engine close failed: server=%s error=%s", name, error)
    if failed:
        log.warning("Engine cache cleared with close failures: %s", ", ".join(failed))

