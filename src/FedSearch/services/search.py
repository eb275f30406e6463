"""Dispatch a query to every requested server and merge the matches."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Optional, Protocol, Sequence, Union

from FedSearch.core.errors import SearchParseError
from FedSearch.core.models import DispatchRequest, Match, SearchOutcome
from FedSearch.core.query import QuerySpec
from FedSearch.engines.transform import transform
from FedSearch.parsing.parser import QueryParser, prepare_query, strip_meta
from FedSearch.utils.log import log

if TYPE_CHECKING:
    from FedSearch.engines.registry import EngineRegistry


class SearchEngine(Protocol):
    """Protocol for one search back end bound to a server.

    Attributes:
        kind: Transform kind used to render parsed queries.
        raw_queries: When True the engine always receives the unparsed text.
    """

    kind: str
    raw_queries: bool

    def search(
        self,
        query: str,
        *,
        spec: QuerySpec,
        server: str,
        collections: Sequence[str],
    ) -> Sequence[Match]:
        """Run ``query`` and return matches for ``server``."""
        raise NotImplementedError

    def close(self) -> None:
        """Close resources held by the engine."""
        raise NotImplementedError


@dataclass(slots=True)
class SearchDispatcher:
    """Application service that searches collections across servers.

    Servers are searched one after another. A failing server is logged and
    reported in `SearchOutcome.failed_servers`; it never stops the others.
    """

    parser: QueryParser
    registry: EngineRegistry
    use_parsed_queries: bool = True

    def prepare(self, query: Union[str, QuerySpec]) -> QuerySpec:
        """Strip meta prefixes and parse, unless ``query`` is already prepared.

        Raises:
            SearchParseError: If the query cannot be parsed.
        """
        if isinstance(query, QuerySpec):
            return query
        return prepare_query(query, self.parser, use_parsed=self.use_parsed_queries)

    def render(self, engine: SearchEngine, spec: QuerySpec) -> str:
        """Return the query string ``engine`` should receive."""
        if engine.raw_queries or spec.raw or spec.parsed is None:
            return spec.query
        return transform(engine.kind, spec.parsed)

    def compile(self, query: Union[str, QuerySpec], servers: Optional[Sequence[str]] = None) -> dict[str, str]:
        """Render ``query`` for each server without searching.

        The query is parsed only if some server's engine needs the tree.

        Args:
            query: Query text or prepared spec.
            servers: Server names; None means every configured server.

        Returns:
            Mapping of server name to the string its engine would receive.

        Raises:
            SearchParseError: If a server needs the tree and the query cannot be parsed.
        """
        pending = _PendingQuery(query, self.parser, self.use_parsed_queries)
        names = list(servers) if servers else list(self.registry.server_names)
        rendered: dict[str, str] = {}
        for name in names:
            engine = self.registry.get(name)
            rendered[name] = self.render(engine, pending.spec_for(engine))
        return rendered

    def dispatch(self, request: DispatchRequest) -> SearchOutcome:
        """Search every server in ``request`` and merge the results.

        An empty ``request.collections`` searches every configured server.
        The query is parsed once, when the first engine that needs the tree
        is reached. Engines with ``raw_queries`` never wait on the parser: if
        parsing fails, only the servers that needed the tree fail.

        Args:
            request: Query and collections grouped by server.

        Returns:
            Merged matches, sorted by descending score and cut to the
            ``limit:`` meta value.

        Raises:
            SearchParseError: If the query cannot be parsed and no server
                could search without the tree. Engine failures are isolated
                and never raised.
        """
        pending = _PendingQuery(request.query, self.parser, self.use_parsed_queries)
        targets = dict(request.collections) or {name: () for name in self.registry.server_names}

        aggregated: list[Match] = []
        failed_servers: list[str] = []
        for server, collections in targets.items():
            groups = _strip_server(server, collections)
            try:
                engine = self.registry.get(server)
                spec = pending.spec_for(engine)
                query = self.render(engine, spec)
                log.debug("Search server=%s kind=%s query=%s", server, engine.kind, query)
                matches = engine.search(query, spec=spec, server=server, collections=groups)
            except Exception as error:  # noqa: BLE001 - server failure must be isolated
                failed_servers.append(server)
                log.warning("Search server failed: server=%s error=%s", server, error)
                continue

            log.info("Search server completed: server=%s count=%d", server, len(matches))
            aggregated.extend(matches)

        if pending.error is not None and not pending.bypassed:
            raise pending.error
        if failed_servers and len(failed_servers) == len(targets):
            log.warning("All search servers failed: %s", ", ".join(failed_servers))

        spec = pending.spec
        ranked = sorted(aggregated, key=lambda match: -match.score)
        counts = dict(Counter(match.collection for match in ranked)) if spec.count else {}
        if spec.limit is not None:
            ranked = ranked[: spec.limit]
        return SearchOutcome(
            spec=spec,
            matches=tuple(ranked),
            failed_servers=tuple(failed_servers),
            counts=counts,
        )

    def close(self) -> None:
        """Close every cached engine."""
        self.registry.close()


class _PendingQuery:
    """Meta-stripped query whose parse is deferred until an engine needs it.

    A `QuerySpec` passed in is final and never parsed again. A parse error is
    kept and re-raised for every later engine that needs the tree.
    """

    def __init__(self, query: Union[str, QuerySpec], parser: QueryParser, use_parsed: bool) -> None:
        self._parser = parser
        if isinstance(query, QuerySpec):
            self.spec = query
            self._wants_tree = False
        else:
            self.spec = strip_meta(query)
            self._wants_tree = use_parsed and not self.spec.raw and bool(self.spec.query)
        self.error: Optional[SearchParseError] = None
        self.bypassed = False

    def spec_for(self, engine: SearchEngine) -> QuerySpec:
        """Return the spec to render for ``engine``, parsing on first need.

        Raises:
            SearchParseError: If ``engine`` needs the tree and parsing failed.
        """
        if not self._wants_tree:
            return self.spec
        if engine.raw_queries:
            self.bypassed = True
            return self.spec
        if self.error is not None:
            raise self.error
        if self.spec.parsed is None:
            try:
                self.spec = replace(self.spec, parsed=self._parser.parse(self.spec.query))
            except SearchParseError as error:
                self.error = error
                raise
        return self.spec


def _strip_server(server: str, collections: Sequence[str]) -> tuple[str, ...]:
    """Accept both ``group`` and ``server:group`` collection names."""
    prefix = f"{server}:"
    return tuple(name[len(prefix) :] if name.startswith(prefix) else name for name in collections)
