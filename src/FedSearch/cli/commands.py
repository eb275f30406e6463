"""Command implementations for the FedSearch CLI.

Business logic for each command, separated from click parameter handling.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from FedSearch.core.errors import SearchConfigError
from FedSearch.core.models import DispatchRequest, SearchOutcome
from FedSearch.core.query import QuerySpec
from FedSearch.renderers import OutputWriter
from FedSearch.services.search import SearchDispatcher
from FedSearch.utils.log import log


def build_request(query: str, collections: Sequence[str], servers: Sequence[str]) -> DispatchRequest:
    """Group ``server:group`` options (and bare ``-s server`` options) by server.

    Raises:
        SearchConfigError: If a collection is not qualified with a server.
    """
    grouped: dict[str, list[str]] = {}
    for name in collections:
        server, sep, group = name.partition(":")
        if not sep or not server or not group:
            raise SearchConfigError(f"Collection must be written server:group, got {name!r}")
        grouped.setdefault(server, []).append(group)
    for server in servers:
        grouped.setdefault(server, [])
    return DispatchRequest(query=query, collections=grouped)


@dataclass(slots=True)
class SearchCommand:
    """Run one dispatch and hand the outcome to the output writer."""

    dispatcher: SearchDispatcher
    output_writer: OutputWriter

    def execute(self, query: str, *, collections: Sequence[str] = (), servers: Sequence[str] = ()) -> SearchOutcome:
        request = build_request(query, collections, servers)
        log.debug("Dispatching query=%r servers=%s", query, list(request.collections) or "all")
        outcome = self.dispatcher.dispatch(request)
        log.info("Found %d matches", len(outcome.matches))
        self.output_writer.write_outcome(outcome)
        return outcome


@dataclass(slots=True)
class ParseCommand:
    """Show how a query is parsed."""

    dispatcher: SearchDispatcher

    def execute(self, query: str) -> QuerySpec:
        spec = self.dispatcher.prepare(query)
        log.info("query=%s", spec.query)
        log.info("thread=%s limit=%s raw=%s count=%s", spec.thread, spec.limit, spec.raw, spec.count)
        if spec.parsed is None:
            log.info("(not parsed)")
            return spec
        for idx, expr in enumerate(spec.parsed, start=1):
            log.info("%d. %r", idx, expr)
        return spec


@dataclass(slots=True)
class CompileCommand:
    """Show the string each server's engine would receive."""

    dispatcher: SearchDispatcher

    def execute(self, query: str, *, servers: Sequence[str] = ()) -> dict[str, str]:
        rendered = self.dispatcher.compile(query, servers or None)
        for server, text in rendered.items():
            log.info("%s: %s", server, text)
        return rendered
