"""Web search engine adapter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from FedSearch.core.models import Match
from FedSearch.core.query import QuerySpec
from FedSearch.engines.web.client import WebSearchClient
from FedSearch.engines.web.parser import parse_nov
from FedSearch.engines.web.query import KIND
from FedSearch.utils.log import engine_log

if TYPE_CHECKING:
    from FedSearch.config import EngineConfig


@dataclass(slots=True)
class WebEngine:
    """`SearchEngine` backed by an HTTP endpoint answering in NOV format.

    Request parameters come from engine options: ``query_param`` (default
    ``query``), ``groups_param`` (``groups``), ``limit_param`` (``max``) and
    a static ``params`` mapping.
    """

    config: EngineConfig
    client: WebSearchClient
    kind: str = KIND

    @property
    def raw_queries(self) -> bool:
        return self.config.raw_queries

    def search(
        self,
        query: str,
        *,
        spec: QuerySpec,
        server: str,
        collections: Sequence[str] = (),
    ) -> list[Match]:
        """Send one request and read the NOV answer.

        Raises:
            EngineError: If the request fails after retries.
        """
        params = {str(key): str(value) for key, value in (self.config.option("params") or {}).items()}
        params[self.config.option("query_param", "query")] = query
        if collections:
            params[self.config.option("groups_param", "groups")] = ",".join(collections)
        if spec.limit:
            params[self.config.option("limit_param", "max")] = str(spec.limit)
        engine_log(self.kind, server).debug("GET %s params=%s", self.client.url, params)
        text = self.client.fetch(params)
        return list(parse_nov(text, server=server, collections=collections))

    def close(self) -> None:
        self.client.close()
