"""Search service layer for FedSearch.

Provides the dispatcher and a factory that wires it from configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

from FedSearch.engines.registry import EngineRegistry
from FedSearch.parsing.parser import QueryParser
from FedSearch.services.search import SearchDispatcher, SearchEngine

if TYPE_CHECKING:
    from FedSearch.config import AppConfig
    from FedSearch.engines.indexed.parser import ArticleResolver
    from FedSearch.parsing.values import ContactSource


def create_search_dispatcher(
    config: AppConfig,
    contact_sources: Sequence[ContactSource] = (),
    article_resolver: Optional[ArticleResolver] = None,
) -> SearchDispatcher:
    """Create a dispatcher for the configured servers.

    Args:
        config: Application configuration.
        contact_sources: Contact lookups consulted before the static
            ``query.contacts`` table.
        article_resolver: Maps maildir file names to item ids for indexed engines.

    Returns:
        Configured SearchDispatcher instance.
    """
    sources = list(contact_sources)
    if config.query.contacts:
        sources.append(config.query.contacts)
    parser = QueryParser(
        vocabulary=config.query.expandable_keys,
        date_keys=config.query.date_keys,
        contact_sources=tuple(sources),
    )
    registry = EngineRegistry(servers=config.servers, article_resolver=article_resolver)
    return SearchDispatcher(
        parser=parser,
        registry=registry,
        use_parsed_queries=config.query.use_parsed_queries,
    )


__all__ = [
    "SearchDispatcher",
    "SearchEngine",
    "create_search_dispatcher",
]
