from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Sequence, Union

from FedSearch.core.query import QuerySpec


@dataclass(frozen=True, slots=True)
class Match:
    """One normalized search hit.

    Attributes:
        collection: Fully-qualified collection name (``server:group``).
        item_id: Item number inside the collection.
        score: Relevance, larger is better.
    """

    collection: str
    item_id: int
    score: float


@dataclass(frozen=True, slots=True)
class DispatchRequest:
    """Query plus the collections to search, grouped by server.

    An empty collection list for a server means "whatever the engine finds".
    """

    query: Union[str, QuerySpec]
    collections: Mapping[str, Sequence[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        frozen = {server: tuple(groups) for server, groups in self.collections.items()}
        object.__setattr__(self, "collections", MappingProxyType(frozen))


@dataclass(frozen=True, slots=True)
class SearchOutcome:
    """Merged result of one dispatch.

    Attributes:
        spec: Prepared query that was dispatched.
        matches: Matches sorted by descending score.
        failed_servers: Servers whose engine raised; they contributed nothing.
        counts: Per-collection match counts, filled when ``spec.count`` is set.
    """

    spec: QuerySpec
    matches: tuple[Match, ...]
    failed_servers: tuple[str, ...] = ()
    counts: Mapping[str, int] = field(default_factory=dict)
