"""Query rendering for web search endpoints.

Default semantics, except that only author and free-text searches exist:
from/sender become ``author:``, subject and body are plain terms, and any
other key is dropped.
"""

from __future__ import annotations

from typing import Optional

from FedSearch.core.query import DateSpec, Group, KeyValue
from FedSearch.engines.transform import distribute_key, quote_if_spaced, renders, transform_expression

KIND = "web"

_AUTHOR_KEYS = frozenset({"from", "sender"})
_TEXT_KEYS = frozenset({"subject", "body", "text"})


@renders(KIND, KeyValue)
def _key_value(kind: str, node: KeyValue) -> Optional[str]:
    if isinstance(node.value, Group):
        return transform_expression(kind, distribute_key(node.key, node.value))
    if isinstance(node.value, DateSpec):
        return None
    if node.key in _AUTHOR_KEYS:
        return f"author:{quote_if_spaced(node.value)}"
    if node.key in _TEXT_KEYS:
        return quote_if_spaced(node.value)
    return None
