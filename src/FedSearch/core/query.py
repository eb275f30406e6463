from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Optional, Union


class DateSpec(NamedTuple):
    """Normalized date value as (day, month, year).

    Any component may be None when the user did not specify it, e.g.
    ``"may"`` becomes ``DateSpec(None, 5, None)``.
    """

    day: Optional[int]
    month: Optional[int]
    year: Optional[int]


@dataclass(frozen=True, slots=True)
class Literal:
    """Bare search string.

    Quoted input is stored without its quotes. Slash-delimited regular
    expressions keep their slashes so engines can recognize them.
    """

    text: str

    @property
    def is_regex(self) -> bool:
        return len(self.text) > 2 and self.text.startswith("/") and self.text.endswith("/")


@dataclass(frozen=True, slots=True)
class And:
    """Marker left by an explicit ``and`` keyword.

    Conjunction is already implied by sequence, so engines render it to nothing.
    """


@dataclass(frozen=True, slots=True)
class Group:
    """Parenthesized sub-query: an ordered, implicitly AND-ed sequence."""

    items: tuple["Expression", ...] = ()


@dataclass(frozen=True, slots=True)
class KeyValue:
    """A ``key:value`` search term.

    Attributes:
        key: Expanded keyword name (e.g. "subject").
        value: Raw string, a normalized `DateSpec` for date keys, or a
            `Group` for parenthesized values such as ``to:(alice or bob)``.
    """

    key: str
    value: Union[str, DateSpec, Group]


@dataclass(frozen=True, slots=True)
class Or:
    left: "Expression"
    right: "Expression"


@dataclass(frozen=True, slots=True)
class Not:
    operand: "Expression"


@dataclass(frozen=True, slots=True)
class Near:
    """Proximity search; both operands are always `Literal`."""

    left: Literal
    right: Literal


Expression = Union[Literal, And, Group, KeyValue, Or, Not, Near]
Query = tuple[Expression, ...]


@dataclass(frozen=True, slots=True)
class QuerySpec:
    """Prepared search request: the original text plus parsed form and meta keys.

    Attributes:
        query: Query text with meta prefixes removed.
        parsed: Parsed expression tree, or None when parsing was skipped.
        thread: Whether whole threads should be returned.
        limit: Maximum number of merged matches.
        raw: Send the query text verbatim to every engine.
        count: Also report per-collection match counts.
    """

    query: str
    parsed: Optional[Query] = None
    thread: bool = False
    limit: Optional[int] = None
    raw: bool = False
    count: bool = False
