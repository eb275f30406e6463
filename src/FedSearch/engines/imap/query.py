"""IMAP SEARCH compiler.

Renders the expression tree into RFC 3501 SEARCH criteria.

Rules
- ``or`` is prefix notation: ``OR a b``; a nested right-hand ``or`` is
  parenthesized.
- ``near`` is not supported by IMAP and is searched as ``or``.
- ``not`` of a mark becomes the ``UN*`` flag key (``UNSEEN``). ``mark:new``
  becomes ``NEW`` and ``not mark:new`` becomes ``OLD``.
- Marks map to flags: flag/flagged -> FLAGGED, read/seen -> SEEN,
  replied -> ANSWERED; deleted/draft/recent pass through. Unknown marks are dropped.
- Dates must be absolute: missing parts are filled in and moved back until
  the date is not in the future and the stated day exists.
- Keys IMAP knows are upper-cased (``SUBJECT foo``); others are searched as
  headers (``HEADER list-id foo``).
"""

from __future__ import annotations

import re
from calendar import monthrange
from contextvars import ContextVar
from datetime import date
from typing import Optional

from FedSearch.core.query import DateSpec, Group, KeyValue, Literal, Near, Not, Or, Query
from FedSearch.engines.transform import distribute_key, renders, transform, transform_expression
from FedSearch.parsing.values import fold_or

KIND = "imap"
FUZZY_KIND = "imap-fuzzy"
_KINDS = (KIND, FUZZY_KIND)

IMAP_SEARCH_KEYS = frozenset(
    {
        "body", "cc", "bcc", "from", "header", "keyword", "larger", "smaller",
        "subject", "text", "to", "uid", "x-gm-raw", "answered", "before",
        "deleted", "draft", "flagged", "on", "since", "recent", "seen",
        "sentbefore", "senton", "sentsince", "unanswered", "undeleted",
        "undraft", "unflagged", "unkeyword", "unseen", "all", "old", "new",
    }
)

IMAP_DATE_KEYS = frozenset({"before", "since", "on", "sentbefore", "senton", "sentsince"})

_KEY_RENAMES = {
    "date": "on",
    "tag": "keyword",
    "sender": "from",
    "attachment": "body",
}

_FLAG_ALIASES = {
    "flag": "flagged",
    "read": "seen",
    "replied": "answered",
}

_IMAP_FLAGS = frozenset({"seen", "answered", "deleted", "draft", "flagged", "recent"})

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

_RE_SIZE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(kb?|mb?)?\s*$", re.IGNORECASE)
_RE_WILDCARD = re.compile(r"^\*|\*$")

# Day that partial dates are resolved against while one query compiles.
_TODAY: ContextVar[Optional[date]] = ContextVar("imap_today", default=None)


def compile_imap_query(query: Query, *, fuzzy: bool = False, today: Optional[date] = None) -> str:
    """Compile a parsed query into IMAP SEARCH criteria.

    Args:
        query: Parsed expression tree.
        fuzzy: Whether the server advertises the SEARCH=FUZZY extension.
        today: Day partial dates are resolved against; defaults to the
            current date.

    Returns:
        Criteria string, ``ALL`` when nothing survives.
    """
    kind = FUZZY_KIND if fuzzy else KIND
    token = _TODAY.set(today)
    try:
        return transform(kind, query) or "ALL"
    finally:
        _TODAY.reset(token)


def handle_flag(flag: str) -> Optional[str]:
    """Return the IMAP flag search key for a mark name, or None if unknown."""
    name = _FLAG_ALIASES.get(flag.lower(), flag.lower())
    if name in _IMAP_FLAGS:
        return name.upper()
    return None


def handle_string(value: str) -> str:
    """Quote values IMAP cannot take as atoms (whitespace or non-ASCII)."""
    if value.startswith('"'):
        return value
    if not value.isascii() or any(char.isspace() or char in '()"\\' for char in value) or not value:
        return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return value


def handle_date(value: DateSpec, today: date | None = None) -> str:
    """Turn a possibly-partial date into an absolute IMAP date (``5-Mar-2020``).

    Missing day becomes 1, missing month/year the current month/year. If the
    result lies in the future, or the given day does not exist in that month,
    it is moved back by a month (month not given) or a year (year not given)
    until it fits. The stated day is never changed; only a fully stated
    impossible date (31 February 2023) is clamped to the month's last day.
    """
    today = today or _TODAY.get() or date.today()
    day = value.day or 1
    month = value.month or today.month
    year = value.year or today.year

    result = _exact_date(year, month, day)
    while result is None or result > today:
        if value.month is None:
            month -= 1
            if month == 0:
                month, year = 12, year - 1
        elif value.year is None:
            year -= 1
        else:
            break
        result = _exact_date(year, month, day)
    if result is None:
        result = _safe_date(year, month, day)
    return f"{result.day}-{_MONTHS[result.month - 1]}-{result.year}"


def handle_size(value: str) -> Optional[str]:
    """Convert ``10k`` / ``2mb`` style sizes to a byte count."""
    match = _RE_SIZE.match(value)
    if not match:
        return None
    number = float(match.group(1))
    unit = (match.group(2) or "").lower()
    if unit.startswith("k"):
        number *= 1024
    elif unit.startswith("m"):
        number *= 1048576
    return str(int(number))


def _safe_date(year: int, month: int, day: int) -> date:
    return date(year, month, min(day, monthrange(year, month)[1]))


def _exact_date(year: int, month: int, day: int) -> Optional[date]:
    if day > monthrange(year, month)[1]:
        return None
    return date(year, month, day)


def _fuzzy(kind: str) -> bool:
    return kind == FUZZY_KIND


@renders(_KINDS, Or)
def _or(kind: str, node: Or) -> Optional[str]:
    left = transform_expression(kind, node.left)
    right = transform_expression(kind, node.right)
    if left and right:
        if isinstance(node.right, Or):
            right = f"({right})"
        return f"OR {left} {right}"
    return left or right


@renders(_KINDS, Near)
def _near(kind: str, node: Near) -> Optional[str]:
    return transform_expression(kind, Or(node.left, node.right))


@renders(_KINDS, Not)
def _not(kind: str, node: Not) -> Optional[str]:
    operand = node.operand
    if isinstance(operand, KeyValue) and operand.key == "mark" and isinstance(operand.value, str):
        if operand.value.lower() == "new":
            return "OLD"
        flag = handle_flag(operand.value)
        return f"UN{flag}" if flag else None
    inner = transform_expression(kind, operand)
    if not inner:
        return None
    if isinstance(operand, (Or, Group)) and not inner.startswith("("):
        inner = f"({inner})"
    return f"NOT {inner}"


@renders(_KINDS, Group)
def _group(kind: str, node: Group) -> Optional[str]:
    inner = transform(kind, node.items)
    return f"({inner})" if inner else None


@renders(_KINDS, Literal)
def _literal(kind: str, node: Literal) -> Optional[str]:
    if node.is_regex:
        return None
    return _keyword(kind, "text", node.text)


@renders(_KINDS, KeyValue)
def _key_value(kind: str, node: KeyValue) -> Optional[str]:
    if isinstance(node.value, Group):
        return transform_expression(kind, distribute_key(node.key, node.value))

    key = _KEY_RENAMES.get(node.key, node.key)
    value = node.value

    if key == "mark":
        if not isinstance(value, str):
            return None
        if value.lower() == "new":
            return "NEW"
        return handle_flag(value)
    if key in IMAP_DATE_KEYS:
        # Dates the parser could not read stay strings; IMAP cannot use them.
        if not isinstance(value, DateSpec):
            return None
        return f"{key.upper()} {handle_date(value)}"
    if isinstance(value, DateSpec):
        return None
    if key in {"larger", "smaller", "size"}:
        size = handle_size(value)
        if size is None:
            return None
        return f"{'SMALLER' if key == 'smaller' else 'LARGER'} {size}"
    if key == "recipient":
        return transform_expression(kind, fold_or([KeyValue(k, value) for k in ("to", "cc", "bcc")]))
    if key == "address":
        return transform_expression(kind, fold_or([KeyValue(k, value) for k in ("from", "to", "cc", "bcc")]))
    return _keyword(kind, key, value)


def _keyword(kind: str, key: str, value: str) -> str:
    prefix = ""
    if _RE_WILDCARD.search(value):
        value = _RE_WILDCARD.sub("", value)
        if _fuzzy(kind):
            prefix = "FUZZY "
    if key in IMAP_SEARCH_KEYS:
        return f"{prefix}{key.upper()} {handle_string(value)}"
    return f"{prefix}HEADER {key} {handle_string(value)}"

