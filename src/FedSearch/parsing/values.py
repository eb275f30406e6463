"""Value normalizers used while reducing ``key:value`` pairs.

- Dates: absolute, partial, weekday and relative (``3d``, ``2w``) values are
  turned into a `DateSpec`. Unreadable values are returned untouched.
- Marks: single-character mark shorthands become canonical mark names.
- Contacts: a contact name expands to sender/recipient terms for each of
  its addresses, via injected lookup sources.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from datetime import date, datetime, timedelta
from typing import Sequence, Union

from dateutil import parser as dt_parser

from FedSearch.core.errors import SearchParseError
from FedSearch.core.query import DateSpec, Expression, KeyValue, Or

ContactSource = Union[Callable[[str], Sequence[str]], Mapping[str, Sequence[str]]]

_RE_RELATIVE = re.compile(r"^(\d+)([dwmy])$", re.IGNORECASE)
_RE_TOKEN_SPLIT = re.compile(r"[\s,]+")

# Approximate unit lengths; months and years are not calendar-accurate.
_RELATIVE_UNIT_DAYS = {"d": 1, "w": 7, "m": 30, "y": 365}

# Two defaults that differ in every date field; whatever comes out identical
# from both parses was stated by the user. Both months have 31 days and both
# years are leap years, so no explicitly given day can fail to fit.
_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2004, 3, 2)

_WEEKDAY_INFO = dt_parser.parserinfo()

MARK_NAMES = {
    "!": "flagged",
    "R": "read",
    "A": "replied",
    "N": "recent",
}


def parse_date(value: str, reference: datetime | date | None = None) -> DateSpec | str:
    """Interpret ``value`` as a date specification.

    Args:
        value: Raw date string, e.g. ``2020/03/05``, ``march``, ``monday``, ``3w``.
        reference: Instant that relative values are resolved against.
            Defaults to now.

    Returns:
        A `DateSpec` whose unspecified components are None, or ``value``
        itself when no date component could be read.
    """
    text = value.strip().replace("/", "-")
    today = _as_date(reference)

    relative = _RE_RELATIVE.match(text)
    if relative:
        amount = int(relative.group(1))
        unit = relative.group(2).lower()
        return _to_spec(today - timedelta(days=amount * _RELATIVE_UNIT_DAYS[unit]))

    weekday, remainder = _split_weekday(text)
    spec = _parse_components(remainder) if remainder else None

    if weekday is not None and (spec is None or spec.day is None):
        days_back = (today.weekday() - weekday) % 7
        return _to_spec(today - timedelta(days=days_back))
    if spec is None:
        return value
    return spec


def parse_mark(mark: str) -> str:
    """Map a single-character mark to its canonical name.

    Any other value (including full names such as ``seen``) is returned unchanged.
    """
    if len(mark) == 1:
        return MARK_NAMES.get(mark, mark)
    return mark


def parse_contact(key: str, value: str, sources: Sequence[ContactSource]) -> Expression:
    """Expand a contact name into sender/recipient search terms.

    Args:
        key: One of ``contact``, ``contact-from``, ``contact-to``.
        value: Contact name as typed.
        sources: Lookup sources consulted in order; the first non-empty
            result wins.

    Returns:
        A single `KeyValue` or a right-nested `Or` over all addresses.

    Raises:
        SearchParseError: If no lookup sources are configured.
    """
    if not sources:
        raise SearchParseError(f"No contact lookup sources are configured for {key}:{value}")

    addresses: list[str] = []
    for source in sources:
        found = _lookup(source, value)
        if found:
            addresses = found
            break
    if not addresses:
        addresses = [value]

    if len(addresses) == 1 and key == "contact-from":
        return KeyValue("sender", addresses[0])

    terms: list[Expression] = []
    for address in addresses:
        if key == "contact-from":
            terms.append(KeyValue("sender", address))
        elif key == "contact-to":
            terms.append(KeyValue("recipient", address))
        else:
            terms.append(Or(KeyValue("recipient", address), KeyValue("sender", address)))
    return fold_or(terms)


def fold_or(terms: Sequence[Expression]) -> Expression:
    """Combine terms into ``Or(a, Or(b, c))``."""
    result = terms[-1]
    for term in reversed(terms[:-1]):
        result = Or(term, result)
    return result


def _lookup(source: ContactSource, name: str) -> list[str]:
    if isinstance(source, Mapping):
        found = source.get(name)
    else:
        found = source(name)
    if not found:
        return []
    if isinstance(found, str):
        return [found]
    return [str(address) for address in found if str(address).strip()]


def _as_date(reference: datetime | date | None) -> date:
    if reference is None:
        return date.today()
    if isinstance(reference, datetime):
        return reference.date()
    return reference


def _to_spec(day: date) -> DateSpec:
    return DateSpec(day.day, day.month, day.year)


def _split_weekday(text: str) -> tuple[int | None, str]:
    """Pull a weekday name out of ``text``.

    Returns:
        (weekday index with Monday=0 or None, remaining text).
    """
    weekday = None
    kept: list[str] = []
    for token in _RE_TOKEN_SPLIT.split(text):
        if not token:
            continue
        found = _WEEKDAY_INFO.weekday(token)
        if found is not None and weekday is None:
            weekday = found
            continue
        kept.append(token)
    return weekday, " ".join(kept)


def _parse_components(text: str) -> DateSpec | None:
    try:
        first = dt_parser.parse(text, default=_DEFAULT_A)
        second = dt_parser.parse(text, default=_DEFAULT_B)
    except (ValueError, OverflowError):
        return None

    spec = DateSpec(
        first.day if first.day == second.day else None,
        first.month if first.month == second.month else None,
        first.year if first.year == second.year else None,
    )
    if spec == DateSpec(None, None, None):
        return None
    return spec
