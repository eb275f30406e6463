"""notmuch query rendering and command line.

Rules
- ``near`` is kept as the notmuch ``NEAR`` operator.
- sender -> from, recipient -> to, mark -> tag.
- ``address`` searches ``from`` or ``to``; ``body`` is a bare term.
- ``id`` loses its angle brackets.
- date/before/since become ``date:X``, ``date:..X`` and ``date:X..``.
- Keys notmuch does not index are dropped.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

from FedSearch.core.query import DateSpec, Group, KeyValue, Literal, Near, QuerySpec
from FedSearch.engines.indexed.parser import extract_paths
from FedSearch.engines.indexed.source import EngineProfile
from FedSearch.engines.transform import distribute_key, quote_if_spaced, renders, transform_expression

if TYPE_CHECKING:
    from FedSearch.config import EngineConfig

KIND = "notmuch"

_KEY_RENAMES = {"sender": "from", "recipient": "to", "mark": "tag"}
_FIELDS = frozenset({"from", "to", "subject", "tag", "id", "thread", "folder", "path", "attachment", "mimetype"})
_RANGE = {"date": "{}", "on": "{}", "before": "..{}", "since": "{}.."}
_MONTHS = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")


def notmuch_date(value: DateSpec | str) -> str:
    """Render a date in a form notmuch's date parser accepts.

    Complete dates use ISO form; partial ones fall back to words
    (``5 mar``, ``mar 2020``). Strings are passed on as typed, so notmuch
    can read values like ``yesterday`` itself.
    """
    if isinstance(value, str):
        return value
    if value.day and value.month and value.year:
        return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
    words = []
    if value.day is not None:
        words.append(str(value.day))
    if value.month is not None:
        words.append(_MONTHS[value.month - 1])
    if value.year is not None:
        words.append(str(value.year))
    return " ".join(words)


@renders(KIND, Near)
def _near(kind: str, node: Near) -> Optional[str]:
    return f"{quote_if_spaced(node.left.text)} near {quote_if_spaced(node.right.text)}"


@renders(KIND, Literal)
def _literal(kind: str, node: Literal) -> Optional[str]:
    if node.is_regex:
        return None
    return quote_if_spaced(node.text)


@renders(KIND, KeyValue)
def _key_value(kind: str, node: KeyValue) -> Optional[str]:
    if isinstance(node.value, Group):
        return transform_expression(kind, distribute_key(node.key, node.value))

    key = _KEY_RENAMES.get(node.key, node.key)
    value = node.value
    if key in _RANGE:
        return "date:" + _RANGE[key].format(quote_if_spaced(notmuch_date(value)))
    if isinstance(value, DateSpec):
        return None
    if key == "address":
        return f"(from:{quote_if_spaced(value)} or to:{quote_if_spaced(value)})"
    if key in {"body", "text"}:
        return quote_if_spaced(value)
    if key == "id":
        value = value.strip().lstrip("<").rstrip(">")
    if key not in _FIELDS:
        return None
    return f"{key}:{quote_if_spaced(value)}"


def build_argv(config: EngineConfig, program: str, query: str, spec: QuerySpec, collections: Sequence[str]) -> list[str]:
    del collections
    argv = [program]
    if config.config_file:
        argv.append(f"--config={config.config_file}")
    argv += ["search", "--output=files"]
    if not spec.thread:
        argv.append("--duplicate=1")
    if spec.limit:
        argv.append(f"--limit={spec.limit}")
    argv += list(config.switches)
    argv.append(query)
    return argv


PROFILES = {KIND: EngineProfile(kind=KIND, default_program="notmuch", build_argv=build_argv, extract=extract_paths)}
