"""mairix query rendering and command line.

mairix takes whitespace-separated search words; all of them must match.
Each word is ``<letters>:<value>`` with letters selecting the headers:

    f from    t to    c cc    s subject    m message-id    b body
    a any address   tc to+cc   bs subject+body   n attachment name
    d date range    z size range    F flags

Alternatives for one key are written ``s:foo/bar``; negation is ``s:~foo``
(``F:-s`` for flags). There is no grouping and no ``or`` across keys.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

from FedSearch.core.query import DateSpec, Expression, Group, KeyValue, Literal, Near, Not, Or, QuerySpec
from FedSearch.engines.indexed.parser import extract_paths
from FedSearch.engines.indexed.source import EngineProfile
from FedSearch.engines.transform import distribute_key, join_fragments, renders, transform, transform_expression

if TYPE_CHECKING:
    from FedSearch.config import EngineConfig

KIND = "mairix"

KEY_LETTERS = {
    "from": "f",
    "sender": "f",
    "to": "t",
    "cc": "c",
    "subject": "s",
    "id": "m",
    "body": "b",
    "address": "a",
    "recipient": "tc",
    "text": "bs",
    "attachment": "n",
}

_FLAGS = {"flagged": "f", "flag": "f", "replied": "r", "answered": "r", "read": "s", "seen": "s"}
_DATE_RANGE = {"date": "{}", "on": "{}", "before": "-{}", "since": "{}-"}
_MONTHS = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")


def mairix_date(value: DateSpec) -> str:
    """``20200305`` for complete dates, else e.g. ``mar5`` / ``2020mar``."""
    if value.day and value.month and value.year:
        return f"{value.year:04d}{value.month:02d}{value.day:02d}"
    out = ""
    if value.year is not None:
        out += str(value.year)
    if value.month is not None:
        out += _MONTHS[value.month - 1]
    if value.day is not None:
        out += str(value.day)
    return out


def _letters(node: Expression) -> Optional[str]:
    if isinstance(node, Literal):
        return "bs"
    if isinstance(node, KeyValue) and isinstance(node.value, str):
        return KEY_LETTERS.get(node.key)
    return None


def _words(node: Expression) -> list[str]:
    text = node.text if isinstance(node, Literal) else node.value
    return text.split()


def _flatten_or(node: Expression) -> list[Expression]:
    if isinstance(node, Or):
        return _flatten_or(node.left) + _flatten_or(node.right)
    if isinstance(node, Near):
        return [node.left, node.right]
    return [node]


@renders(KIND, Literal)
def _literal(kind: str, node: Literal) -> Optional[str]:
    if node.is_regex:
        return None
    return join_fragments(f"bs:{word}" for word in node.text.split())


@renders(KIND, Group)
def _group(kind: str, node: Group) -> Optional[str]:
    return transform(kind, node.items) or None


@renders(KIND, Or, Near)
def _or(kind: str, node: Or | Near) -> Optional[str]:
    operands = _flatten_or(node)
    letters = {_letters(operand) for operand in operands}
    if len(letters) == 1 and None not in letters:
        values = []
        for operand in operands:
            if isinstance(operand, Literal) and operand.is_regex:
                continue
            words = _words(operand)
            if len(words) != 1:
                # "a b/c" is not expressible as one alternative list.
                return join_fragments(transform_expression(kind, operand) for operand in operands)
            values.append(words[0])
        return f"{letters.pop()}:{'/'.join(values)}" if values else None

    dates = [operand for operand in operands if isinstance(operand, KeyValue) and operand.key in _DATE_RANGE]
    if dates and len(dates) == len(operands):
        return transform_expression(kind, dates[0])
    return join_fragments(transform_expression(kind, operand) for operand in operands)


@renders(KIND, Not)
def _not(kind: str, node: Not) -> Optional[str]:
    operand = node.operand
    if not isinstance(operand, (Literal, KeyValue)):
        return None
    inner = transform_expression(kind, operand)
    if not inner:
        return None
    if isinstance(operand, KeyValue) and operand.key == "mark":
        return inner.replace("F:", "F:-")
    return " ".join(word.replace(":", ":~", 1) for word in inner.split())


@renders(KIND, KeyValue)
def _key_value(kind: str, node: KeyValue) -> Optional[str]:
    if isinstance(node.value, Group):
        return transform_expression(kind, distribute_key(node.key, node.value))

    key = node.key
    value = node.value
    if key in _DATE_RANGE:
        if not isinstance(value, DateSpec):
            return None
        return "d:" + _DATE_RANGE[key].format(mairix_date(value))
    if isinstance(value, DateSpec):
        return None
    if key == "mark":
        flag = _FLAGS.get(value.lower())
        return f"F:{flag}" if flag else None
    if key in {"smaller", "larger", "size"}:
        size = value.strip().lower()
        if not size:
            return None
        return f"z:-{size}" if key == "smaller" else f"z:{size}-"
    letters = KEY_LETTERS.get(key)
    if letters is None or (value.startswith("/") and value.endswith("/") and len(value) > 2):
        return None
    return join_fragments(f"{letters}:{word}" for word in value.split())


def build_argv(config: EngineConfig, program: str, query: str, spec: QuerySpec, collections: Sequence[str]) -> list[str]:
    del collections
    argv = [program]
    if config.config_file:
        argv += ["-f", config.config_file]
    argv += list(config.switches)
    argv.append("-r")
    if spec.thread:
        argv.append("-t")
    argv += query.split()
    return argv


PROFILES = {KIND: EngineProfile(kind=KIND, default_program="mairix", build_argv=build_argv, extract=extract_paths)}
