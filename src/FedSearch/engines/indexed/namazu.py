"""Namazu query rendering, command line and output reader.

Field searches use ``+field:value``; ``near`` is not supported and is
searched as ``or``. Namazu exits with status 1 when nothing matched.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

from FedSearch.core.query import DateSpec, Group, KeyValue, QuerySpec
from FedSearch.engines.indexed.source import EngineProfile
from FedSearch.engines.transform import distribute_key, quote_if_spaced, renders, transform_expression

if TYPE_CHECKING:
    from FedSearch.config import EngineConfig

KIND = "namazu"

_FIELDS = {
    "from": "from",
    "sender": "from",
    "subject": "subject",
    "to": "to",
    "recipient": "to",
    "cc": "cc",
    "body": "body",
    "id": "message-id",
}

# "1. Subject line (score: 12)" followed by the file path on the next line.
_RE_HIT = re.compile(r"^\d+\.\s+.*?\(score:\s*(\d+(?:\.\d+)?)\)\s*$")


@renders(KIND, KeyValue)
def _key_value(kind: str, node: KeyValue) -> Optional[str]:
    if isinstance(node.value, Group):
        return transform_expression(kind, distribute_key(node.key, node.value))
    if isinstance(node.value, DateSpec):
        return None
    field = _FIELDS.get(node.key)
    if field is None:
        return None
    return f"+{field}:{quote_if_spaced(node.value)}"


def extract_hits(lines: Sequence[str]) -> Iterable[tuple[str, float]]:
    """Read ``N. title (score: S)`` / ``path`` line pairs."""
    score: Optional[float] = None
    for line in lines:
        stripped = line.strip()
        if not stripped:
            continue
        match = _RE_HIT.match(stripped)
        if match:
            score = float(match.group(1))
            continue
        if score is not None:
            yield stripped, score
            score = None


def build_argv(config: EngineConfig, program: str, query: str, spec: QuerySpec, collections: Sequence[str]) -> list[str]:
    del spec, collections
    argv = [program, "-q", "-a", "-s", *config.switches, query]
    if config.index_dir:
        argv.append(config.index_dir)
    return argv


PROFILES = {
    KIND: EngineProfile(
        kind=KIND,
        default_program="namazu",
        build_argv=build_argv,
        extract=extract_hits,
        ok_codes=(0, 1),
    )
}
