"""swish-e and swish++ query rendering, command lines and output readers.

Both index the same header fields (from, subject, to, body) and support
``near``. swish-e writes ``key=value``; swish++ writes ``key = value``.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

from FedSearch.core.errors import EngineError
from FedSearch.core.query import DateSpec, Group, KeyValue, Near, QuerySpec
from FedSearch.engines.indexed.source import EngineProfile
from FedSearch.engines.transform import distribute_key, quote_if_spaced, renders, transform_expression

if TYPE_CHECKING:
    from FedSearch.config import EngineConfig

SWISH_E = "swish-e"
SWISH_PLUS = "swish++"

_FIELDS = {"from": "from", "sender": "from", "subject": "subject", "to": "to", "recipient": "to", "body": "body"}
_SEPARATORS = {SWISH_E: "=", SWISH_PLUS: " = "}

_RE_SWISH_E = re.compile(r'^(\d+)\s+(\S+)\s+"(.*)"\s+(\d+)\s*$')
_RE_SWISH_PLUS = re.compile(r"^(\d+)\s+(\S+)\s+(\d+)(?:\s+(.*))?$")


@renders((SWISH_E, SWISH_PLUS), Near)
def _near(kind: str, node: Near) -> Optional[str]:
    return f"{quote_if_spaced(node.left.text)} near {quote_if_spaced(node.right.text)}"


@renders((SWISH_E, SWISH_PLUS), KeyValue)
def _key_value(kind: str, node: KeyValue) -> Optional[str]:
    if isinstance(node.value, Group):
        return transform_expression(kind, distribute_key(node.key, node.value))
    if isinstance(node.value, DateSpec):
        return None
    field = _FIELDS.get(node.key)
    if field is None:
        return None
    return f"{field}{_SEPARATORS[kind]}{quote_if_spaced(node.value)}"


def extract_swish_e(lines: Sequence[str]) -> Iterable[tuple[str, float]]:
    """Read ``score path "title" size`` lines; headers start with ``#`` or ``.``."""
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped[0] in "#.":
            continue
        if stripped.startswith("err:"):
            if "no results" in stripped:
                return
            raise EngineError(SWISH_E, stripped)
        match = _RE_SWISH_E.match(stripped)
        if match:
            yield match.group(2), float(match.group(1))


def extract_swish_plus(lines: Sequence[str]) -> Iterable[tuple[str, float]]:
    """Read ``score path size title`` lines; comments start with ``#``."""
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        match = _RE_SWISH_PLUS.match(stripped)
        if match:
            yield match.group(2), float(match.group(1))


def build_swish_e_argv(
    config: EngineConfig, program: str, query: str, spec: QuerySpec, collections: Sequence[str]
) -> list[str]:
    del spec, collections
    argv = [program]
    if config.index_dir:
        argv += ["-f", config.index_dir]
    return argv + [*config.switches, "-w", query]


def build_swish_plus_argv(
    config: EngineConfig, program: str, query: str, spec: QuerySpec, collections: Sequence[str]
) -> list[str]:
    del spec, collections
    argv = [program]
    if config.config_file:
        argv.append(f"--config-file={config.config_file}")
    return argv + [*config.switches, query]


PROFILES = {
    SWISH_E: EngineProfile(
        kind=SWISH_E, default_program="swish-e", build_argv=build_swish_e_argv, extract=extract_swish_e
    ),
    SWISH_PLUS: EngineProfile(
        kind=SWISH_PLUS, default_program="search", build_argv=build_swish_plus_argv, extract=extract_swish_plus
    ),
}
