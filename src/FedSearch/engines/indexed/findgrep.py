"""Plain ``find | grep`` search over article directories.

Only free text survives rendering: literals and ``body``/``text`` values,
joined into one grep pattern. Everything else is dropped.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

from FedSearch.core.query import DateSpec, Group, KeyValue, Literal, Near, Not, Or, QuerySpec
from FedSearch.engines.indexed.parser import extract_paths, group_directory, normalize_prefix
from FedSearch.engines.indexed.source import EngineProfile
from FedSearch.engines.transform import renders, transform

if TYPE_CHECKING:
    from FedSearch.config import EngineConfig

KIND = "find-grep"


@renders(KIND, Literal)
def _literal(kind: str, node: Literal) -> Optional[str]:
    if node.is_regex:
        return node.text[1:-1]
    return node.text


@renders(KIND, Or, Not, Near)
def _unsupported(kind: str, node: Or | Not | Near) -> Optional[str]:
    return None


@renders(KIND, Group)
def _group(kind: str, node: Group) -> Optional[str]:
    return transform(kind, node.items) or None


@renders(KIND, KeyValue)
def _key_value(kind: str, node: KeyValue) -> Optional[str]:
    if node.key not in {"body", "text"}:
        return None
    if isinstance(node.value, Group):
        return transform(kind, node.value.items) or None
    if isinstance(node.value, DateSpec):
        return None
    return node.value


def build_argv(config: EngineConfig, program: str, query: str, spec: QuerySpec, collections: Sequence[str]) -> list[str]:
    """``find DIR... -type f -name [0-9]* -exec grep -l -e PATTERN {} +``.

    Each requested collection is searched in its directory below
    ``remove_prefix``; with none, the whole prefix is searched.
    """
    del spec
    prefix = normalize_prefix(config.remove_prefix)
    directories = [group_directory(prefix, group) for group in collections] or [prefix or "."]
    grep = config.option("grep", "grep")
    return [
        program,
        *directories,
        "-type",
        "f",
        "-name",
        "[0-9]*",
        "-exec",
        grep,
        "-l",
        "-e",
        query,
        *config.switches,
        "{}",
        "+",
    ]


PROFILES = {
    KIND: EngineProfile(kind=KIND, default_program="find", build_argv=build_argv, extract=extract_paths, ok_codes=(0, 1))
}
