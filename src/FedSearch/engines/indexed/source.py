"""Adapter for engines that search a local index through a program.

Each engine module contributes an `EngineProfile`: how to build the command
line, which exit statuses are fine, and how to read the output. The adapter
runs the program and maps the output through `massage_output`.
"""

from __future__ import annotations

import importlib
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from FedSearch.core.errors import SearchConfigError
from FedSearch.core.models import Match
from FedSearch.core.query import QuerySpec
from FedSearch.engines.indexed.client import ProcessRunner
from FedSearch.engines.indexed.parser import ArticleResolver, Extractor, massage_output
from FedSearch.utils.log import engine_log

if TYPE_CHECKING:
    from FedSearch.config import EngineConfig

ArgvBuilder = Callable[["EngineConfig", str, str, QuerySpec, Sequence[str]], list[str]]

_PROFILE_MODULES = {
    "notmuch": "FedSearch.engines.indexed.notmuch",
    "mairix": "FedSearch.engines.indexed.mairix",
    "namazu": "FedSearch.engines.indexed.namazu",
    "swish-e": "FedSearch.engines.indexed.swish",
    "swish++": "FedSearch.engines.indexed.swish",
    "find-grep": "FedSearch.engines.indexed.findgrep",
}


@dataclass(frozen=True, slots=True)
class EngineProfile:
    """Static description of one index engine.

    Attributes:
        kind: Engine kind; also the transform kind.
        default_program: Executable used when the config names none.
        build_argv: ``(config, program, query, spec, collections) -> argv``.
        extract: Output lines -> ``(path, score)`` pairs.
        ok_codes: Exit statuses treated as success.
    """

    kind: str
    default_program: str
    build_argv: ArgvBuilder
    extract: Extractor
    ok_codes: tuple[int, ...] = (0,)


def profile_for(kind: str) -> EngineProfile:
    """Return the profile registered for ``kind``.

    Raises:
        SearchConfigError: If ``kind`` is not an index engine.
    """
    module_name = _PROFILE_MODULES.get(kind)
    if module_name is None:
        raise SearchConfigError(f"Not an index engine: {kind}")
    module = importlib.import_module(module_name)
    return module.PROFILES[kind]


@dataclass(slots=True)
class IndexedEngine:
    """`SearchEngine` backed by a local index program."""

    config: EngineConfig
    profile: EngineProfile
    runner: ProcessRunner
    article_resolver: Optional[ArticleResolver] = None

    @property
    def kind(self) -> str:
        return self.profile.kind

    @property
    def raw_queries(self) -> bool:
        return self.config.raw_queries

    def search(
        self,
        query: str,
        *,
        spec: QuerySpec,
        server: str,
        collections: Sequence[str] = (),
    ) -> list[Match]:
        """Run the engine for ``query`` and return matches for ``server``.

        Raises:
            EngineError: If the program fails.
        """
        program = self.config.program or self.profile.default_program
        argv = self.profile.build_argv(self.config, program, query, spec, collections)
        lines = self.runner.run(argv, ok_codes=self.profile.ok_codes)
        matches = massage_output(
            self.profile.extract(lines),
            server=server,
            remove_prefix=self.config.remove_prefix,
            collections=collections,
            article_resolver=self.article_resolver,
        )
        engine_log(self.kind, server).debug("%d output lines, %d matches", len(lines), len(matches))
        return matches

    def close(self) -> None:
        return
