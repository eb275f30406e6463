"""Command runner for coordinating CLI execution.

Handles logging configuration, component lifecycle and the error boundary:
failures are logged and turned into ``click.Abort``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Sequence, TypeVar

import click

from FedSearch.cli.commands import CompileCommand, ParseCommand, SearchCommand
from FedSearch.config import AppConfig
from FedSearch.renderers import create_output_writer
from FedSearch.services import SearchDispatcher, create_search_dispatcher
from FedSearch.utils.log import configure_logging, log

_T = TypeVar("_T")


class CommandRunner:
    """Orchestrates command execution with proper resource management."""

    def __init__(
        self,
        config: AppConfig,
        dispatcher_factory: Callable[[AppConfig], SearchDispatcher] = create_search_dispatcher,
    ) -> None:
        """Initialize command runner.

        Args:
            config: Application configuration.
            dispatcher_factory: Builds the dispatcher; replaced in tests.
        """
        self.config = config
        self.dispatcher_factory = dispatcher_factory

    def run_search(self, action: str, query: str, *, collections: Sequence[str], servers: Sequence[str]) -> None:
        """Search and write the outcome with every configured writer.

        Raises:
            click.Abort: When the search fails.
        """
        with self._dispatcher(action) as dispatcher:
            output_writer = create_output_writer(self.config)
            SearchCommand(dispatcher=dispatcher, output_writer=output_writer).execute(
                query, collections=collections, servers=servers
            )
            output_writer.finalize(action)

    def run_parse(self, action: str, query: str) -> None:
        """Log the parsed expression tree.

        Raises:
            click.Abort: When the query cannot be parsed.
        """
        with self._dispatcher(action) as dispatcher:
            ParseCommand(dispatcher=dispatcher).execute(query)

    def run_compile(self, action: str, query: str, *, servers: Sequence[str]) -> None:
        """Log the rendered engine query for each server.

        Raises:
            click.Abort: When parsing or engine setup fails.
        """
        with self._dispatcher(action) as dispatcher:
            CompileCommand(dispatcher=dispatcher).execute(query, servers=servers)

    @contextmanager
    def _dispatcher(self, action: str) -> Iterator[SearchDispatcher]:
        configure_logging(
            level=self.config.runtime.level,
            action=action,
            log_to_file=self.config.runtime.to_file,
            log_dir=self.config.runtime.dir,
        )
        dispatcher = None
        try:
            dispatcher = self.dispatcher_factory(self.config)
            yield dispatcher
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("%s failed: %s", action.capitalize(), e)
            raise click.Abort from e
        finally:
            if dispatcher is not None:
                dispatcher.close()
