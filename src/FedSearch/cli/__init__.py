"""CLI package for FedSearch command orchestration."""

from __future__ import annotations

__all__ = ["CommandRunner", "cli", "main"]

from FedSearch.cli.runner import CommandRunner
from FedSearch.cli.ui import cli


def main() -> None:
    """Run FedSearch CLI.

    Entry point referenced by console script in pyproject.toml.
    """
    cli()
