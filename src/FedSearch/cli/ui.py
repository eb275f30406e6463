"""Click CLI interface definitions.

Defines the command-line interface structure and routes commands
to their respective runners.
"""

from __future__ import annotations

from pathlib import Path

import click
from dotenv import load_dotenv

from FedSearch.cli.runner import CommandRunner
from FedSearch.config import DEFAULT_CONFIG_PATH, load_config_with_defaults


@click.group(help="FedSearch: one query language over many mail and news search engines.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Path to YAML config file, merged over the default config.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path) -> None:
    """CLI entry group.

    Loads environment variables from .env (IMAP passwords) before reading config.
    """
    load_dotenv()
    ctx.obj = load_config_with_defaults(config_path)


@cli.command("search")
@click.argument("query")
@click.option("-c", "--collection", "collections", multiple=True, help="Collection to search, as server:group.")
@click.option("-s", "--server", "servers", multiple=True, help="Search every collection of this server.")
@click.pass_context
def search_cmd(ctx: click.Context, query: str, collections: tuple[str, ...], servers: tuple[str, ...]) -> None:
    """Search QUERY and write the merged matches.

    Without -c/-s every configured server is searched.
    """
    CommandRunner(ctx.obj).run_search(ctx.command.name, query, collections=collections, servers=servers)


@cli.command("parse")
@click.argument("query")
@click.pass_context
def parse_cmd(ctx: click.Context, query: str) -> None:
    """Show the meta preferences and expression tree of QUERY."""
    CommandRunner(ctx.obj).run_parse(ctx.command.name, query)


@cli.command("compile")
@click.argument("query")
@click.option("-s", "--server", "servers", multiple=True, help="Server to compile for (default: all).")
@click.pass_context
def compile_cmd(ctx: click.Context, query: str, servers: tuple[str, ...]) -> None:
    """Show the engine query each server would receive for QUERY."""
    CommandRunner(ctx.obj).run_compile(ctx.command.name, query, servers=servers)
