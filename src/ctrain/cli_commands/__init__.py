"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from ctrain.cli_commands.check import check
    from ctrain.cli_commands.lessons import lessons
    from ctrain.cli_commands.run import run
    from ctrain.cli_commands.serve import serve

    cli.add_command(serve)
    cli.add_command(run)
    cli.add_command(check)
    cli.add_command(lessons)
