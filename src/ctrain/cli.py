"""ctrain CLI entrypoint."""

from __future__ import annotations

import click

from ctrain import __version__


@click.group()
@click.version_option(version=__version__, prog_name="ctrain")
def main() -> None:
    """ctrain — run and grade concept-trainer submissions."""


# Register subcommands
from ctrain.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
