"""``ctrain check`` — run the import gate on a file without executing it."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.markup import escape

from ctrain.cli_commands._output import console, print_import_set


@click.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--mode",
    type=click.Choice(["deny", "allow"]),
    default="deny",
    show_default=True,
    help="deny: subprocess denylist; allow: interpreter allowlist.",
)
def check(source: str, mode: str) -> None:
    """Statically check the imports declared by SOURCE."""
    from ctrain.runtime.errors import CompilationError, SecurityViolation
    from ctrain.runtime.gate import ImportGate, PolicyMode

    gate = ImportGate(mode=PolicyMode(mode))
    try:
        imports = gate.check(Path(source).read_text(encoding="utf-8"))
    except (CompilationError, SecurityViolation) as exc:
        console.print(f"[red]{escape(str(exc))}[/red]", highlight=False)
        sys.exit(1)

    console.print("[green]Import check passed.[/green]")
    print_import_set(imports)
