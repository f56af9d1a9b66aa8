"""``ctrain lessons`` — list the lesson catalog."""

from __future__ import annotations

import json
import sys

import click

from ctrain.cli_commands._output import console, print_lessons_table


@click.command()
@click.option("--file", "-f", "path", type=click.Path(exists=True, dir_okay=False), default=None, help="Lesson YAML file (bundled catalog when omitted).")
@click.option("--json", "as_json", is_flag=True, help="Print lessons as JSON.")
def lessons(path: str | None, as_json: bool) -> None:
    """List available lessons."""
    from ctrain.catalog.catalog import CatalogError, LessonCatalog, load_default_catalog

    try:
        catalog = LessonCatalog.from_yaml(path) if path else load_default_catalog()
    except CatalogError as exc:
        console.print(f"[red]Catalog error:[/red] {exc}", highlight=False)
        sys.exit(1)

    if as_json:
        console.print_json(json.dumps([lesson.to_response() for lesson in catalog.all()]))
        return

    print_lessons_table(catalog.all())
