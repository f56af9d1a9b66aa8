"""``ctrain run`` — run one submission file against a lesson."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click
from rich.markup import escape

from ctrain.cli_commands._common import load_config
from ctrain.cli_commands._output import console, print_verdict


@click.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.option("--lesson", "-l", "lesson_id", required=True, help="Lesson id to grade against.")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False), default=None, help="Service YAML file.")
@click.option("--backend", type=click.Choice(["subprocess", "interpreter"]), default=None, help="Override the sandbox backend.")
@click.option("--timeout", type=float, default=None, help="Override the execution deadline in seconds.")
@click.option("--json", "as_json", is_flag=True, help="Print the verdict as JSON.")
def run(
    source: str,
    lesson_id: str,
    config_path: str | None,
    backend: str | None,
    timeout: float | None,
    as_json: bool,
) -> None:
    """Execute SOURCE in the sandbox and grade it against LESSON."""
    from ctrain.catalog.catalog import CatalogError, LessonCatalog, load_default_catalog
    from ctrain.runtime.errors import LessonNotFoundError
    from ctrain.runtime.runner import SubmissionRunner
    from ctrain.runtime.sandbox import build_executor
    from ctrain.runtime.sandbox.models import Submission

    config = load_config(config_path)
    updates: dict[str, object] = {}
    if backend is not None:
        updates["backend"] = backend
    if timeout is not None:
        updates["timeout"] = timeout
    sandbox_config = config.sandbox.model_copy(update=updates)

    try:
        catalog = LessonCatalog.from_yaml(config.lessons) if config.lessons else load_default_catalog()
    except CatalogError as exc:
        console.print(f"[red]Catalog error:[/red] {exc}", highlight=False)
        sys.exit(1)

    code = Path(source).read_text(encoding="utf-8")
    runner = SubmissionRunner(catalog, build_executor(sandbox_config, config.gate), gate_config=config.gate)

    try:
        verdict = asyncio.run(runner.run(Submission(source=code, lesson_id=lesson_id)))
    except LessonNotFoundError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]", highlight=False)
        sys.exit(1)

    print_verdict(verdict, as_json=as_json)
    if not verdict.success:
        sys.exit(1)
