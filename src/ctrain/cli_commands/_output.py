"""Shared CLI output formatters."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ctrain.catalog.models import Lesson  # noqa: TC001
from ctrain.runtime.gate.models import ImportSet  # noqa: TC001
from ctrain.runtime.sandbox.models import ExecutionVerdict  # noqa: TC001

console = Console()


def print_verdict(verdict: ExecutionVerdict, *, as_json: bool = False) -> None:
    """Pretty-print one verdict."""
    if as_json:
        console.print_json(data=verdict.to_response())
        return

    if verdict.success:
        console.print("[green]PASS[/green]")
    else:
        console.print("[red]FAIL[/red]")
    if verdict.output:
        console.print("\n[bold]Output:[/bold]")
        console.print(verdict.output, markup=False, highlight=False)
    if verdict.error:
        console.print(f"\n[bold]Error:[/bold] {escape(verdict.error)}", highlight=False)


def print_import_set(imports: ImportSet) -> None:
    if not imports:
        console.print("No imports declared.")
        return
    console.print("[bold]Imports:[/bold]")
    for module in imports.sorted():
        console.print(f"  {module}")


def print_lessons_table(lessons: list[Lesson]) -> None:
    """Pretty-print lessons as a table."""
    table = Table(title="Lessons")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Difficulty")

    for lesson in lessons:
        table.add_row(lesson.id, _truncate(lesson.name), lesson.category, lesson.difficulty)

    console.print(table)


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
