"""Tests for ``ctrain lessons`` CLI command."""

from __future__ import annotations

from typing import TYPE_CHECKING

from click.testing import CliRunner

from ctrain.cli import main

if TYPE_CHECKING:
    from pathlib import Path


class TestLessonsCommand:
    def test_bundled_table(self) -> None:
        result = CliRunner().invoke(main, ["lessons"])
        assert result.exit_code == 0
        assert "type-conversion" in result.output

    def test_json(self) -> None:
        result = CliRunner().invoke(main, ["lessons", "--json"])
        assert result.exit_code == 0
        assert '"id": "type-conversion"' in result.output

    def test_custom_file(self, tmp_path: Path) -> None:
        f = tmp_path / "lessons.yaml"
        f.write_text('lessons:\n  - id: custom\n    expectedOutput: "1"\n')
        result = CliRunner().invoke(main, ["lessons", "--file", str(f)])
        assert result.exit_code == 0
        assert "custom" in result.output

    def test_invalid_file(self, tmp_path: Path) -> None:
        f = tmp_path / "lessons.yaml"
        f.write_text("lessons: nope\n")
        result = CliRunner().invoke(main, ["lessons", "--file", str(f)])
        assert result.exit_code == 1
        assert "Catalog error" in result.output
