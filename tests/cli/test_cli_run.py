"""Tests for ``ctrain run`` CLI command."""

from __future__ import annotations

from typing import TYPE_CHECKING

from click.testing import CliRunner

from ctrain.cli import main

if TYPE_CHECKING:
    from pathlib import Path


def _write(tmp_path: Path, source: str) -> str:
    f = tmp_path / "main.py"
    f.write_text(source)
    return str(f)


class TestRunCommand:
    def test_passing_submission(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "print(int(3.7))\n")
        result = CliRunner().invoke(main, ["run", path, "--lesson", "type-conversion"])

        assert result.exit_code == 0
        assert "PASS" in result.output
        assert "3" in result.output

    def test_failing_submission(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "print(4)\n")
        result = CliRunner().invoke(main, ["run", path, "--lesson", "type-conversion"])

        assert result.exit_code == 1
        assert "FAIL" in result.output
        assert 'Expected: "3", Got: "4"' in result.output

    def test_interpreter_backend(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "import math\nprint(math.trunc(3.7))\n")
        result = CliRunner().invoke(
            main, ["run", path, "--lesson", "type-conversion", "--backend", "interpreter"]
        )
        assert result.exit_code == 0
        assert "PASS" in result.output

    def test_json_output(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "print(3)\n")
        result = CliRunner().invoke(main, ["run", path, "--lesson", "type-conversion", "--json"])

        assert result.exit_code == 0
        assert '"success": true' in result.output
        assert '"error"' not in result.output

    def test_timeout_override(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "while True:\n    pass\n")
        result = CliRunner().invoke(
            main, ["run", path, "--lesson", "type-conversion", "--timeout", "0.5"]
        )
        assert result.exit_code == 1
        assert "timed out" in result.output

    def test_unknown_lesson(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "print(3)\n")
        result = CliRunner().invoke(main, ["run", path, "--lesson", "nope"])

        assert result.exit_code == 1
        assert "Concept not found" in result.output

    def test_lesson_required(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "print(3)\n")
        result = CliRunner().invoke(main, ["run", path])
        assert result.exit_code != 0

    def test_bad_config(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "print(3)\n")
        cfg = tmp_path / "service.yaml"
        cfg.write_text("sandbox: [1\n")
        result = CliRunner().invoke(main, ["run", path, "--lesson", "type-conversion", "--config", str(cfg)])

        assert result.exit_code == 1
        assert "Config error" in result.output
