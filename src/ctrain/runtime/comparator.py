"""Result comparator — trim-and-compare grading of a successful execution."""

from __future__ import annotations

from ctrain.runtime.errors import VerdictMismatch
from ctrain.runtime.sandbox.models import ExecutionVerdict


def verify(actual: str, expected: str) -> str:
    """Return the stripped *actual* output if it matches *expected*.

    Both sides are stripped of surrounding whitespace and then compared for
    exact equality.  Any other normalization belongs in the lesson data.

    Raises:
        VerdictMismatch: If the stripped values differ.
    """
    got = actual.strip()
    want = expected.strip()
    if got != want:
        raise VerdictMismatch(want, got)
    return got


def compare(actual: str, expected: str) -> ExecutionVerdict:
    """Grade *actual* output against *expected* as a verdict."""
    try:
        return ExecutionVerdict(success=True, output=verify(actual, expected))
    except VerdictMismatch as exc:
        return ExecutionVerdict(success=False, output=exc.actual, error=str(exc))
