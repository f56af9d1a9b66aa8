"""Shared error types for the execution safety layer.

Every error here is terminal for the submission that raised it: the
:class:`~ctrain.runtime.runner.SubmissionRunner` turns it into an
:class:`~ctrain.runtime.sandbox.models.ExecutionVerdict` and nothing is retried.
"""

from __future__ import annotations

import json


class RuntimeSafetyError(Exception):
    """Base error for all execution safety failures."""


class CompilationError(RuntimeSafetyError):
    """The submission failed the static parse and was never executed."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("Compilation Error" + (f": {detail}" if detail else ""))


class SecurityViolation(RuntimeSafetyError):
    """The submission references a capability the import policy forbids."""

    def __init__(self, package: str, reason: str = "") -> None:
        self.package = package
        self.reason = reason
        msg = f"Security Violation: package '{package}' is not allowed"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class ResourceError(RuntimeSafetyError):
    """The host failed to prepare or launch the execution (not the submission's fault)."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("Internal Error" + (f": {detail}" if detail else ""))


class ExecutionFailure(RuntimeSafetyError):
    """The child process or interpreter evaluation ended in error."""

    def __init__(self, detail: str, *, output: str = "", timed_out: bool = False) -> None:
        self.detail = detail
        self.output = output
        self.timed_out = timed_out
        super().__init__(detail)


class VerdictMismatch(RuntimeSafetyError):
    """Execution succeeded but the output differs from the expected value."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected: {_quote(expected)}, Got: {_quote(actual)}")


class LessonNotFoundError(RuntimeSafetyError):
    """The submission references a lesson the catalog does not know."""

    def __init__(self, lesson_id: str) -> None:
        self.lesson_id = lesson_id
        super().__init__(f"Concept not found: {lesson_id}")


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)
