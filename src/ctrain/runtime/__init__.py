"""Execution safety layer — import gate, sandboxes and grading."""

from ctrain.runtime.comparator import compare, verify
from ctrain.runtime.errors import (
    CompilationError,
    ExecutionFailure,
    LessonNotFoundError,
    ResourceError,
    RuntimeSafetyError,
    SecurityViolation,
    VerdictMismatch,
)
from ctrain.runtime.runner import SubmissionRunner

__all__ = [
    "CompilationError",
    "ExecutionFailure",
    "LessonNotFoundError",
    "ResourceError",
    "RuntimeSafetyError",
    "SecurityViolation",
    "SubmissionRunner",
    "VerdictMismatch",
    "compare",
    "verify",
]
