"""Data models for the sandbox subsystem."""

from __future__ import annotations

import sys
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

SandboxBackend = Literal["subprocess", "interpreter"]


class SandboxConfig(BaseModel):
    """Configuration for a sandbox executor."""

    backend: SandboxBackend = Field(
        default="subprocess",
        description="Isolation strategy, fixed for the lifetime of a deployment.",
    )
    timeout: float = Field(default=5.0, gt=0, description="Wall-clock deadline in seconds (subprocess only).")
    toolchain: list[str] = Field(
        default_factory=list,
        description=(
            "Command that builds and runs the entry-point file inside the scratch directory. "
            "Empty: run the entry point with the current interpreter in isolated mode."
        ),
    )
    entrypoint: str = Field(default="main.py", description="File name the submission is written to.")
    scratch_root: str | None = Field(
        default=None,
        description="Parent directory for scratch workspaces (system temp dir when unset).",
    )
    env: dict[str, str] = Field(default_factory=dict, description="Environment variables for the child process.")

    @model_validator(mode="after")
    def _default_toolchain(self) -> SandboxConfig:
        if not self.toolchain:
            self.toolchain = [sys.executable, "-I", self.entrypoint]
        return self


class Submission(BaseModel):
    """Caller-supplied source text and the lesson it is graded against."""

    model_config = ConfigDict(frozen=True)

    source: str
    lesson_id: str


class SandboxResult(BaseModel):
    """Raw result of one sandboxed execution, before grading."""

    exit_code: int = Field(..., description="Process exit code (or 1 for an interpreter error).")
    output: str = Field(default="", description="Combined stdout/stderr, stripped.")
    timed_out: bool = Field(default=False, description="Whether the execution was killed at the deadline.")
    error: str | None = Field(default=None, description="Failure reason when the execution did not succeed.")
    duration_ms: int = Field(default=0, description="Wall-clock time spent executing.")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Arbitrary metadata.")

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and not self.timed_out and self.error is None


class ExecutionVerdict(BaseModel):
    """Structured pass/fail result of one submission, returned to the caller."""

    success: bool
    output: str = ""
    error: str | None = None

    def to_response(self) -> dict[str, Any]:
        """Wire form: ``error`` is omitted when absent."""
        return self.model_dump(exclude_none=True)
