"""Request bodies accepted by the HTTP API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class RunRequest(BaseModel):
    model_config = {"populate_by_name": True}

    code: str
    concept_id: str = Field(..., alias="conceptId")


class ExecutionMetrics(BaseModel):
    """Client-reported execution metrics. Logged once, never read back."""

    model_config = {"populate_by_name": True}

    lesson_id: str | None = Field(default=None, alias="conceptId")
    exit_code: int = Field(..., alias="exitCode")
    duration_ms: int = Field(..., ge=0, alias="durationMs")
    output_size: int = Field(default=0, ge=0, alias="outputSize")
