"""Pydantic models for lesson definitions."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

Difficulty = Literal["beginner", "intermediate", "advanced"]


class LessonTestCase(BaseModel):
    """One input/expected pair shown alongside a lesson."""

    model_config = {"frozen": True}

    input: str = ""
    expected: str


class Lesson(BaseModel):
    """One exercise: an instruction, starter code, and the output a correct answer prints.

    Serialized with camelCase keys (``expectedOutput``, ``docsUrl``) for the
    browser client; Python attribute names are accepted on input as well.
    """

    model_config = {"populate_by_name": True, "frozen": True}

    id: str = Field(..., min_length=1)
    number: int = 0
    category: str = ""
    name: str = ""
    description: str = ""
    instruction: str = ""
    boilerplate: str = ""
    answer: str = ""
    expected_output: str = Field(..., alias="expectedOutput")
    test_cases: list[LessonTestCase] = Field(default_factory=list, alias="testCases")
    difficulty: Difficulty = "beginner"
    explanation: str = ""
    example: str = ""
    use_case: str = Field(default="", alias="useCase")
    prerequisites: list[str] = Field(default_factory=list)
    related_topics: list[str] = Field(default_factory=list, alias="relatedTopics")
    docs_url: str = Field(default="", alias="docsUrl")

    def to_response(self) -> dict[str, Any]:
        """Wire form with camelCase keys; ``testCases`` is omitted when empty."""
        data = self.model_dump(by_alias=True)
        if not self.test_cases:
            data.pop("testCases")
        return data
