"""LessonCatalog — in-memory lesson index loaded from YAML."""

from __future__ import annotations

import logging
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ctrain.catalog.models import Lesson
from ctrain.runtime.errors import LessonNotFoundError

logger = logging.getLogger(__name__)

_DEFAULT_RESOURCE = "lessons.yaml"


class CatalogError(Exception):
    """Raised when a lesson file fails parsing or validation."""


class LessonCatalog:
    """Read-only lessons keyed by id, kept in declaration order."""

    def __init__(self, lessons: list[Lesson]) -> None:
        self._lessons: dict[str, Lesson] = {}
        for lesson in lessons:
            if lesson.id in self._lessons:
                raise CatalogError(f"Duplicate lesson id '{lesson.id}'")
            self._lessons[lesson.id] = lesson

    @classmethod
    def from_yaml(cls, path: str | Path) -> LessonCatalog:
        """Load a catalog file.

        Raises:
            CatalogError: On read, YAML or schema errors.
        """
        p = Path(path)
        try:
            raw = p.read_text(encoding="utf-8")
        except OSError as exc:
            raise CatalogError(f"Cannot read {p}: {exc}") from exc
        return cls.from_text(raw, source=str(p))

    @classmethod
    def from_text(cls, raw: str, *, source: str = "<string>") -> LessonCatalog:
        try:
            data: Any = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise CatalogError(f"YAML parse error in {source}: {exc}") from exc

        if not isinstance(data, dict) or not isinstance(data.get("lessons"), list):
            raise CatalogError(f"{source}: expected a mapping with a 'lessons' list")

        try:
            lessons = [Lesson.model_validate(item) for item in data["lessons"]]
        except ValidationError as exc:
            raise CatalogError(str(exc)) from exc

        catalog = cls(lessons)
        logger.info("Loaded %d lessons from %s", len(catalog), source)
        return catalog

    def __len__(self) -> int:
        return len(self._lessons)

    def __contains__(self, lesson_id: object) -> bool:
        return lesson_id in self._lessons

    def get(self, lesson_id: str) -> Lesson:
        """Return the lesson for *lesson_id*.

        Raises:
            LessonNotFoundError: If the id is unknown.
        """
        try:
            return self._lessons[lesson_id]
        except KeyError:
            raise LessonNotFoundError(lesson_id) from None

    def expected_output(self, lesson_id: str) -> str:
        return self.get(lesson_id).expected_output

    def all(self) -> list[Lesson]:
        return list(self._lessons.values())


def load_default_catalog() -> LessonCatalog:
    """Load the lessons shipped with the package."""
    raw = resources.files("ctrain.catalog").joinpath(_DEFAULT_RESOURCE).read_text(encoding="utf-8")
    return LessonCatalog.from_text(raw, source=f"ctrain.catalog/{_DEFAULT_RESOURCE}")
