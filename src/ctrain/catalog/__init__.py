"""Lesson catalog — read-only lookup of lessons by identifier."""

from ctrain.catalog.catalog import CatalogError, LessonCatalog, load_default_catalog
from ctrain.catalog.models import Lesson, LessonTestCase

__all__ = ["CatalogError", "Lesson", "LessonCatalog", "LessonTestCase", "load_default_catalog"]
