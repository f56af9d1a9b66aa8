"""Concept Trainer — sandboxed execution and grading of lesson submissions."""

from __future__ import annotations

__version__ = "0.1.0"
