"""Curriculum designer: activity library, lessons, units and calendar plans."""
from __future__ import annotations

from .errors import (
    CurriculumError,
    DuplicateNameError,
    ExportError,
    ExportInProgressError,
    ImportFormatError,
    InvalidInputError,
)
from .schemas import Activity, Category, Lesson, LessonPlan, Unit, UserSettings
from .storage import JsonFileStorage, MemoryStorage, SqlStorage, StorageAdapter
from .store import CurriculumStore

__version__ = "0.1.0"

__all__ = [
    "Activity",
    "Category",
    "CurriculumError",
    "CurriculumStore",
    "DuplicateNameError",
    "ExportError",
    "ExportInProgressError",
    "ImportFormatError",
    "InvalidInputError",
    "JsonFileStorage",
    "Lesson",
    "LessonPlan",
    "MemoryStorage",
    "SqlStorage",
    "StorageAdapter",
    "Unit",
    "UserSettings",
]
