"""Per-class facade wiring the repositories over one storage adapter."""
from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Optional

from .schemas import Lesson, Unit
from .services.activity_catalog import ActivityCatalog
from .services.categories import CategoryRegistry
from .services.eyfs import EyfsStandardsRepository
from .services.half_terms import HalfTermRepository, get_half_term
from .services.importer import ImportResult, import_spreadsheet
from .services.lesson_plans import LessonPlanRepository, PlanBuilder
from .services.lessons import LessonRepository
from .services.reports import PdfExporter
from .services.settings import SettingsRepository, Theme, theme_for_class
from .services.units import UnitRepository
from .storage import StorageAdapter

LOGGER = logging.getLogger(__name__)


class CurriculumStore:
    """Everything the presentation layer needs for one class."""

    def __init__(self, storage: StorageAdapter, class_name: str) -> None:
        self.storage = storage
        self.class_name = class_name
        self.catalog = ActivityCatalog(storage)
        self.categories = CategoryRegistry(storage, class_name)
        self.lessons = LessonRepository(storage, class_name)
        self.eyfs = EyfsStandardsRepository(storage, class_name)
        self.half_terms = HalfTermRepository(storage)
        self.units = UnitRepository(storage, class_name, self.lessons)
        self.plans = LessonPlanRepository(storage)
        self.builder = PlanBuilder(self.plans)
        self.settings = SettingsRepository(storage)
        self.exporter = PdfExporter()

    def switch_class(self, class_name: str) -> "CurriculumStore":
        return CurriculumStore(self.storage, class_name)

    def delete_lesson(self, number: str) -> Optional[Lesson]:
        """Delete a lesson and unlink it from this class's units and plans."""

        removed = self.lessons.delete(number)
        if removed is None:
            return None
        units_changed = self.units.scrub_lesson(number)
        plans_changed = self.plans.scrub_lesson(number, self.class_name)
        LOGGER.info(
            "Deleted lesson %s for %s (%d units, %d plans unlinked)",
            number,
            self.class_name,
            units_changed,
            plans_changed,
        )
        return removed

    def import_spreadsheet(self, path: Path) -> ImportResult:
        """Replace this class's lessons with a spreadsheet and merge its activities."""

        result = import_spreadsheet(path)
        self.lessons.replace_all(result.lessons)
        self.catalog.import_activities(result.activities)
        return result

    def schedule_unit(self, unit_id: str, start_date: date):
        unit = self.units.resolve(unit_id)
        if unit is None:
            LOGGER.warning("Cannot schedule missing unit %s", unit_id)
            return []
        return self.plans.assign_unit_to_calendar(
            unit, start_date, self.class_name, self.lessons.all()
        )

    def unit_lessons(self, unit: Unit) -> dict[str, Lesson]:
        """The unit's lessons in teaching order; numbers that no longer resolve are skipped."""

        lessons = self.lessons.all()
        return {number: lessons[number] for number in unit.lesson_numbers if number in lessons}

    def export_lesson_pdf(self, number: str) -> Optional[tuple[str, bytes]]:
        lesson = self.lessons.get(number)
        if lesson is None:
            LOGGER.warning("Cannot export missing lesson %s", number)
            return None
        return self.exporter.export_lesson(
            self.class_name, number, lesson, color_for=self.categories.color_for
        )

    def export_half_term_pdf(self, half_term_id: str) -> Optional[tuple[str, bytes]]:
        half_term = get_half_term(half_term_id)
        if half_term is None:
            LOGGER.warning("Unknown half-term %s", half_term_id)
            return None
        lessons = self.lessons.all()
        numbers = self.half_terms.lessons_for(half_term_id, lessons)
        return self.exporter.export_half_term(
            self.class_name,
            half_term,
            lessons,
            numbers,
            display_name=self.settings.get().school_name,
            color_for=self.categories.color_for,
        )

    def export_unit_pdf(self, unit_id: str) -> Optional[tuple[str, bytes]]:
        unit = self.units.resolve(unit_id)
        if unit is None:
            LOGGER.warning("Cannot export missing unit %s", unit_id)
            return None
        return self.exporter.export_unit(
            self.class_name,
            unit,
            self.unit_lessons(unit),
            display_name=self.settings.get().school_name,
            color_for=self.categories.color_for,
        )

    def theme(self) -> Theme:
        return theme_for_class(self.class_name, self.settings.get())


__all__ = ["CurriculumStore"]
