"""Convenient re-exports for the curriculum service layer."""
from __future__ import annotations

from .activity_catalog import ActivityCatalog
from .auth import is_admin
from .calendar import CalendarDay, month_grid, month_view, week_days, week_view
from .categories import DEFAULT_CATEGORIES, CategoryRegistry
from .eyfs import EyfsStandardsRepository
from .half_terms import (
    HALF_TERMS,
    HalfTerm,
    HalfTermRepository,
    get_half_term,
    half_term_for_lesson,
)
from .importer import ImportResult, import_spreadsheet
from .lesson_plans import (
    LessonPlanRepository,
    PlanBuilder,
    add_activity,
    remove_activity,
    reorder_activity,
    week_number,
)
from .lessons import LessonRepository
from .ordering import move, reorder
from .reports import PdfExporter, lesson_plan_export, paginate, shape_lesson
from .settings import CLASS_THEMES, SettingsRepository, theme_for_class
from .transfer import export_categories, export_database, import_categories, import_database
from .units import UnitRepository, UnitStats

__all__ = [
    "ActivityCatalog",
    "CLASS_THEMES",
    "CalendarDay",
    "CategoryRegistry",
    "DEFAULT_CATEGORIES",
    "EyfsStandardsRepository",
    "HALF_TERMS",
    "HalfTerm",
    "HalfTermRepository",
    "ImportResult",
    "LessonPlanRepository",
    "LessonRepository",
    "PdfExporter",
    "PlanBuilder",
    "SettingsRepository",
    "UnitRepository",
    "UnitStats",
    "add_activity",
    "export_categories",
    "export_database",
    "get_half_term",
    "half_term_for_lesson",
    "import_categories",
    "import_database",
    "import_spreadsheet",
    "is_admin",
    "lesson_plan_export",
    "month_grid",
    "month_view",
    "move",
    "paginate",
    "remove_activity",
    "reorder",
    "reorder_activity",
    "shape_lesson",
    "theme_for_class",
    "week_days",
    "week_number",
    "week_view",
]
