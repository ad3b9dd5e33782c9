"""JSON export and import of the whole database or a category set."""
from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Callable, List, Optional

from pydantic import TypeAdapter, ValidationError

from ..errors import ImportFormatError
from ..schemas import (
    Activity,
    Category,
    HalfTermLessons,
    Lesson,
    LessonPlan,
    Unit,
    UserSettings,
    utc_now,
)
from ..storage import (
    ACTIVITY_CATALOG_KEY,
    HALF_TERMS_KEY,
    LESSON_PLANS_KEY,
    SETTINGS_KEY,
    StorageAdapter,
)
from .categories import CategoryRegistry, normalise_positions

LOGGER = logging.getLogger(__name__)

_ACTIVITIES = TypeAdapter(List[Activity])
_CATEGORIES = TypeAdapter(List[Category])
_HALF_TERMS = TypeAdapter(List[HalfTermLessons])
_PLANS = TypeAdapter(List[LessonPlan])
_UNITS = TypeAdapter(List[Unit])
_LESSONS = TypeAdapter(dict[str, Lesson])
_STANDARDS = TypeAdapter(dict[str, List[str]])


def _checked(validate: Callable[[Any], Any]) -> Callable[[Any], Any]:
    """Wrap a validator so the section is stored exactly as it was exported."""

    def check(value: Any) -> Any:
        validate(value)
        return value

    return check


def _validate_lesson_document(value: Any) -> Any:
    if not isinstance(value, dict) or "lessons" not in value:
        raise ImportFormatError("Lesson data must be an object with a 'lessons' field")
    _LESSONS.validate_python(value["lessons"])
    return value


def _validate_plans(value: Any) -> Any:
    return [plan.model_dump(mode="json") for plan in _PLANS.validate_python(value)]


def validate_categories(payload: Any) -> list[Category]:
    """Categories from a file, ordered by position; names must be unique."""

    if not isinstance(payload, list):
        raise ImportFormatError("A category file must contain a list of categories")
    try:
        categories = _CATEGORIES.validate_python(payload)
    except ValidationError as exc:
        raise ImportFormatError(f"Invalid category file: {exc.error_count()} errors") from exc
    names = [category.name.casefold() for category in categories]
    if len(set(names)) != len(names):
        raise ImportFormatError("A category file must not repeat category names")
    return sorted(categories, key=lambda category: category.position)


def _validate_category_section(value: Any) -> Any:
    categories = normalise_positions(validate_categories(value))
    return [category.model_dump(mode="json") for category in categories]


# Each validator returns the value to store for its section.
_FIXED_KEYS: dict[str, Callable[[Any], Any]] = {
    ACTIVITY_CATALOG_KEY: _checked(_ACTIVITIES.validate_python),
    HALF_TERMS_KEY: _checked(_HALF_TERMS.validate_python),
    LESSON_PLANS_KEY: _validate_plans,
    SETTINGS_KEY: _checked(UserSettings.model_validate),
}
_PREFIXED_KEYS: tuple[tuple[str, Callable[[Any], Any]], ...] = (
    ("categories-", _validate_category_section),
    ("eyfs-standards-", _checked(_STANDARDS.validate_python)),
    ("lesson-data-", _validate_lesson_document),
    ("units-", _checked(_UNITS.validate_python)),
)


def _validator_for(key: str) -> Optional[Callable[[Any], Any]]:
    if key in _FIXED_KEYS:
        return _FIXED_KEYS[key]
    for prefix, validator in _PREFIXED_KEYS:
        if key.startswith(prefix) and len(key) > len(prefix):
            return validator
    return None


def export_database(storage: StorageAdapter) -> dict[str, Any]:
    """Every recognised persisted document, keyed by storage key."""

    data = {}
    for key in storage.keys():
        if _validator_for(key) is None:
            continue
        value = storage.load(key)
        if value is not None:
            data[key] = value
    return {"exported_at": utc_now().isoformat(), "data": data}


def import_database(storage: StorageAdapter, document: Any) -> list[str]:
    """Validate every section of ``document`` and then write them all.

    Matching keys are overwritten; keys absent from the document are left as
    they are. Nothing is written when any section fails validation.
    """

    if not isinstance(document, dict) or not isinstance(document.get("data"), dict):
        raise ImportFormatError("Export file must be an object with a 'data' field")
    sections = document["data"]
    accepted: dict[str, Any] = {}
    for key, value in sections.items():
        validator = _validator_for(key)
        if validator is None:
            LOGGER.warning("Skipping unrecognised section %r in database import", key)
            continue
        try:
            accepted[key] = validator(value)
        except ValidationError as exc:
            raise ImportFormatError(f"Section {key!r} is invalid: {exc.error_count()} errors") from exc
        except ImportFormatError as exc:
            raise ImportFormatError(f"Section {key!r} is invalid: {exc}") from exc

    for key, value in accepted.items():
        storage.save(key, value)
    LOGGER.info("Imported %d sections into storage", len(accepted))
    return list(accepted)


def export_categories(registry: CategoryRegistry) -> list[dict[str, Any]]:
    return [category.model_dump(mode="json") for category in registry.list_all()]


def import_categories(registry: CategoryRegistry, payload: Any) -> list[Category]:
    return registry.replace_all(validate_categories(payload))


def dumps(document: Any) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def loads(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ImportFormatError(f"Not a valid JSON file: {exc.msg}") from exc


def export_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"curriculum-designer-data-export-{today.isoformat()}.json"


def categories_filename(class_name: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"categories-{class_name}-{today.isoformat()}.json"


__all__ = [
    "categories_filename",
    "dumps",
    "export_categories",
    "export_database",
    "export_filename",
    "import_categories",
    "import_database",
    "loads",
    "validate_categories",
]
