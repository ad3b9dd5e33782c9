"""Per-class lesson content keyed by lesson number."""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from ..errors import InvalidInputError
from ..schemas import Activity, Lesson
from ..storage import StorageAdapter, lessons_key, load_document
from .half_terms import half_term_for_lesson
from .ordering import lesson_sort_key

LOGGER = logging.getLogger(__name__)

# Preferred display order when grouping activities into a lesson; other
# categories follow alphabetically.
CATEGORY_ORDER: tuple[str, ...] = (
    "Welcome",
    "Kodaly Songs",
    "Kodaly Action Songs",
    "Action/Games Songs",
    "Rhythm Sticks",
    "Scarf Songs",
    "General Game",
    "Core Songs",
    "Parachute Games",
    "Percussion Games",
    "Goodbye",
    "Teaching Units",
)


def category_sort_key(category: str) -> tuple[int, str]:
    try:
        return (CATEGORY_ORDER.index(category), "")
    except ValueError:
        return (len(CATEGORY_ORDER), category)


def group_activities(activities: Iterable[Activity], title: Optional[str] = None) -> Lesson:
    """Build a lesson from a flat activity list using the preferred category order."""

    grouped: dict[str, list[Activity]] = {}
    for activity in activities:
        grouped.setdefault(activity.category, []).append(activity)
    order = sorted(grouped, key=category_sort_key)
    return Lesson(title=title, grouped=grouped, category_order=order)


class LessonRepository:
    """Lessons for one class stored as ``{"lessons": {number: lesson}}``."""

    def __init__(self, storage: StorageAdapter, class_name: str) -> None:
        self.storage = storage
        self.class_name = class_name
        self.key = lessons_key(class_name)

    def _read(self) -> dict[str, Lesson]:
        document = load_document(self.storage, self.key, {"lessons": {}})
        return {
            number: Lesson.model_validate(payload)
            for number, payload in document.get("lessons", {}).items()
        }

    def _write(self, lessons: Mapping[str, Lesson]) -> None:
        ordered = sorted(lessons, key=lesson_sort_key)
        self.storage.save(
            self.key,
            {"lessons": {number: lessons[number].model_dump(mode="json") for number in ordered}},
        )

    def get(self, number: str) -> Optional[Lesson]:
        return self._read().get(number)

    def all(self) -> dict[str, Lesson]:
        lessons = self._read()
        return {number: lessons[number] for number in sorted(lessons, key=lesson_sort_key)}

    def lesson_numbers(self) -> list[str]:
        return sorted(self._read(), key=lesson_sort_key)

    def replace_all(self, lessons: Mapping[str, Lesson]) -> None:
        self._write(dict(lessons))
        LOGGER.info("Stored %d lessons for %s", len(lessons), self.class_name)

    def save(self, number: str, lesson: Lesson) -> Lesson:
        number = number.strip()
        if not number:
            raise InvalidInputError("Lesson number is required")
        lessons = self._read()
        lessons[number] = lesson.recompute()
        self._write(lessons)
        return lessons[number]

    def update_title(self, number: str, title: str) -> Optional[Lesson]:
        lessons = self._read()
        lesson = lessons.get(number)
        if lesson is None:
            LOGGER.warning("Cannot retitle missing lesson %s for %s", number, self.class_name)
            return None
        lessons[number] = lesson.model_copy(update={"title": title.strip() or None})
        self._write(lessons)
        return lessons[number]

    def update_activity(
        self,
        number: str,
        category: str,
        identity: tuple[str, str],
        new_fields: Mapping[str, Any],
    ) -> bool:
        """Replace the activity matching ``identity`` inside ``grouped[category]``.

        Returns ``False`` and logs a warning when the lesson, category or
        activity cannot be found; the stored lesson is left untouched.
        """

        lessons = self._read()
        lesson = lessons.get(number)
        bucket = lesson.grouped.get(category) if lesson is not None else None
        if bucket is None:
            LOGGER.warning(
                "Dropped activity update for lesson %s (%s): category %r not found",
                number,
                self.class_name,
                category,
            )
            return False
        for index, activity in enumerate(bucket):
            if activity.identity == identity:
                break
        else:
            LOGGER.warning(
                "Dropped activity update for lesson %s (%s): no activity %r in %r",
                number,
                self.class_name,
                identity[0],
                category,
            )
            return False

        merged = {**bucket[index].model_dump(), **dict(new_fields)}
        updated = Activity.model_validate(merged)
        grouped = {name: list(acts) for name, acts in lesson.grouped.items()}
        if updated.category == category:
            grouped[category][index] = updated
        else:
            del grouped[category][index]
            grouped.setdefault(updated.category, []).append(updated)
        lessons[number] = Lesson(
            title=lesson.title,
            grouped=grouped,
            category_order=lesson.category_order,
            eyfs_statements=lesson.eyfs_statements,
        )
        self._write(lessons)
        return True

    def delete(self, number: str) -> Optional[Lesson]:
        lessons = self._read()
        removed = lessons.pop(number, None)
        if removed is None:
            LOGGER.warning("Cannot delete missing lesson %s for %s", number, self.class_name)
            return None
        self._write(lessons)
        return removed

    def add_eyfs_statement(self, number: str, statement: str) -> Optional[Lesson]:
        lessons = self._read()
        lesson = lessons.get(number)
        if lesson is None:
            LOGGER.warning("Cannot tag missing lesson %s for %s", number, self.class_name)
            return None
        if statement in lesson.eyfs_statements:
            return lesson
        lessons[number] = lesson.model_copy(
            update={"eyfs_statements": [*lesson.eyfs_statements, statement]}
        )
        self._write(lessons)
        return lessons[number]

    def remove_eyfs_statement(self, number: str, statement: str) -> Optional[Lesson]:
        lessons = self._read()
        lesson = lessons.get(number)
        if lesson is None:
            LOGGER.warning("Cannot untag missing lesson %s for %s", number, self.class_name)
            return None
        lessons[number] = lesson.model_copy(
            update={"eyfs_statements": [s for s in lesson.eyfs_statements if s != statement]}
        )
        self._write(lessons)
        return lessons[number]

    def search(self, query: str = "", term: str = "all") -> list[str]:
        """Lesson numbers whose title or activities match ``query`` within ``term``."""

        needle = query.strip().casefold()
        matches = []
        for number, lesson in self.all().items():
            if term != "all" and half_term_for_lesson(number) != term:
                continue
            haystack = [lesson.display_title(number), *(a.name for a in lesson.activities())]
            if not needle or any(needle in text.casefold() for text in haystack):
                matches.append(number)
        return matches


__all__ = [
    "CATEGORY_ORDER",
    "LessonRepository",
    "category_sort_key",
    "group_activities",
]
