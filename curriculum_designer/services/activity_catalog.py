"""Reusable activity library, deduplicated on ``(name, category)``."""
from __future__ import annotations

import logging
from typing import Iterable, Literal, Mapping

from ..errors import InvalidInputError
from ..schemas import Activity, Lesson
from ..storage import ACTIVITY_CATALOG_KEY, StorageAdapter, load_document

LOGGER = logging.getLogger(__name__)

SortField = Literal["name", "category", "time", "level"]
SortOrder = Literal["asc", "desc"]

ALL = "all"


def _dedupe(activities: Iterable[Activity]) -> list[Activity]:
    seen: set[tuple[str, str]] = set()
    unique = []
    for activity in activities:
        if activity.identity in seen:
            continue
        seen.add(activity.identity)
        unique.append(activity)
    return unique


def _sort_key(field: SortField):
    if field == "time":
        return lambda activity: activity.time
    if field == "level":
        return lambda activity: (activity.level or "").casefold()
    if field == "name":
        return lambda activity: activity.name.casefold()
    return lambda activity: activity.category.casefold()


class ActivityCatalog:
    """Global activity library persisted under ``library-activities``."""

    def __init__(self, storage: StorageAdapter) -> None:
        self.storage = storage

    def _read(self) -> list[Activity]:
        raw = load_document(self.storage, ACTIVITY_CATALOG_KEY, [])
        return [Activity.model_validate(item) for item in raw]

    def _write(self, activities: list[Activity]) -> None:
        self.storage.save(
            ACTIVITY_CATALOG_KEY,
            [activity.model_dump(mode="json") for activity in activities],
        )

    def list_all(self) -> list[Activity]:
        return _dedupe(self._read())

    def upsert(self, activity: Activity) -> Activity:
        if not activity.name.strip():
            raise InvalidInputError("Activity name is required")
        activities = self.list_all()
        for index, existing in enumerate(activities):
            if existing.identity == activity.identity:
                activities[index] = activity
                break
        else:
            activities.append(activity)
        self._write(activities)
        return activity

    def import_activities(self, incoming: Iterable[Activity]) -> int:
        """Merge ``incoming`` into the catalog, skipping known identities."""

        activities = self.list_all()
        known = {activity.identity for activity in activities}
        added = 0
        for activity in incoming:
            if not activity.name.strip() or activity.identity in known:
                continue
            known.add(activity.identity)
            activities.append(activity)
            added += 1
        self._write(activities)
        LOGGER.info("Imported %d new activities; library now holds %d", added, len(activities))
        return added

    def seed_from_lessons(self, lessons: Mapping[str, Lesson]) -> list[Activity]:
        """Populate an empty catalog with the activities found in ``lessons``."""

        existing = self.list_all()
        if existing:
            return existing
        extracted = _dedupe(
            activity for lesson in lessons.values() for activity in lesson.activities()
        )
        self._write(extracted)
        return extracted

    def filter_and_sort(
        self,
        query: str = "",
        category: str = ALL,
        level: str = ALL,
        sort_field: SortField = "category",
        order: SortOrder = "asc",
    ) -> list[Activity]:
        needle = query.casefold()
        matches = [
            activity
            for activity in self.list_all()
            if (needle in activity.name.casefold() or needle in activity.description.casefold())
            and (category == ALL or activity.category == category)
            and (level == ALL or activity.level == level)
        ]
        # sorted() is stable in both directions, so ties keep catalog order.
        return sorted(matches, key=_sort_key(sort_field), reverse=order == "desc")

    def categories(self) -> list[str]:
        return sorted({activity.category for activity in self.list_all()})

    def levels(self) -> list[str]:
        return sorted({activity.level for activity in self.list_all() if activity.level})


__all__ = ["ActivityCatalog", "SortField", "SortOrder"]
