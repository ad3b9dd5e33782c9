"""Per-class units: named, ordered groups of lesson numbers."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from pydantic import ValidationError

from ..errors import InvalidInputError
from ..schemas import Unit, utc_now
from ..storage import StorageAdapter, load_document, units_key
from .half_terms import DEFAULT_HALF_TERM
from .lessons import LessonRepository
from .ordering import Direction, lesson_sort_key, move, reorder

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class UnitStats:
    total_duration: int = 0
    total_activities: int = 0


def _new_unit_id() -> str:
    return f"unit-{uuid.uuid4().hex}"


class UnitRepository:
    """Units for one class, stored under ``units-{class}``.

    Operations addressing a unit id that no longer resolves log a warning and
    return ``None`` instead of raising.
    """

    def __init__(
        self,
        storage: StorageAdapter,
        class_name: str,
        lessons: LessonRepository | None = None,
    ) -> None:
        self.storage = storage
        self.class_name = class_name
        self.key = units_key(class_name)
        self.lessons = lessons or LessonRepository(storage, class_name)

    def _read(self) -> list[Unit]:
        return [Unit.model_validate(item) for item in load_document(self.storage, self.key, [])]

    def _write(self, units: list[Unit]) -> None:
        self.storage.save(self.key, [unit.model_dump(mode="json") for unit in units])

    def list_all(self) -> list[Unit]:
        return self._read()

    def resolve(self, unit_id: Optional[str]) -> Optional[Unit]:
        if not unit_id:
            return None
        for unit in self._read():
            if unit.id == unit_id:
                return unit
        return None

    def create(
        self,
        name: str,
        description: str = "",
        lesson_numbers: Iterable[str] = (),
        color: str = "#10B981",
        term: Optional[str] = DEFAULT_HALF_TERM,
    ) -> Unit:
        name = name.strip()
        numbers = [number for number in lesson_numbers if number]
        if not name:
            raise InvalidInputError("Unit name is required")
        if not numbers:
            raise InvalidInputError("Select at least one lesson for the unit")
        try:
            unit = Unit(
                id=_new_unit_id(),
                name=name,
                description=description,
                lesson_numbers=numbers,
                color=color,
                term=term,
            )
        except ValidationError as exc:
            raise InvalidInputError(str(exc)) from exc
        units = self._read()
        units.append(unit)
        self._write(units)
        LOGGER.info("Created unit %s (%s) with %d lessons", unit.name, unit.id, len(numbers))
        return unit

    def _mutate(self, unit_id: str, **changes) -> Optional[Unit]:
        units = self._read()
        for index, unit in enumerate(units):
            if unit.id == unit_id:
                changes["updated_at"] = utc_now()
                try:
                    units[index] = Unit.model_validate({**unit.model_dump(), **changes})
                except ValidationError as exc:
                    raise InvalidInputError(str(exc)) from exc
                self._write(units)
                return units[index]
        LOGGER.warning("Unit %s not found for %s", unit_id, self.class_name)
        return None

    def add_lessons(self, unit_id: str, numbers: Iterable[str]) -> Optional[Unit]:
        unit = self.resolve(unit_id)
        if unit is None:
            LOGGER.warning("Unit %s not found for %s", unit_id, self.class_name)
            return None
        existing = set(unit.lesson_numbers)
        additions = sorted({n for n in numbers if n and n not in existing}, key=lesson_sort_key)
        return self._mutate(unit_id, lesson_numbers=[*unit.lesson_numbers, *additions])

    def remove_lesson(self, unit_id: str, number: str) -> Optional[Unit]:
        unit = self.resolve(unit_id)
        if unit is None:
            LOGGER.warning("Unit %s not found for %s", unit_id, self.class_name)
            return None
        return self._mutate(
            unit_id, lesson_numbers=[n for n in unit.lesson_numbers if n != number]
        )

    def move_lesson(self, unit_id: str, number: str, direction: Direction) -> Optional[Unit]:
        unit = self.resolve(unit_id)
        if unit is None:
            LOGGER.warning("Unit %s not found for %s", unit_id, self.class_name)
            return None
        return self._mutate(unit_id, lesson_numbers=move(unit.lesson_numbers, number, direction))

    def reorder_lessons(self, unit_id: str, from_index: int, to_index: int) -> Optional[Unit]:
        unit = self.resolve(unit_id)
        if unit is None:
            LOGGER.warning("Unit %s not found for %s", unit_id, self.class_name)
            return None
        if not 0 <= from_index < len(unit.lesson_numbers):
            LOGGER.warning("Ignoring reorder from index %d in unit %s", from_index, unit_id)
            return unit
        return self._mutate(
            unit_id, lesson_numbers=reorder(unit.lesson_numbers, from_index, to_index)
        )

    def update(self, unit: Unit) -> Optional[Unit]:
        fields = unit.model_dump(exclude={"id", "created_at", "updated_at"})
        if not fields["name"].strip():
            raise InvalidInputError("Unit name is required")
        return self._mutate(unit.id, **fields)

    def delete(self, unit_id: str) -> Optional[Unit]:
        units = self._read()
        remaining = [unit for unit in units if unit.id != unit_id]
        if len(remaining) == len(units):
            LOGGER.warning("Unit %s not found for %s", unit_id, self.class_name)
            return None
        self._write(remaining)
        return next(unit for unit in units if unit.id == unit_id)

    def stats_for(self, numbers: Iterable[str]) -> UnitStats:
        lessons = self.lessons.all()
        stats = UnitStats()
        for number in numbers:
            lesson = lessons.get(number)
            if lesson is None:
                continue
            stats.total_duration += lesson.total_time
            stats.total_activities += lesson.activity_count()
        return stats

    def search(self, query: str) -> list[Unit]:
        needle = query.strip().casefold()
        if not needle:
            return self._read()
        return [
            unit
            for unit in self._read()
            if needle in unit.name.casefold()
            or needle in unit.description.casefold()
            or any(needle in number.casefold() for number in unit.lesson_numbers)
        ]

    def for_term(self, term: str) -> list[Unit]:
        return [unit for unit in self._read() if unit.term == term]

    def scrub_lesson(self, number: str) -> int:
        """Remove ``number`` from every unit; returns how many units changed."""

        units = self._read()
        changed = 0
        for index, unit in enumerate(units):
            if number in unit.lesson_numbers:
                units[index] = unit.model_copy(
                    update={
                        "lesson_numbers": [n for n in unit.lesson_numbers if n != number],
                        "updated_at": utc_now(),
                    }
                )
                changed += 1
        if changed:
            self._write(units)
        return changed


__all__ = ["UnitRepository", "UnitStats"]
