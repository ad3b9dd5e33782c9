"""The six fixed half-term buckets of the academic year.

Lessons fall into a half-term through the static number table unless the
user has saved their own ordered lesson list for it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from ..errors import InvalidInputError
from ..schemas import HalfTermLessons
from ..storage import HALF_TERMS_KEY, StorageAdapter, load_document
from .ordering import lesson_sort_key, reorder

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class HalfTerm:
    id: str
    name: str
    months: str


HALF_TERMS: tuple[HalfTerm, ...] = (
    HalfTerm("A1", "Autumn 1", "Sep-Oct"),
    HalfTerm("A2", "Autumn 2", "Nov-Dec"),
    HalfTerm("SP1", "Spring 1", "Jan-Feb"),
    HalfTerm("SP2", "Spring 2", "Mar-Apr"),
    HalfTerm("SM1", "Summer 1", "Apr-May"),
    HalfTerm("SM2", "Summer 2", "Jun-Jul"),
)

HALF_TERM_IDS: tuple[str, ...] = tuple(term.id for term in HALF_TERMS)

LESSONS_PER_HALF_TERM = 6
DEFAULT_HALF_TERM = "A1"

# Static lesson number -> half-term table: lessons 1-6 are A1, 7-12 A2, ...
LESSON_TO_HALF_TERM: dict[str, str] = {
    str(number): HALF_TERMS[(number - 1) // LESSONS_PER_HALF_TERM].id
    for number in range(1, LESSONS_PER_HALF_TERM * len(HALF_TERMS) + 1)
}


def get_half_term(half_term_id: str) -> Optional[HalfTerm]:
    for term in HALF_TERMS:
        if term.id == half_term_id:
            return term
    return None


def half_term_for_lesson(lesson_number: str) -> str:
    """Return the half-term a lesson number belongs to, ``A1`` when unmapped."""

    return LESSON_TO_HALF_TERM.get(lesson_number.strip(), DEFAULT_HALF_TERM)


def lessons_in_half_term(half_term_id: str, lesson_numbers: list[str]) -> list[str]:
    return [number for number in lesson_numbers if half_term_for_lesson(number) == half_term_id]


class HalfTermRepository:
    """Saved half-term lesson lists, stored together under ``half-terms``."""

    def __init__(self, storage: StorageAdapter) -> None:
        self.storage = storage

    def _read(self) -> dict[str, list[str]]:
        raw = load_document(self.storage, HALF_TERMS_KEY, [])
        saved = [HalfTermLessons.model_validate(item) for item in raw]
        return {entry.id: entry.lessons for entry in saved}

    def _write(self, assignments: dict[str, list[str]]) -> None:
        document = [
            HalfTermLessons(id=term.id, lessons=assignments[term.id]).model_dump(mode="json")
            for term in HALF_TERMS
            if term.id in assignments
        ]
        self.storage.save(HALF_TERMS_KEY, document)

    def _require_term(self, half_term_id: str) -> None:
        if get_half_term(half_term_id) is None:
            raise InvalidInputError(f"Unknown half-term: {half_term_id}")

    def saved(self, half_term_id: str) -> Optional[list[str]]:
        """The user's list for a half-term, or ``None`` when none was saved."""

        return self._read().get(half_term_id)

    def assign(self, half_term_id: str, numbers: Iterable[str]) -> list[str]:
        self._require_term(half_term_id)
        assignments = self._read()
        entry = HalfTermLessons(id=half_term_id, lessons=[n for n in numbers if n])
        assignments[half_term_id] = entry.lessons
        self._write(assignments)
        LOGGER.info("Saved %d lessons to half-term %s", len(entry.lessons), half_term_id)
        return entry.lessons

    def reorder(self, half_term_id: str, from_index: int, to_index: int) -> list[str]:
        self._require_term(half_term_id)
        assignments = self._read()
        numbers = assignments.get(half_term_id, [])
        if not 0 <= from_index < len(numbers):
            LOGGER.warning(
                "Ignoring reorder from index %d in half-term %s", from_index, half_term_id
            )
            return numbers
        assignments[half_term_id] = reorder(numbers, from_index, to_index)
        self._write(assignments)
        return assignments[half_term_id]

    def clear(self, half_term_id: str) -> None:
        assignments = self._read()
        if assignments.pop(half_term_id, None) is not None:
            self._write(assignments)

    def lessons_for(self, half_term_id: str, available: Iterable[str]) -> list[str]:
        """Lesson numbers for a half-term, limited to ``available``.

        A saved list keeps its own order; otherwise the static table decides
        and the numbers come back in numeric order.
        """

        available = list(available)
        saved = self.saved(half_term_id)
        if saved is not None:
            present = set(available)
            return [number for number in saved if number in present]
        return sorted(lessons_in_half_term(half_term_id, available), key=lesson_sort_key)


__all__ = [
    "DEFAULT_HALF_TERM",
    "HALF_TERMS",
    "HALF_TERM_IDS",
    "HalfTerm",
    "HalfTermRepository",
    "LESSON_TO_HALF_TERM",
    "get_half_term",
    "half_term_for_lesson",
    "lessons_in_half_term",
]
