"""Per-class library of EYFS standards grouped by learning area."""
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import TypeAdapter, ValidationError

from ..errors import ImportFormatError, InvalidInputError
from ..schemas import Lesson
from ..storage import StorageAdapter, eyfs_standards_key

LOGGER = logging.getLogger(__name__)

Standards = dict[str, List[str]]

_STANDARDS = TypeAdapter(Standards)

DEFAULT_EYFS_STATEMENTS: tuple[str, ...] = (
    "Communication and Language: Listens carefully to rhymes and songs",
    "Communication and Language: Enjoys singing and making sounds",
    "Communication and Language: Joins in with familiar songs and rhymes",
    "Communication and Language: Understands and responds to simple questions or instructions",
    "Communication and Language: Uses talk to express ideas and feelings",
    "Listening, Attention and Understanding: Listens with increased attention to sounds",
    "Listening, Attention and Understanding: Responds to what they hear with relevant actions",
    "Listening, Attention and Understanding: Follows directions with two or more steps",
    "Listening, Attention and Understanding: Understands simple concepts such as in, on, under",
    "Speaking: Begins to use longer sentences",
    "Speaking: Retells events or experiences in sequence",
    "Speaking: Uses new vocabulary in different contexts",
    "Speaking: Talks about what they are doing or making",
    "Personal, Social and Emotional Development: Shows confidence to try new activities",
    "Personal, Social and Emotional Development: Takes turns and shares with others",
    "Personal, Social and Emotional Development: Expresses own feelings and considers others'",
    "Personal, Social and Emotional Development: Shows resilience and perseverance",
    "Physical Development: Moves energetically, e.g., running, jumping, dancing",
    "Physical Development: Uses large and small motor skills for coordinated movement",
    "Physical Development: Moves with control and coordination",
    "Physical Development: Shows strength, balance and coordination",
    "Expressive Arts and Design: Creates collaboratively, sharing ideas and resources",
    "Expressive Arts and Design: Explores the sounds of instruments",
    "Expressive Arts and Design: Sings a range of well-known nursery rhymes and songs",
    "Expressive Arts and Design: Performs songs, rhymes, poems and stories with others",
    "Expressive Arts and Design: Responds imaginatively to music and dance",
    "Expressive Arts and Design: Develops storylines in pretend play",
)


def structure_statements(statements: Iterable[str]) -> Standards:
    """Group flat ``"Area: detail"`` statements by area.

    A statement without a colon becomes an area of its own.
    """

    standards: Standards = {}
    for statement in statements:
        area, separator, detail = statement.partition(":")
        area = area.strip()
        detail = detail.strip() if separator else statement
        standards.setdefault(area, []).append(detail)
    return standards


def flatten_standards(standards: Mapping[str, Iterable[str]]) -> list[str]:
    return [f"{area}: {detail}" for area, details in standards.items() for detail in details]


class EyfsStandardsRepository:
    """Standards for one class, stored under ``eyfs-standards-{class}``.

    Classes that never saved a library read the default statements.
    """

    def __init__(self, storage: StorageAdapter, class_name: str) -> None:
        self.storage = storage
        self.class_name = class_name
        self.key = eyfs_standards_key(class_name)

    def all(self) -> Standards:
        raw = self.storage.load(self.key)
        if raw is None:
            return structure_statements(DEFAULT_EYFS_STATEMENTS)
        return _STANDARDS.validate_python(raw)

    def flat(self) -> list[str]:
        return flatten_standards(self.all())

    def replace_all(self, standards: Mapping[str, Iterable[str]]) -> Standards:
        cleaned: Standards = {}
        for area, details in standards.items():
            area = area.strip()
            if not area:
                raise InvalidInputError("An EYFS area needs a name")
            cleaned[area] = [detail.strip() for detail in details if detail.strip()]
        self.storage.save(self.key, cleaned)
        return cleaned

    def add_area(self, area: str) -> Standards:
        area = area.strip()
        if not area:
            raise InvalidInputError("An EYFS area needs a name")
        standards = self.all()
        standards.setdefault(area, [])
        return self.replace_all(standards)

    def remove_area(self, area: str) -> Optional[list[str]]:
        standards = self.all()
        removed = standards.pop(area, None)
        if removed is None:
            LOGGER.warning("EYFS area %r not found for %s", area, self.class_name)
            return None
        self.replace_all(standards)
        return removed

    def add_standard(self, area: str, detail: str) -> Standards:
        area = area.strip()
        detail = detail.strip()
        if not area or not detail:
            raise InvalidInputError("An EYFS standard needs an area and a description")
        standards = self.all()
        standards.setdefault(area, []).append(detail)
        return self.replace_all(standards)

    def update_standard(self, area: str, index: int, detail: str) -> Optional[Standards]:
        detail = detail.strip()
        if not detail:
            raise InvalidInputError("An EYFS standard needs a description")
        standards = self.all()
        details = standards.get(area)
        if details is None or not 0 <= index < len(details):
            LOGGER.warning("No EYFS standard %d in area %r for %s", index, area, self.class_name)
            return None
        details[index] = detail
        return self.replace_all(standards)

    def remove_standard(self, area: str, index: int) -> Optional[Standards]:
        """Remove one standard; an area left empty is removed with it."""

        standards = self.all()
        details = standards.get(area)
        if details is None or not 0 <= index < len(details):
            LOGGER.warning("No EYFS standard %d in area %r for %s", index, area, self.class_name)
            return None
        details.pop(index)
        if not details:
            del standards[area]
        return self.replace_all(standards)

    def usage(self, area: str, detail: str, lessons: Mapping[str, Lesson]) -> int:
        """How many lessons are tagged with the standard."""

        statement = f"{area}: {detail}"
        return sum(1 for lesson in lessons.values() if statement in lesson.eyfs_statements)

    def export_document(self) -> dict[str, Any]:
        return {"sheet": self.class_name, "standards": self.all()}

    def import_document(self, payload: Any) -> Standards:
        if not isinstance(payload, dict) or "standards" not in payload:
            raise ImportFormatError("An EYFS file must be an object with a 'standards' field")
        try:
            standards = _STANDARDS.validate_python(payload["standards"])
        except ValidationError as exc:
            raise ImportFormatError(f"Invalid EYFS file: {exc.error_count()} errors") from exc
        if any(not area.strip() for area in standards):
            raise ImportFormatError("An EYFS file must not contain unnamed areas")
        return self.replace_all(standards)

    def filename(self) -> str:
        return f"{self.key}.json"


__all__ = [
    "DEFAULT_EYFS_STATEMENTS",
    "EyfsStandardsRepository",
    "flatten_standards",
    "structure_statements",
]
