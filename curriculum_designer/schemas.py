"""Pydantic schemas shared across the curriculum designer."""
from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .config import DEFAULT_CATEGORY_COLOR

PlanStatus = Literal["planned", "completed", "cancelled"]
HalfTermId = Literal["A1", "A2", "SP1", "SP2", "SM1", "SM2"]

_HEX_COLOUR = re.compile(r"^#(?:[0-9A-Fa-f]{3}){1,2}$")

# Attribute name -> label used when listing an activity's resources.
RESOURCE_FIELDS: tuple[tuple[str, str], ...] = (
    ("video_link", "Video"),
    ("music_link", "Music"),
    ("backing_link", "Backing"),
    ("resource_link", "Resource"),
    ("link", "Link"),
    ("vocals_link", "Vocals"),
    ("image_link", "Image"),
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _unique(values: List[str]) -> List[str]:
    seen: set[str] = set()
    unique = []
    for value in values:
        if value not in seen:
            seen.add(value)
            unique.append(value)
    return unique


def _validate_colour(value: str) -> str:
    if not _HEX_COLOUR.match(value):
        raise ValueError("color must be a hex string such as #3B82F6")
    return value


# ---------------------------------------------------------------------------
# Activities and categories
# ---------------------------------------------------------------------------


class Activity(BaseModel):
    """A reusable teaching activity; identity is ``(name, category)``."""

    name: str
    category: str
    time: int = Field(default=0, ge=0)
    description: str = ""
    level: Optional[str] = None
    video_link: Optional[str] = None
    music_link: Optional[str] = None
    backing_link: Optional[str] = None
    resource_link: Optional[str] = None
    link: Optional[str] = None
    vocals_link: Optional[str] = None
    image_link: Optional[str] = None
    unit_name: Optional[str] = None
    lesson_number: Optional[str] = None
    eyfs_standards: List[str] = Field(default_factory=list)
    instance_id: Optional[str] = None

    @property
    def identity(self) -> tuple[str, str]:
        return (self.name, self.category)

    def resource_links(self) -> list[tuple[str, str]]:
        """Return ``(label, url)`` pairs for every populated resource link."""

        links = []
        for field_name, label in RESOURCE_FIELDS:
            url = getattr(self, field_name)
            if url:
                links.append((label, url))
        return links


class Category(BaseModel):
    name: str = Field(..., min_length=1)
    color: str = DEFAULT_CATEGORY_COLOR
    position: int = Field(default=0, ge=0)

    @field_validator("color")
    @classmethod
    def validate_color(cls, value: str) -> str:
        return _validate_colour(value)


# ---------------------------------------------------------------------------
# Lessons and units
# ---------------------------------------------------------------------------


class Lesson(BaseModel):
    """Content of one numbered teaching slot, grouped by category.

    ``total_time`` and ``category_order`` are derived from ``grouped`` on
    validation, so a lesson loaded from storage or built by hand always
    satisfies both aggregates. Empty category buckets are dropped.
    """

    title: Optional[str] = None
    total_time: int = 0
    grouped: dict[str, List[Activity]] = Field(default_factory=dict)
    category_order: List[str] = Field(default_factory=list)
    eyfs_statements: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def sync_aggregates(self) -> "Lesson":
        grouped = {category: acts for category, acts in self.grouped.items() if acts}
        order = [category for category in self.category_order if category in grouped]
        order.extend(category for category in grouped if category not in order)
        self.grouped = grouped
        self.category_order = order
        self.total_time = sum(activity.time for acts in grouped.values() for activity in acts)
        return self

    def recompute(self) -> "Lesson":
        """Return a validated copy with aggregates rebuilt from ``grouped``."""

        return Lesson.model_validate(self.model_dump())

    def display_title(self, number: str) -> str:
        return self.title or f"Lesson {number}"

    def activities(self) -> list[Activity]:
        """All activities in category display order."""

        return [activity for category in self.category_order for activity in self.grouped[category]]

    def activity_count(self) -> int:
        return sum(len(acts) for acts in self.grouped.values())


class Unit(BaseModel):
    id: str
    name: str
    description: str = ""
    lesson_numbers: List[str] = Field(default_factory=list)
    color: str = "#10B981"
    term: Optional[HalfTermId] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("lesson_numbers")
    @classmethod
    def drop_duplicate_lessons(cls, value: List[str]) -> List[str]:
        return _unique(value)

    @field_validator("color")
    @classmethod
    def validate_color(cls, value: str) -> str:
        return _validate_colour(value)


class HalfTermLessons(BaseModel):
    """A user-chosen, ordered lesson list for one half-term."""

    id: HalfTermId
    lessons: List[str] = Field(default_factory=list)

    @field_validator("lessons")
    @classmethod
    def drop_duplicate_lessons(cls, value: List[str]) -> List[str]:
        return _unique(value)


# ---------------------------------------------------------------------------
# Calendar plans
# ---------------------------------------------------------------------------


class LessonPlan(BaseModel):
    """A dated plan for one class. ``duration`` is always rebuilt from ``activities``."""

    id: str
    date: date
    week: int = Field(default=0, ge=0)
    class_name: str
    activities: List[Activity] = Field(default_factory=list)
    duration: int = 0
    notes: str = ""
    status: PlanStatus = "planned"
    unit_id: Optional[str] = None
    unit_name: Optional[str] = None
    lesson_number: Optional[str] = None
    title: Optional[str] = None
    term: Optional[HalfTermId] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("date", mode="before")
    @classmethod
    def strip_time_of_day(cls, value: object) -> object:
        if isinstance(value, datetime):
            return value.date()
        return value

    @model_validator(mode="after")
    def sync_duration(self) -> "LessonPlan":
        self.duration = sum(activity.time for activity in self.activities)
        return self


# ---------------------------------------------------------------------------
# Display settings
# ---------------------------------------------------------------------------


class UserSettings(BaseModel):
    school_name: str = "Rhythmstix"
    school_logo: str = "/RLOGO.png"
    primary_color: str = "#3B82F6"
    secondary_color: str = "#2563EB"
    accent_color: str = "#60A5FA"
    custom_theme: bool = False

    @field_validator("primary_color", "secondary_color", "accent_color")
    @classmethod
    def validate_colors(cls, value: str) -> str:
        return _validate_colour(value)


__all__ = [
    "Activity",
    "Category",
    "HalfTermId",
    "HalfTermLessons",
    "Lesson",
    "LessonPlan",
    "PlanStatus",
    "RESOURCE_FIELDS",
    "Unit",
    "UserSettings",
    "utc_now",
]
