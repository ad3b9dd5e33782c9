"""Calendar-anchored lesson plans and the builder's editable draft."""
from __future__ import annotations

import logging
import math
import uuid
from datetime import date, datetime, timedelta
from typing import Iterable, Mapping, Optional

from ..errors import InvalidInputError
from ..schemas import Activity, Lesson, LessonPlan, PlanStatus, Unit, utc_now
from ..storage import LESSON_PLANS_KEY, StorageAdapter, load_document
from .ordering import reorder

LOGGER = logging.getLogger(__name__)

ALL_UNITS = "all"
NO_UNIT = "none"


def _as_day(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def week_number(day: date | datetime) -> int:
    """Weeks since 1 January: ``ceil(days_elapsed / 7)``, so 1 January is week 0."""

    day = _as_day(day)
    elapsed = (day - date(day.year, 1, 1)).days
    return math.ceil(elapsed / 7)


def new_plan_id() -> str:
    return f"plan-{uuid.uuid4().hex}"


def materialise(activity: Activity) -> Activity:
    """Deep copy ``activity`` with a fresh plan-local instance id."""

    return activity.model_copy(deep=True, update={"instance_id": uuid.uuid4().hex})


def _with_activities(plan: LessonPlan, activities: list[Activity]) -> LessonPlan:
    return LessonPlan.model_validate({**plan.model_dump(), "activities": activities})


def add_activity(plan: LessonPlan, activity: Activity) -> LessonPlan:
    return _with_activities(plan, [*plan.activities, materialise(activity)])


def remove_activity(plan: LessonPlan, index: int) -> LessonPlan:
    if not 0 <= index < len(plan.activities):
        LOGGER.warning("Ignoring removal of activity %d from plan %s", index, plan.id)
        return plan
    activities = list(plan.activities)
    activities.pop(index)
    return _with_activities(plan, activities)


def reorder_activity(plan: LessonPlan, from_index: int, to_index: int) -> LessonPlan:
    if not 0 <= from_index < len(plan.activities):
        LOGGER.warning("Ignoring reorder from index %d in plan %s", from_index, plan.id)
        return plan
    return _with_activities(plan, reorder(plan.activities, from_index, to_index))


def blank_plan(day: date | datetime, class_name: str) -> LessonPlan:
    day = _as_day(day)
    return LessonPlan(id=new_plan_id(), date=day, week=week_number(day), class_name=class_name)


class LessonPlanRepository:
    """Every class's plans, stored together under ``lesson-plans``."""

    def __init__(self, storage: StorageAdapter) -> None:
        self.storage = storage

    def _read(self) -> list[LessonPlan]:
        raw = load_document(self.storage, LESSON_PLANS_KEY, [])
        return [LessonPlan.model_validate(item) for item in raw]

    def _write(self, plans: list[LessonPlan]) -> None:
        self.storage.save(LESSON_PLANS_KEY, [plan.model_dump(mode="json") for plan in plans])

    def list_all(self, class_name: Optional[str] = None) -> list[LessonPlan]:
        plans = self._read()
        if class_name is None:
            return plans
        return [plan for plan in plans if plan.class_name == class_name]

    def get(self, plan_id: str) -> Optional[LessonPlan]:
        for plan in self._read():
            if plan.id == plan_id:
                return plan
        return None

    def save(self, plan: LessonPlan) -> LessonPlan:
        """Insert ``plan`` or replace the stored plan with the same id."""

        if not plan.class_name.strip():
            raise InvalidInputError("A lesson plan needs a class name")
        plan = plan.model_copy(update={"updated_at": utc_now()})
        plans = self._read()
        for index, existing in enumerate(plans):
            if existing.id == plan.id:
                plans[index] = plan
                break
        else:
            plans.append(plan)
        self._write(plans)
        return plan

    def for_date(
        self,
        day: date | datetime,
        class_name: str,
        unit_filter: str = ALL_UNITS,
    ) -> list[LessonPlan]:
        day = _as_day(day)
        plans = [
            plan
            for plan in self._read()
            if plan.date == day and plan.class_name == class_name
        ]
        if unit_filter == ALL_UNITS:
            return plans
        if unit_filter == NO_UNIT:
            return [plan for plan in plans if not plan.unit_id]
        return [plan for plan in plans if plan.unit_id == unit_filter]

    def create_for_date(self, day: date | datetime, class_name: str) -> LessonPlan:
        return self.save(blank_plan(day, class_name))

    def assign_unit_to_calendar(
        self,
        unit: Unit,
        start_date: date | datetime,
        class_name: str,
        lessons: Optional[Mapping[str, Lesson]] = None,
    ) -> list[LessonPlan]:
        """Schedule one plan per unit lesson on consecutive days from ``start_date``.

        Lesson content found in ``lessons`` is copied into each plan; numbers
        with no lesson produce an empty plan that still carries the tags.
        """

        start = _as_day(start_date)
        week = week_number(start)
        lessons = lessons or {}
        created = []
        for offset, number in enumerate(unit.lesson_numbers):
            lesson = lessons.get(number)
            activities = [materialise(a) for a in lesson.activities()] if lesson else []
            created.append(
                LessonPlan(
                    id=new_plan_id(),
                    date=start + timedelta(days=offset),
                    week=week,
                    class_name=class_name,
                    activities=activities,
                    unit_id=unit.id,
                    unit_name=unit.name,
                    lesson_number=number,
                    title=lesson.display_title(number) if lesson else f"Lesson {number}",
                    term=unit.term,
                )
            )
        plans = self._read()
        plans.extend(created)
        self._write(plans)
        LOGGER.info(
            "Scheduled unit %s for %s: %d plans from %s",
            unit.name,
            class_name,
            len(created),
            start.isoformat(),
        )
        return created

    def delete_by_id(self, plan_id: str) -> Optional[LessonPlan]:
        plans = self._read()
        removed = next((plan for plan in plans if plan.id == plan_id), None)
        if removed is None:
            LOGGER.warning("Lesson plan %s not found", plan_id)
            return None
        self._write([plan for plan in plans if plan.id != plan_id])
        return removed

    def set_status(self, plan_id: str, status: PlanStatus) -> Optional[LessonPlan]:
        plan = self.get(plan_id)
        if plan is None:
            LOGGER.warning("Lesson plan %s not found", plan_id)
            return None
        return self.save(LessonPlan.model_validate({**plan.model_dump(), "status": status}))

    def drop_activity(
        self, day: date | datetime, class_name: str, activity: Activity
    ) -> LessonPlan:
        """Add ``activity`` to the day's only plan, or start a new plan with it."""

        existing = self.for_date(day, class_name)
        base = existing[0] if len(existing) == 1 else blank_plan(day, class_name)
        return self.save(add_activity(base, activity))

    def unit_options(self, class_name: str) -> list[tuple[str, str]]:
        """Distinct ``(unit_id, unit_name)`` pairs referenced by a class's plans."""

        seen: dict[str, str] = {}
        for plan in self.list_all(class_name):
            if plan.unit_id and plan.unit_id not in seen:
                seen[plan.unit_id] = plan.unit_name or plan.unit_id
        return sorted(seen.items(), key=lambda item: item[1].casefold())

    def scrub_lesson(self, number: str, class_name: str) -> int:
        """Unlink ``number`` from the class's plans, keeping their activities."""

        plans = self._read()
        changed = 0
        for index, plan in enumerate(plans):
            if plan.class_name == class_name and plan.lesson_number == number:
                plans[index] = plan.model_copy(
                    update={"lesson_number": None, "updated_at": utc_now()}
                )
                changed += 1
        if changed:
            self._write(plans)
        return changed


class PlanBuilder:
    """Holds the single editable draft of the plan builder."""

    def __init__(self, repository: LessonPlanRepository) -> None:
        self.repository = repository
        self.draft: Optional[LessonPlan] = None

    def start(self, day: date | datetime, class_name: str) -> LessonPlan:
        self.draft = blank_plan(day, class_name)
        return self.draft

    def open(self, plan: LessonPlan) -> LessonPlan:
        self.draft = plan.model_copy(deep=True)
        return self.draft

    def _require_draft(self) -> LessonPlan:
        if self.draft is None:
            raise InvalidInputError("No lesson plan is being edited")
        return self.draft

    def add(self, activity: Activity) -> LessonPlan:
        self.draft = add_activity(self._require_draft(), activity)
        return self.draft

    def add_many(self, activities: Iterable[Activity]) -> LessonPlan:
        for activity in activities:
            self.add(activity)
        return self._require_draft()

    def remove(self, index: int) -> LessonPlan:
        self.draft = remove_activity(self._require_draft(), index)
        return self.draft

    def reorder(self, from_index: int, to_index: int) -> LessonPlan:
        self.draft = reorder_activity(self._require_draft(), from_index, to_index)
        return self.draft

    def edit(self, **fields) -> LessonPlan:
        draft = self._require_draft()
        fields.pop("activities", None)
        fields.pop("duration", None)
        updated = LessonPlan.model_validate({**draft.model_dump(), **fields})
        if "date" in fields:
            updated = updated.model_copy(update={"week": week_number(updated.date)})
        self.draft = updated
        return self.draft

    def save(self) -> LessonPlan:
        self.draft = self.repository.save(self._require_draft())
        return self.draft

    def discard(self) -> None:
        self.draft = None


__all__ = [
    "ALL_UNITS",
    "LessonPlanRepository",
    "NO_UNIT",
    "PlanBuilder",
    "add_activity",
    "blank_plan",
    "materialise",
    "remove_activity",
    "reorder_activity",
    "week_number",
]
