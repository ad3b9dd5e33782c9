"""Calendar grids and the date -> plans index behind them."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from ..schemas import LessonPlan
from .lesson_plans import ALL_UNITS, LessonPlanRepository


@dataclass(slots=True)
class CalendarDay:
    date: date
    in_current_month: bool
    plans: list[LessonPlan] = field(default_factory=list)


def _as_day(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def start_of_week(day: date | datetime) -> date:
    """The Sunday on or before ``day``."""

    day = _as_day(day)
    return day - timedelta(days=(day.weekday() + 1) % 7)


def month_grid(reference: date | datetime) -> list[CalendarDay]:
    """Whole Sunday-first weeks covering the month containing ``reference``.

    Leading cells come from the previous month and trailing cells from the
    next, so the result length is always a multiple of seven.
    """

    reference = _as_day(reference)
    first = reference.replace(day=1)
    next_month = (first + timedelta(days=32)).replace(day=1)
    grid_start = start_of_week(first)
    span = (next_month - grid_start).days
    cells = span + (-span) % 7
    days = []
    for offset in range(cells):
        day = grid_start + timedelta(days=offset)
        days.append(CalendarDay(date=day, in_current_month=day.month == first.month))
    return days


def week_days(reference: date | datetime) -> list[date]:
    start = start_of_week(reference)
    return [start + timedelta(days=offset) for offset in range(7)]


def month_view(
    repository: LessonPlanRepository,
    reference: date | datetime,
    class_name: str,
    unit_filter: str = ALL_UNITS,
) -> list[CalendarDay]:
    """The month grid with each cell's plans looked up for ``class_name``."""

    grid = month_grid(reference)
    for cell in grid:
        cell.plans = repository.for_date(cell.date, class_name, unit_filter)
    return grid


def week_view(
    repository: LessonPlanRepository,
    reference: date | datetime,
    class_name: str,
    unit_filter: str = ALL_UNITS,
) -> list[CalendarDay]:
    reference = _as_day(reference)
    return [
        CalendarDay(
            date=day,
            in_current_month=day.month == reference.month,
            plans=repository.for_date(day, class_name, unit_filter),
        )
        for day in week_days(reference)
    ]


__all__ = [
    "CalendarDay",
    "month_grid",
    "month_view",
    "start_of_week",
    "week_days",
    "week_view",
]
