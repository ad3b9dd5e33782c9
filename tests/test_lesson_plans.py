from __future__ import annotations

from datetime import date, datetime

import pytest

from conftest import make_activity
from curriculum_designer.errors import InvalidInputError
from curriculum_designer.schemas import LessonPlan
from curriculum_designer.services.lesson_plans import (
    add_activity,
    blank_plan,
    remove_activity,
    reorder_activity,
    week_number,
)
from curriculum_designer.store import CurriculumStore


def _assert_duration_invariant(plan: LessonPlan) -> None:
    assert plan.duration == sum(activity.time for activity in plan.activities)


def test_week_number_counts_whole_weeks_since_new_year() -> None:
    assert week_number(date(2024, 1, 1)) == 0
    assert week_number(date(2024, 1, 2)) == 1
    assert week_number(date(2024, 1, 8)) == 1
    assert week_number(date(2024, 1, 9)) == 2
    assert week_number(datetime(2024, 9, 2, 15, 30)) == week_number(date(2024, 9, 2))


def test_add_then_remove_returns_to_empty() -> None:
    plan = blank_plan(date(2024, 9, 2), "LKG")
    assert plan.duration == 0

    with_activity = add_activity(plan, make_activity("Hello", time=10))
    assert with_activity.duration == 10
    assert len(with_activity.activities) == 1

    emptied = remove_activity(with_activity, 0)
    assert emptied.duration == 0
    assert emptied.activities == []
    assert plan.activities == []


def test_same_activity_added_twice_gets_distinct_instances() -> None:
    hello = make_activity("Hello", time=5)
    plan = add_activity(add_activity(blank_plan(date(2024, 9, 2), "LKG"), hello), hello)

    first, second = plan.activities
    assert first.instance_id and second.instance_id
    assert first.instance_id != second.instance_id
    assert hello.instance_id is None


def test_duration_invariant_through_mixed_edits() -> None:
    plan = blank_plan(date(2024, 9, 2), "LKG")
    for name, minutes in (("A", 5), ("B", 10), ("C", 0), ("D", 7)):
        plan = add_activity(plan, make_activity(name, time=minutes))
        _assert_duration_invariant(plan)

    plan = reorder_activity(plan, 0, 3)
    _assert_duration_invariant(plan)
    assert [a.name for a in plan.activities] == ["B", "C", "D", "A"]

    plan = remove_activity(plan, 1)
    _assert_duration_invariant(plan)
    plan = remove_activity(plan, 10)
    _assert_duration_invariant(plan)
    assert [a.name for a in plan.activities] == ["B", "D", "A"]


def test_for_date_returns_every_plan_for_that_day(store: CurriculumStore) -> None:
    first = store.plans.create_for_date(date(2024, 9, 2), "LKG")
    second = store.plans.create_for_date(datetime(2024, 9, 2, 14, 0), "LKG")
    store.plans.create_for_date(date(2024, 9, 2), "UKG")
    store.plans.create_for_date(date(2024, 9, 3), "LKG")

    found = store.plans.for_date(datetime(2024, 9, 2, 8, 0), "LKG")
    assert {plan.id for plan in found} == {first.id, second.id}


def test_create_for_date_initialises_plan(store: CurriculumStore) -> None:
    plan = store.plans.create_for_date(date(2024, 9, 2), "LKG")

    assert plan.status == "planned"
    assert plan.activities == []
    assert plan.duration == 0
    assert plan.week == week_number(date(2024, 9, 2))
    assert store.plans.get(plan.id) == plan


def test_assign_unit_to_calendar_welcome_songs(store: CurriculumStore, seeded_lessons) -> None:
    unit = store.units.create("Welcome Songs", lesson_numbers=["1", "2", "3"], term="A1")

    plans = store.plans.assign_unit_to_calendar(
        unit, date(2024, 9, 2), "LKG", store.lessons.all()
    )

    assert [plan.date for plan in plans] == [
        date(2024, 9, 2),
        date(2024, 9, 3),
        date(2024, 9, 4),
    ]
    assert [plan.lesson_number for plan in plans] == ["1", "2", "3"]
    assert {plan.unit_name for plan in plans} == {"Welcome Songs"}
    assert {plan.unit_id for plan in plans} == {unit.id}
    assert {plan.term for plan in plans} == {"A1"}
    assert {plan.week for plan in plans} == {week_number(date(2024, 9, 2))}
    assert plans[0].title == "Clapping"
    assert plans[1].title == "Lesson 2"
    for plan in plans:
        _assert_duration_invariant(plan)
    assert len(store.plans.list_all("LKG")) == 3


def test_delete_by_id_returns_removed_plan(store: CurriculumStore) -> None:
    plan = store.plans.create_for_date(date(2024, 9, 2), "LKG")

    removed = store.plans.delete_by_id(plan.id)
    assert removed == plan
    assert store.plans.get(plan.id) is None
    assert store.plans.delete_by_id(plan.id) is None


def test_status_can_move_in_any_direction(store: CurriculumStore) -> None:
    plan = store.plans.create_for_date(date(2024, 9, 2), "LKG")

    assert store.plans.set_status(plan.id, "completed").status == "completed"
    assert store.plans.set_status(plan.id, "planned").status == "planned"
    assert store.plans.set_status(plan.id, "cancelled").status == "cancelled"
    assert store.plans.set_status("plan-missing", "planned") is None


def test_drop_activity_appends_to_single_plan_or_creates_one(store: CurriculumStore) -> None:
    day = date(2024, 10, 1)
    created = store.plans.drop_activity(day, "LKG", make_activity("Hello", time=5))
    appended = store.plans.drop_activity(day, "LKG", make_activity("Bye", "Goodbye", 3))

    assert appended.id == created.id
    assert appended.duration == 8

    store.plans.create_for_date(day, "LKG")
    third = store.plans.drop_activity(day, "LKG", make_activity("Extra", time=2))
    assert third.id != created.id
    assert len(store.plans.for_date(day, "LKG")) == 3


def test_unit_filter_and_unit_options(store: CurriculumStore) -> None:
    unit = store.units.create("Welcome Songs", lesson_numbers=["1"])
    [scheduled] = store.plans.assign_unit_to_calendar(unit, date(2024, 9, 2), "LKG")
    loose = store.plans.create_for_date(date(2024, 9, 2), "LKG")

    assert [p.id for p in store.plans.for_date(date(2024, 9, 2), "LKG", "none")] == [loose.id]
    assert [p.id for p in store.plans.for_date(date(2024, 9, 2), "LKG", unit.id)] == [
        scheduled.id
    ]
    assert store.plans.unit_options("LKG") == [(unit.id, "Welcome Songs")]


def test_save_rejects_blank_class(store: CurriculumStore) -> None:
    with pytest.raises(InvalidInputError):
        store.plans.save(blank_plan(date(2024, 9, 2), " "))


def test_plan_builder_holds_single_draft(store: CurriculumStore) -> None:
    builder = store.builder
    with pytest.raises(InvalidInputError):
        builder.add(make_activity("Hello"))

    builder.start(date(2024, 9, 2), "LKG")
    builder.add_many([make_activity("Hello", time=5), make_activity("Sing", time=10)])
    builder.reorder(1, 0)
    builder.edit(notes="<p>Bring drums</p>", date=date(2024, 9, 9), duration=999)
    draft = builder.remove(1)

    assert [a.name for a in draft.activities] == ["Sing"]
    assert draft.duration == 10
    assert draft.week == week_number(date(2024, 9, 9))
    assert store.plans.list_all() == []

    saved = builder.save()
    assert store.plans.get(saved.id).notes == "<p>Bring drums</p>"

    builder.discard()
    assert builder.draft is None


def test_duration_is_rebuilt_from_activities_on_construction(store: CurriculumStore) -> None:
    plan = LessonPlan(
        id="plan-1",
        date=date(2024, 9, 2),
        class_name="LKG",
        activities=[make_activity("Hello", time=10)],
    )
    assert plan.duration == 10

    store.builder.open(plan)
    emptied = store.builder.remove(0)
    assert emptied.duration == 0
    store.builder.save()

    [saved] = store.plans.for_date(date(2024, 9, 2), "LKG")
    assert saved.duration == 0
    assert saved.activities == []


def test_stored_plan_with_stale_duration_is_corrected_on_read(store: CurriculumStore) -> None:
    store.storage.save(
        "lesson-plans",
        [
            {
                "id": "plan-1",
                "date": "2024-09-02",
                "class_name": "LKG",
                "activities": [{"name": "Hello", "category": "Welcome", "time": 10}],
                "duration": -10,
            }
        ],
    )

    [plan] = store.plans.for_date(date(2024, 9, 2), "LKG")
    assert plan.duration == 10
    assert remove_activity(plan, 0).duration == 0
