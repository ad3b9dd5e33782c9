from __future__ import annotations

import logging

from conftest import make_activity, make_lesson
from curriculum_designer.schemas import Lesson
from curriculum_designer.services.lessons import LessonRepository, group_activities
from curriculum_designer.store import CurriculumStore


def test_lesson_aggregates_are_derived_from_grouped() -> None:
    lesson = Lesson(
        total_time=999,
        grouped={
            "Goodbye": [make_activity("Bye", "Goodbye", 5)],
            "Empty": [],
            "Welcome": [make_activity("Hi", "Welcome", 7)],
        },
        category_order=["Welcome", "Missing"],
    )

    assert lesson.total_time == 12
    assert lesson.category_order == ["Welcome", "Goodbye"]
    assert set(lesson.grouped) == {"Welcome", "Goodbye"}
    assert lesson.display_title("4") == "Lesson 4"


def test_group_activities_uses_preferred_category_order() -> None:
    lesson = group_activities(
        [
            make_activity("Zebra", "Zoo Games"),
            make_activity("Bye", "Goodbye"),
            make_activity("Hi", "Welcome"),
            make_activity("Apple", "Apple Games"),
        ]
    )
    assert lesson.category_order == ["Welcome", "Goodbye", "Apple Games", "Zoo Games"]


def test_lesson_numbers_sort_numerically(store: CurriculumStore, seeded_lessons) -> None:
    assert store.lessons.lesson_numbers() == ["1", "2", "3", "7"]
    assert store.lessons.get("99") is None


def test_update_title(store: CurriculumStore, seeded_lessons) -> None:
    store.lessons.update_title("2", "Sticks Day")
    assert store.lessons.get("2").title == "Sticks Day"


def test_update_activity_recomputes_total_time(store: CurriculumStore, seeded_lessons) -> None:
    updated = store.lessons.update_activity("1", "Welcome", ("Hello Song", "Welcome"), {"time": 12})

    assert updated is True
    lesson = store.lessons.get("1")
    assert lesson.grouped["Welcome"][0].time == 12
    assert lesson.total_time == 27


def test_update_activity_moving_category(store: CurriculumStore, seeded_lessons) -> None:
    store.lessons.update_activity(
        "2", "Welcome", ("Hello Song", "Welcome"), {"category": "Core Songs"}
    )
    lesson = store.lessons.get("2")

    assert "Welcome" not in lesson.grouped
    assert lesson.category_order == ["Rhythm Sticks", "Core Songs"]
    assert lesson.total_time == 20


def test_update_activity_miss_is_logged_and_dropped(
    store: CurriculumStore, seeded_lessons, caplog
) -> None:
    before = store.lessons.get("1")
    with caplog.at_level(logging.WARNING):
        assert store.lessons.update_activity("1", "Welcome", ("Nope", "Welcome"), {"time": 1}) is False
        assert store.lessons.update_activity("1", "Nowhere", ("Hello Song", "Nowhere"), {}) is False
        assert store.lessons.update_activity("42", "Welcome", ("Hello Song", "Welcome"), {}) is False

    assert store.lessons.get("1") == before
    assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 3


def test_delete_returns_removed_lesson(store: CurriculumStore, seeded_lessons) -> None:
    removed = store.lessons.delete("3")
    assert removed is not None and removed.total_time == 20
    assert store.lessons.delete("3") is None
    assert "3" not in store.lessons.lesson_numbers()


def test_eyfs_statements(store: CurriculumStore, seeded_lessons) -> None:
    store.lessons.add_eyfs_statement("1", "Expressive Arts: sings songs")
    store.lessons.add_eyfs_statement("1", "Expressive Arts: sings songs")
    assert store.lessons.get("1").eyfs_statements == ["Expressive Arts: sings songs"]

    store.lessons.remove_eyfs_statement("1", "Expressive Arts: sings songs")
    assert store.lessons.get("1").eyfs_statements == []


def test_search_by_text_and_half_term(store: CurriculumStore, seeded_lessons) -> None:
    assert store.lessons.search("hello") == ["1", "2"]
    assert store.lessons.search("clapping") == ["1"]
    assert store.lessons.search("", term="A2") == ["7"]
    assert store.lessons.search("scarf", term="A1") == []


def test_lessons_are_scoped_per_class(store: CurriculumStore, seeded_lessons) -> None:
    other = LessonRepository(store.storage, "UKG")
    assert other.all() == {}
    other.save("1", make_lesson(make_activity("Only UKG")))
    assert store.lessons.get("1").title == "Clapping"
