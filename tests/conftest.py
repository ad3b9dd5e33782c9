from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from curriculum_designer.schemas import Activity, Lesson
from curriculum_designer.storage import MemoryStorage
from curriculum_designer.store import CurriculumStore


@pytest.fixture()
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture()
def store(storage: MemoryStorage) -> CurriculumStore:
    return CurriculumStore(storage, "LKG")


def make_activity(name: str, category: str = "Welcome", time: int = 5, **fields) -> Activity:
    return Activity(name=name, category=category, time=time, **fields)


def make_lesson(*activities: Activity, title: str | None = None) -> Lesson:
    grouped: dict[str, list[Activity]] = {}
    for activity in activities:
        grouped.setdefault(activity.category, []).append(activity)
    return Lesson(title=title, grouped=grouped)


@pytest.fixture()
def seeded_lessons(store: CurriculumStore) -> dict[str, Lesson]:
    lessons = {
        "1": make_lesson(
            make_activity("Hello Song", "Welcome", 5),
            make_activity("Ta Ti-Ti", "Kodaly Songs", 10, description="<p>Clap the <b>rhythm</b></p>"),
            make_activity("Goodbye Song", "Goodbye", 5),
            title="Clapping",
        ),
        "2": make_lesson(
            make_activity("Hello Song", "Welcome", 5),
            make_activity("Tap Along", "Rhythm Sticks", 15),
        ),
        "3": make_lesson(make_activity("Parachute Pop", "Parachute Games", 20)),
        "7": make_lesson(make_activity("Scarf Dance", "Scarf Songs", 10)),
    }
    store.lessons.replace_all(lessons)
    return store.lessons.all()
