from __future__ import annotations

from datetime import date

import pytest

from conftest import make_activity
from curriculum_designer.errors import ImportFormatError
from curriculum_designer.services import transfer
from curriculum_designer.storage import MemoryStorage
from curriculum_designer.store import CurriculumStore


@pytest.fixture()
def populated(store: CurriculumStore, seeded_lessons) -> CurriculumStore:
    store.catalog.import_activities([make_activity("Hello"), make_activity("Bye", "Goodbye")])
    store.categories.add("Custom Songs", "#ABCDEF")
    unit = store.units.create("Welcome Songs", lesson_numbers=["1", "2"], term="A1")
    store.schedule_unit(unit.id, date(2024, 9, 2))
    store.settings.update({"school_name": "Little Notes"})
    return store


def test_database_round_trip_is_identical(populated: CurriculumStore) -> None:
    exported = transfer.export_database(populated.storage)
    text = transfer.dumps(exported)

    target = MemoryStorage()
    imported = transfer.import_database(target, transfer.loads(text))

    assert sorted(imported) == populated.storage.keys()
    assert target.snapshot() == populated.storage.snapshot()
    assert transfer.dumps(transfer.export_database(target)["data"]) == transfer.dumps(exported["data"])


def test_invalid_section_aborts_whole_import(populated: CurriculumStore) -> None:
    target = MemoryStorage({"lesson-plans": []})
    document = transfer.export_database(populated.storage)
    document["data"]["units-LKG"] = [{"name": "No id"}]

    with pytest.raises(ImportFormatError):
        transfer.import_database(target, document)
    assert target.snapshot() == {"lesson-plans": []}


@pytest.mark.parametrize("text", ["{not json", "[]", '{"data": []}'])
def test_malformed_documents_are_rejected(text: str) -> None:
    target = MemoryStorage()
    with pytest.raises(ImportFormatError):
        transfer.import_database(target, transfer.loads(text))
    assert target.keys() == []


def test_category_round_trip_renormalises(populated: CurriculumStore) -> None:
    exported = transfer.export_categories(populated.categories)
    other = CurriculumStore(MemoryStorage(), "LKG")

    transfer.import_categories(other.categories, transfer.loads(transfer.dumps(exported)))
    assert transfer.export_categories(other.categories) == exported

    shuffled = [
        {"name": "B", "color": "#111111", "position": 7},
        {"name": "A", "color": "#222222", "position": 3},
    ]
    imported = transfer.import_categories(other.categories, shuffled)
    assert [(c.name, c.position) for c in imported] == [("A", 0), ("B", 1)]


def test_category_import_rejects_bad_payloads(store: CurriculumStore) -> None:
    before = store.categories.names()
    with pytest.raises(ImportFormatError):
        transfer.import_categories(store.categories, {"name": "Welcome"})
    with pytest.raises(ImportFormatError):
        transfer.import_categories(store.categories, [{"name": "A"}, {"name": "a"}])
    with pytest.raises(ImportFormatError):
        transfer.import_categories(store.categories, [{"name": "A", "color": "blue"}])
    assert store.categories.names() == before


def test_export_filenames() -> None:
    assert (
        transfer.export_filename(date(2024, 9, 2))
        == "curriculum-designer-data-export-2024-09-02.json"
    )
    assert transfer.categories_filename("LKG", date(2024, 9, 2)) == "categories-LKG-2024-09-02.json"


def test_database_import_fixes_plan_durations(store: CurriculumStore) -> None:
    document = {
        "data": {
            "lesson-plans": [
                {
                    "id": "plan-1",
                    "date": "2024-09-02",
                    "class_name": "LKG",
                    "activities": [{"name": "Hello", "category": "Welcome", "time": 10}],
                    "duration": 0,
                }
            ]
        }
    }

    transfer.import_database(store.storage, document)

    [plan] = store.plans.for_date(date(2024, 9, 2), "LKG")
    assert plan.duration == 10
    assert store.storage.load("lesson-plans")[0]["duration"] == 10


def test_database_import_normalises_category_sections(store: CurriculumStore) -> None:
    document = {
        "data": {
            "categories-LKG": [
                {"name": "Goodbye", "color": "#14B8A6", "position": 9},
                {"name": "Welcome", "color": "#F59E0B", "position": 5},
            ]
        }
    }

    transfer.import_database(store.storage, document)

    assert [(c.name, c.position) for c in store.categories.list_all()] == [
        ("Welcome", 0),
        ("Goodbye", 1),
    ]


def test_database_import_rejects_duplicate_category_names(store: CurriculumStore) -> None:
    document = {
        "data": {
            "categories-LKG": [
                {"name": "Welcome", "position": 5},
                {"name": "welcome", "position": 9},
            ],
            "units-LKG": [],
        }
    }

    with pytest.raises(ImportFormatError, match="categories-LKG"):
        transfer.import_database(store.storage, document)
    assert store.storage.keys() == []


def test_database_round_trip_covers_half_terms_and_eyfs(store: CurriculumStore) -> None:
    store.half_terms.assign("SP1", ["14", "13"])
    store.eyfs.add_standard("Music", "Keeps a steady beat")

    exported = transfer.export_database(store.storage)
    assert {"half-terms", "eyfs-standards-LKG"} <= set(exported["data"])

    target = CurriculumStore(MemoryStorage(), "LKG")
    transfer.import_database(target.storage, transfer.loads(transfer.dumps(exported)))

    assert target.half_terms.saved("SP1") == ["14", "13"]
    assert target.eyfs.all()["Music"] == ["Keeps a steady beat"]
