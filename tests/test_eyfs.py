from __future__ import annotations

import pytest

from conftest import make_activity, make_lesson
from curriculum_designer.errors import ImportFormatError, InvalidInputError
from curriculum_designer.services.eyfs import (
    DEFAULT_EYFS_STATEMENTS,
    EyfsStandardsRepository,
    flatten_standards,
    structure_statements,
)
from curriculum_designer.storage import MemoryStorage


@pytest.fixture()
def standards(storage: MemoryStorage) -> EyfsStandardsRepository:
    return EyfsStandardsRepository(storage, "LKG")


def test_structure_groups_by_area() -> None:
    grouped = structure_statements(["Speaking: Sings", "Speaking: Talks", "Free play"])

    assert grouped == {"Speaking": ["Sings", "Talks"], "Free play": ["Free play"]}
    assert flatten_standards({"Speaking": ["Sings"]}) == ["Speaking: Sings"]


def test_unsaved_class_reads_default_library(standards: EyfsStandardsRepository) -> None:
    library = standards.all()

    assert list(library)[0] == "Communication and Language"
    assert len(standards.flat()) == len(DEFAULT_EYFS_STATEMENTS)
    assert standards.storage.keys() == []


def test_edit_areas_and_standards(standards: EyfsStandardsRepository) -> None:
    standards.replace_all({})
    standards.add_area(" Music ")
    standards.add_standard("Music", "Keeps a steady beat")
    standards.add_standard("Music", "Sings in tune")
    standards.update_standard("Music", 1, "Sings  in tune with others ")

    assert standards.all() == {"Music": ["Keeps a steady beat", "Sings  in tune with others"]}
    assert standards.update_standard("Music", 5, "x") is None
    assert standards.remove_area("Dance") is None

    standards.remove_standard("Music", 0)
    assert standards.remove_standard("Music", 0) == {}
    assert standards.storage.load("eyfs-standards-LKG") == {}

    with pytest.raises(InvalidInputError):
        standards.add_standard("Music", "  ")
    with pytest.raises(InvalidInputError):
        standards.add_area("")


def test_libraries_are_scoped_per_class(storage: MemoryStorage) -> None:
    EyfsStandardsRepository(storage, "LKG").replace_all({"Music": ["Claps"]})

    assert EyfsStandardsRepository(storage, "UKG").all() != {"Music": ["Claps"]}


def test_usage_counts_tagged_lessons(standards: EyfsStandardsRepository) -> None:
    tagged = make_lesson(make_activity("Hello"))
    tagged.eyfs_statements.append("Speaking: Sings")
    lessons = {"1": tagged, "2": make_lesson(make_activity("Bye"))}

    assert standards.usage("Speaking", "Sings", lessons) == 1
    assert standards.usage("Speaking", "Talks", lessons) == 0


def test_export_and_import_document(standards: EyfsStandardsRepository) -> None:
    standards.replace_all({"Music": ["Claps"]})
    document = standards.export_document()
    assert document == {"sheet": "LKG", "standards": {"Music": ["Claps"]}}
    assert standards.filename() == "eyfs-standards-LKG.json"

    other = EyfsStandardsRepository(MemoryStorage(), "UKG")
    assert other.import_document(document) == {"Music": ["Claps"]}

    with pytest.raises(ImportFormatError):
        other.import_document({"sheet": "UKG"})
    with pytest.raises(ImportFormatError):
        other.import_document({"standards": {"Music": "Claps"}})
    assert other.all() == {"Music": ["Claps"]}
