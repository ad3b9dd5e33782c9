from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from curriculum_designer.storage import (
    JsonFileStorage,
    MemoryStorage,
    SqlStorage,
    StorageAdapter,
    load_document,
)
from curriculum_designer.store import CurriculumStore


@pytest.fixture()
def sql_storage() -> SqlStorage:
    engine = create_engine(
        "sqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    return SqlStorage(engine=engine)


@pytest.fixture(params=["memory", "json", "sql"])
def adapter(request, tmp_path: Path, sql_storage: SqlStorage) -> StorageAdapter:
    if request.param == "memory":
        return MemoryStorage()
    if request.param == "json":
        return JsonFileStorage(tmp_path / "storage")
    return sql_storage


def test_adapters_round_trip_documents(adapter: StorageAdapter) -> None:
    assert isinstance(adapter, StorageAdapter)
    assert adapter.load("lesson-plans") is None

    adapter.save("lesson-plans", [{"id": "plan-1", "notes": "Ünïcode ♪"}])
    adapter.save("units-LKG", [])
    adapter.save("lesson-plans", [{"id": "plan-2"}])

    assert adapter.load("lesson-plans") == [{"id": "plan-2"}]
    assert adapter.keys() == ["lesson-plans", "units-LKG"]

    adapter.delete("units-LKG")
    adapter.delete("never-stored")
    assert adapter.keys() == ["lesson-plans"]


def test_memory_storage_does_not_share_mutable_state() -> None:
    storage = MemoryStorage()
    document = {"lessons": {}}
    storage.save("lesson-data-LKG", document)
    document["lessons"]["1"] = {}

    assert storage.load("lesson-data-LKG") == {"lessons": {}}


def test_json_storage_treats_corrupt_files_as_empty(tmp_path: Path, caplog) -> None:
    storage = JsonFileStorage(tmp_path)
    (tmp_path / "lesson-plans.json").write_text("{oops", encoding="utf-8")

    assert storage.load("lesson-plans") is None
    assert "unreadable" in caplog.text
    assert load_document(storage, "lesson-plans", []) == []


def test_store_works_over_sql_storage(sql_storage: SqlStorage) -> None:
    store = CurriculumStore(sql_storage, "Reception")
    store.categories.add("Drumming", "#06B6D4")

    reopened = CurriculumStore(sql_storage, "Reception")
    assert "Drumming" in reopened.categories.names()
    assert sql_storage.keys() == ["categories-Reception"]


def test_build_storage_follows_configuration(tmp_path: Path, monkeypatch) -> None:
    from curriculum_designer import config, dependencies

    monkeypatch.setattr(config, "STORAGE_DIR", tmp_path / "json")
    assert isinstance(dependencies.build_storage("json"), JsonFileStorage)
    assert isinstance(dependencies.build_storage("memory"), MemoryStorage)
    with pytest.raises(ValueError):
        dependencies.build_storage("redis")

    monkeypatch.setattr(config, "STORAGE_BACKEND", "memory")
    dependencies.reset_storage()
    try:
        assert dependencies.get_storage() is dependencies.get_storage()
        assert dependencies.get_store().class_name == config.DEFAULT_CLASS
    finally:
        dependencies.reset_storage()
