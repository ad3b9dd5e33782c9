"""Key/value persistence adapters standing in for browser local storage.

Every repository stores one JSON document per key and rewrites it wholesale
on each mutation. Adapters only move JSON-compatible values in and out; they
know nothing about the records inside.
"""
from __future__ import annotations

import json
import logging
import threading
from copy import deepcopy
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.engine import Engine

from .db import create_db_engine, init_db, session_scope
from .db.models import StorageEntry

LOGGER = logging.getLogger(__name__)

ACTIVITY_CATALOG_KEY = "library-activities"
LESSON_PLANS_KEY = "lesson-plans"
SETTINGS_KEY = "lesson-viewer-settings"
HALF_TERMS_KEY = "half-terms"


def categories_key(class_name: str) -> str:
    return f"categories-{class_name}"


def lessons_key(class_name: str) -> str:
    return f"lesson-data-{class_name}"


def units_key(class_name: str) -> str:
    return f"units-{class_name}"


def eyfs_standards_key(class_name: str) -> str:
    return f"eyfs-standards-{class_name}"


@runtime_checkable
class StorageAdapter(Protocol):
    def load(self, key: str) -> Any | None: ...

    def save(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


class MemoryStorage:
    """In-process storage, primarily for tests."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._items: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.save(key, value)

    def load(self, key: str) -> Any | None:
        raw = self._items.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def save(self, key: str, value: Any) -> None:
        # Serialise on write so callers never share mutable state with the store.
        self._items[key] = json.dumps(value, ensure_ascii=False)

    def delete(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._items)

    def snapshot(self) -> dict[str, Any]:
        return {key: self.load(key) for key in self.keys()}


class JsonFileStorage:
    """Thread-safe storage writing one JSON file per key."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        self.directory.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _key_path(self, key: str) -> Path:
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self.directory / f"{safe_key}.json"

    def load(self, key: str) -> Any | None:
        path = self._key_path(key)
        with self._lock:
            if not path.exists():
                return None
            try:
                return json.loads(path.read_text(encoding="utf-8"))
            except json.JSONDecodeError:
                LOGGER.warning("Discarding unreadable storage document %s", path)
                return None

    def save(self, key: str, value: Any) -> None:
        payload = json.dumps(value, indent=2, ensure_ascii=False)
        with self._lock:
            self._key_path(key).write_text(payload, encoding="utf-8")

    def delete(self, key: str) -> None:
        with self._lock:
            self._key_path(key).unlink(missing_ok=True)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(path.stem for path in self.directory.glob("*.json"))


class SqlStorage:
    """Storage backed by a ``storage_entries`` table through SQLAlchemy."""

    def __init__(self, url: str | None = None, *, engine: Engine | None = None) -> None:
        self.engine = engine if engine is not None else create_db_engine(url)
        init_db(self.engine)

    def load(self, key: str) -> Any | None:
        with session_scope(self.engine) as session:
            entry = session.get(StorageEntry, key)
            if entry is None:
                return None
            try:
                return json.loads(entry.value)
            except json.JSONDecodeError:
                LOGGER.warning("Discarding unreadable storage entry %s", key)
                return None

    def save(self, key: str, value: Any) -> None:
        payload = json.dumps(value, ensure_ascii=False)
        with session_scope(self.engine) as session:
            entry = session.get(StorageEntry, key)
            if entry is None:
                session.add(StorageEntry(key=key, value=payload))
            else:
                entry.value = payload
                entry.updated_at = datetime.now(timezone.utc)

    def delete(self, key: str) -> None:
        with session_scope(self.engine) as session:
            entry = session.get(StorageEntry, key)
            if entry is not None:
                session.delete(entry)

    def keys(self) -> list[str]:
        with session_scope(self.engine) as session:
            return list(session.scalars(select(StorageEntry.key).order_by(StorageEntry.key)))


def load_document(storage: StorageAdapter, key: str, default: Any) -> Any:
    """Load ``key`` or return a copy of ``default`` when nothing is stored."""

    value = storage.load(key)
    if value is None:
        return deepcopy(default)
    return value


__all__ = [
    "ACTIVITY_CATALOG_KEY",
    "HALF_TERMS_KEY",
    "JsonFileStorage",
    "LESSON_PLANS_KEY",
    "MemoryStorage",
    "SETTINGS_KEY",
    "SqlStorage",
    "StorageAdapter",
    "categories_key",
    "eyfs_standards_key",
    "lessons_key",
    "load_document",
    "units_key",
]
