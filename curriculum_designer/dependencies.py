"""Process-wide storage and store factories."""
from __future__ import annotations

from typing import Optional

from . import config
from .store import CurriculumStore
from .storage import JsonFileStorage, MemoryStorage, SqlStorage, StorageAdapter

_storage: Optional[StorageAdapter] = None


def build_storage(backend: Optional[str] = None) -> StorageAdapter:
    """Create the adapter named by ``backend`` (or the configured one)."""

    backend = (backend or config.STORAGE_BACKEND).lower()
    if backend == "json":
        return JsonFileStorage(config.STORAGE_DIR)
    if backend == "sql":
        return SqlStorage(config.DATABASE_URL)
    if backend == "memory":
        return MemoryStorage()
    raise ValueError(f"Unknown storage backend: {backend}")


def get_storage() -> StorageAdapter:
    """Return the singleton storage adapter instance."""

    global _storage
    if _storage is None:
        _storage = build_storage()
    return _storage


def get_store(class_name: Optional[str] = None) -> CurriculumStore:
    return CurriculumStore(get_storage(), class_name or config.DEFAULT_CLASS)


def reset_storage() -> None:
    global _storage
    _storage = None


__all__ = ["build_storage", "get_storage", "get_store", "reset_storage"]
