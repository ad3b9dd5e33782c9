"""SQLAlchemy model package."""
from curriculum_designer.db.models.storage_entry import StorageEntry

__all__ = [
    "StorageEntry",
]
