"""Storage entry model."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from curriculum_designer.db import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StorageEntry(Base):
    """One persisted JSON document, addressed by its storage key."""

    __tablename__ = "storage_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utc_now
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"StorageEntry(key={self.key!r})"
