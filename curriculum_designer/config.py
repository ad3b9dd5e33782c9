"""Application configuration settings."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Final

BASE_DIR: Final[Path] = Path(__file__).resolve().parent.parent
DATA_DIR: Final[Path] = Path(
    os.getenv("CURRICULUM_DATA_DIR", str(BASE_DIR / "data"))
)
STORAGE_DIR: Final[Path] = DATA_DIR / "storage"

# One of "json", "sql" or "memory".
STORAGE_BACKEND: Final[str] = os.getenv("CURRICULUM_STORAGE_BACKEND", "json").lower()
DATABASE_URL: Final[str] = os.getenv(
    "CURRICULUM_DATABASE_URL", f"sqlite:///{(DATA_DIR / 'curriculum.db').as_posix()}"
)

DEFAULT_CLASS: Final[str] = os.getenv("CURRICULUM_DEFAULT_CLASS", "LKG")
LOG_LEVEL: Final[str] = os.getenv("CURRICULUM_LOG_LEVEL", "INFO").upper()

# Single hardcoded administrator account.
ADMIN_EMAIL: Final[str] = os.getenv("CURRICULUM_ADMIN_EMAIL", "admin@rhythmstix.co.uk")
ADMIN_PASSWORD: Final[str] = os.getenv("CURRICULUM_ADMIN_PASSWORD", "admin123")

DEFAULT_CATEGORY_COLOR: Final[str] = "#6B7280"


def configure_logging(level: str | int | None = None) -> None:
    """Apply a basic logging configuration for embedding applications."""

    logging.basicConfig(level=level or LOG_LEVEL)
