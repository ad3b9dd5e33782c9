"""Exception hierarchy shared by the curriculum services."""
from __future__ import annotations


class CurriculumError(Exception):
    """Base class for errors raised by the curriculum designer."""


class InvalidInputError(CurriculumError, ValueError):
    """Raised when a required field is missing or a value is rejected."""


class DuplicateNameError(InvalidInputError):
    """Raised when a name collides with an existing record."""


class ImportFormatError(CurriculumError, ValueError):
    """Raised when an imported file cannot be parsed or is missing fields."""


class ExportError(CurriculumError, RuntimeError):
    """Raised when rendering an export document fails."""


class ExportInProgressError(ExportError):
    """Raised when an export is requested while another one is running."""


__all__ = [
    "CurriculumError",
    "DuplicateNameError",
    "ExportError",
    "ExportInProgressError",
    "ImportFormatError",
    "InvalidInputError",
]
