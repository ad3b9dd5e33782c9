"""Display settings and per-class colour themes."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from pydantic import ValidationError

from ..errors import InvalidInputError
from ..schemas import UserSettings
from ..storage import SETTINGS_KEY, StorageAdapter

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Theme:
    primary: str
    secondary: str
    accent: str


CLASS_THEMES: dict[str, Theme] = {
    "LKG": Theme("#10B981", "#059669", "#34D399"),
    "UKG": Theme("#3B82F6", "#2563EB", "#60A5FA"),
    "Reception": Theme("#8B5CF6", "#7C3AED", "#A78BFA"),
}
DEFAULT_THEME_CLASS = "LKG"


class SettingsRepository:
    def __init__(self, storage: StorageAdapter) -> None:
        self.storage = storage

    def get(self) -> UserSettings:
        raw = self.storage.load(SETTINGS_KEY)
        if raw is None:
            return UserSettings()
        try:
            return UserSettings.model_validate(raw)
        except ValidationError:
            LOGGER.warning("Stored display settings are invalid; using defaults")
            return UserSettings()

    def update(self, changes: Mapping[str, Any]) -> UserSettings:
        current = self.get()
        try:
            updated = UserSettings.model_validate({**current.model_dump(), **dict(changes)})
        except ValidationError as exc:
            raise InvalidInputError(str(exc)) from exc
        self.storage.save(SETTINGS_KEY, updated.model_dump(mode="json"))
        return updated

    def reset(self) -> UserSettings:
        defaults = UserSettings()
        self.storage.save(SETTINGS_KEY, defaults.model_dump(mode="json"))
        return defaults


def theme_for_class(class_name: str, settings: UserSettings | None = None) -> Theme:
    """The user's custom colours when enabled, otherwise the class palette."""

    if settings is not None and settings.custom_theme:
        return Theme(settings.primary_color, settings.secondary_color, settings.accent_color)
    return CLASS_THEMES.get(class_name, CLASS_THEMES[DEFAULT_THEME_CLASS])


__all__ = ["CLASS_THEMES", "SettingsRepository", "Theme", "theme_for_class"]
