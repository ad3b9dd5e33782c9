"""Per-class ordered, coloured category taxonomy."""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from pydantic import ValidationError

from ..config import DEFAULT_CATEGORY_COLOR
from ..errors import DuplicateNameError, InvalidInputError
from ..schemas import Category
from ..storage import StorageAdapter, categories_key

LOGGER = logging.getLogger(__name__)

# Seed list restored by ``reset_to_defaults``.
DEFAULT_CATEGORIES: tuple[tuple[str, str], ...] = (
    ("Welcome", "#F59E0B"),
    ("Kodaly Songs", "#8B5CF6"),
    ("Kodaly Action Songs", "#F97316"),
    ("Action/Games Songs", "#F97316"),
    ("Rhythm Sticks", "#D97706"),
    ("Scarf Songs", "#10B981"),
    ("General Game", "#3B82F6"),
    ("Core Songs", "#84CC16"),
    ("Parachute Games", "#EF4444"),
    ("Percussion Games", "#06B6D4"),
    ("Teaching Units", "#6366F1"),
    ("Goodbye", "#14B8A6"),
    ("Kodaly Rhythms", "#9333EA"),
    ("Kodaly Games", "#F59E0B"),
    ("IWB Games", "#FBBF24"),
)


def _build_category(name: str, color: str, position: int) -> Category:
    try:
        return Category(name=name, color=color, position=position)
    except ValidationError as exc:
        raise InvalidInputError(str(exc)) from exc


def default_categories() -> list[Category]:
    return [
        Category(name=name, color=color, position=position)
        for position, (name, color) in enumerate(DEFAULT_CATEGORIES)
    ]


def normalise_positions(categories: Iterable[Category]) -> list[Category]:
    """Return the categories in order with positions rewritten to ``0..n-1``."""

    return [
        category.model_copy(update={"position": position})
        for position, category in enumerate(categories)
    ]


class CategoryRegistry:
    """Category list for one class, stored under ``categories-{class}``."""

    def __init__(self, storage: StorageAdapter, class_name: str) -> None:
        self.storage = storage
        self.class_name = class_name
        self.key = categories_key(class_name)

    def list_all(self) -> list[Category]:
        raw = self.storage.load(self.key)
        if raw is None:
            return default_categories()
        categories = [Category.model_validate(item) for item in raw]
        return sorted(categories, key=lambda category: category.position)

    def replace_all(self, categories: Iterable[Category]) -> list[Category]:
        normalised = normalise_positions(categories)
        self.storage.save(self.key, [category.model_dump(mode="json") for category in normalised])
        return normalised

    def _find(self, categories: list[Category], name: str) -> Optional[int]:
        folded = name.strip().casefold()
        for index, category in enumerate(categories):
            if category.name.casefold() == folded:
                return index
        return None

    def _check_index(self, categories: list[Category], index: int) -> None:
        if not 0 <= index < len(categories):
            raise InvalidInputError(f"No category at position {index}")

    def add(self, name: str, color: str = DEFAULT_CATEGORY_COLOR) -> Category:
        name = name.strip()
        if not name:
            raise InvalidInputError("Category name is required")
        categories = self.list_all()
        if self._find(categories, name) is not None:
            raise DuplicateNameError(f"A category named '{name}' already exists")
        category = _build_category(name, color, len(categories))
        self.replace_all([*categories, category])
        return category

    def update(self, index: int, name: str, color: str) -> Category:
        name = name.strip()
        if not name:
            raise InvalidInputError("Category name is required")
        categories = self.list_all()
        self._check_index(categories, index)
        clash = self._find(categories, name)
        if clash is not None and clash != index:
            raise DuplicateNameError(f"A category named '{name}' already exists")
        categories[index] = _build_category(name, color, categories[index].position)
        return self.replace_all(categories)[index]

    def remove(self, index: int) -> Category:
        categories = self.list_all()
        self._check_index(categories, index)
        removed = categories.pop(index)
        self.replace_all(categories)
        return removed

    def reorder(self, dragged_name: str, target_name: str) -> list[Category]:
        categories = self.list_all()
        if dragged_name == target_name:
            return categories
        dragged = self._find(categories, dragged_name)
        target = self._find(categories, target_name)
        if dragged is None or target is None:
            LOGGER.warning(
                "Ignoring category reorder %r -> %r for %s: unknown name",
                dragged_name,
                target_name,
                self.class_name,
            )
            return categories
        moved = categories.pop(dragged)
        categories.insert(target, moved)
        return self.replace_all(categories)

    def reset_to_defaults(self) -> list[Category]:
        return self.replace_all(default_categories())

    def color_for(self, name: str) -> str:
        categories = self.list_all()
        index = self._find(categories, name)
        if index is None:
            return DEFAULT_CATEGORY_COLOR
        return categories[index].color

    def names(self) -> list[str]:
        return [category.name for category in self.list_all()]


__all__ = [
    "CategoryRegistry",
    "DEFAULT_CATEGORIES",
    "default_categories",
    "normalise_positions",
]
