"""Pure list reordering helpers behind drag-and-drop and move buttons."""
from __future__ import annotations

from typing import Literal, Sequence, TypeVar

T = TypeVar("T")

Direction = Literal["up", "down"]


def reorder(items: Sequence[T], from_index: int, to_index: int) -> list[T]:
    """Move the item at ``from_index`` so it ends up at ``to_index``.

    The input is left untouched. ``to_index`` is clamped to the list bounds;
    an out-of-range ``from_index`` raises ``IndexError``.
    """

    result = list(items)
    if not 0 <= from_index < len(result):
        raise IndexError(f"from_index {from_index} out of range for {len(result)} items")
    moved = result.pop(from_index)
    to_index = max(0, min(to_index, len(result)))
    result.insert(to_index, moved)
    return result


def move(items: Sequence[T], item: T, direction: Direction) -> list[T]:
    """Swap ``item`` with its neighbour; a no-op at either boundary or when absent."""

    result = list(items)
    if item not in result:
        return result
    index = result.index(item)
    target = index - 1 if direction == "up" else index + 1
    if not 0 <= target < len(result):
        return result
    result[index], result[target] = result[target], result[index]
    return result


def lesson_sort_key(number: str) -> tuple[int, int, str]:
    """Sort numeric lesson numbers numerically, anything else after them."""

    try:
        return (0, int(number), number)
    except ValueError:
        return (1, 0, number)


__all__ = ["Direction", "lesson_sort_key", "move", "reorder"]
