"""Stable compiled-array slots for catalog keys.

Python 3.11+. Zero external dependencies.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

__all__ = ["IndexTracker"]


class IndexTracker:
    """Assign integer slots to message keys in first-seen order.

    A slot, once assigned, never changes for the life of the tracker; only
    reload() starts over. Slots are the positions in the compiled runtime
    array, so hot reload patches can target single slots.

    Example:
        >>> index = IndexTracker()
        >>> index.get("Hello\\n"), index.get("Bye\\n"), index.get("Hello\\n")
        (0, 1, 0)
    """

    __slots__ = ("_indices",)

    def __init__(self, keys: Iterable[str] = ()) -> None:
        self._indices: dict[str, int] = {}
        self.reload(keys)

    def reload(self, keys: Iterable[str]) -> None:
        """Forget all slots and assign new ones in the order of keys."""
        self._indices = {}
        for key in keys:
            self.get(key)

    def get(self, key: str) -> int:
        """Return the slot of a key, assigning the next free one if new."""
        index = self._indices.get(key)
        if index is None:
            index = len(self._indices)
            self._indices[key] = index
        return index

    def peek(self, key: str) -> int | None:
        """Return the slot of a key without assigning one."""
        return self._indices.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._indices

    def __len__(self) -> int:
        return len(self._indices)

    def __iter__(self) -> Iterator[str]:
        return iter(self._indices)

    def items(self) -> Iterator[tuple[str, int]]:
        return iter(self._indices.items())
