"""
DESCRIPTION
-----------
SelectionIndexSet tracks which positions of the deployment option list are included
in the submission. Positions are re-mapped on every removal so the set stays a valid
subset of [0, length).
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Set


def adjust_for_removal(selection: Iterable[int], removed_index: int) -> Set[int]:
    """Drop removed_index, keep lower indices, shift higher indices down by one."""
    adjusted: Set[int] = set()
    for i in selection:
        if i < removed_index:
            adjusted.add(i)
        elif i > removed_index:
            adjusted.add(i - 1)
    return adjusted


class SelectionIndexSet:
    def __init__(self, indices: Iterable[int] = ()) -> None:
        self._indices: Set[int] = set(indices)

    def __contains__(self, index: object) -> bool:
        return index in self._indices

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._indices))

    def __len__(self) -> int:
        return len(self._indices)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SelectionIndexSet):
            return self._indices == other._indices
        if isinstance(other, (set, frozenset)):
            return self._indices == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"SelectionIndexSet({sorted(self._indices)})"

    def as_sorted(self) -> List[int]:
        return sorted(self._indices)

    def toggle(self, index: int) -> bool:
        """Flip membership; returns True when index is now selected."""
        if index in self._indices:
            self._indices.discard(index)
            return False
        self._indices.add(index)
        return True

    def select(self, index: int) -> None:
        self._indices.add(index)

    def deselect(self, index: int) -> None:
        self._indices.discard(index)

    def select_all(self, indices: Iterable[int]) -> None:
        self._indices.update(indices)

    def clear(self) -> None:
        self._indices.clear()

    def adjust_for_removal(self, removed_index: int) -> None:
        self._indices = adjust_for_removal(self._indices, removed_index)

    def adjust_for_removals(self, removed_indices: Iterable[int]) -> None:
        #note: Highest first so each removal sees the positions as they were before it.
        for removed in sorted(set(removed_indices), reverse=True):
            self.adjust_for_removal(removed)

    def prune(self, length: int) -> None:
        self._indices = {i for i in self._indices if 0 <= i < length}
