"""
Change Navigator
================
Wrap-around cursor over the change regions of one comparison.
"""

from typing import Iterable, Optional

from .models import ChangeLocation


class ChangeCursor:
    """
    Tracks the current change region for next/previous navigation.

    The location list is fixed at construction. Every operation is O(1);
    on an empty list navigation returns None and the index stays at 0.
    Not safe for concurrent mutation.
    """

    def __init__(self, locations: Optional[Iterable[ChangeLocation]] = None):
        self._locations = tuple(locations or ())
        self._index = 0

    def advance(self) -> Optional[ChangeLocation]:
        """Move to the next change, wrapping from last to first."""
        if not self._locations:
            return None
        self._index = (self._index + 1) % len(self._locations)
        return self._locations[self._index]

    def retreat(self) -> Optional[ChangeLocation]:
        """Move to the previous change, wrapping from first to last."""
        if not self._locations:
            return None
        self._index = (self._index - 1) % len(self._locations)
        return self._locations[self._index]

    def current(self) -> Optional[ChangeLocation]:
        """Change at the current index, without moving."""
        if not self._locations:
            return None
        return self._locations[self._index]

    def index(self) -> int:
        return self._index

    def count(self) -> int:
        return len(self._locations)

    def reset(self):
        """Return to the first change."""
        self._index = 0

    @property
    def locations(self) -> tuple:
        return self._locations

    def __len__(self) -> int:
        return len(self._locations)

    def __repr__(self) -> str:
        return f"ChangeCursor(index={self._index}, count={len(self._locations)})"
