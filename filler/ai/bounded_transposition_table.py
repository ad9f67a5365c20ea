"""Bounded LRU table backing the evaluation cache tiers."""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Hashable
from typing import Any


class BoundedTranspositionTable:
    """LRU-evicting table with a fixed entry cap.

    Lookups refresh recency; inserts past ``max_entries`` drop the least
    recently used entry and bump ``evictions``. Hit and miss accounting is
    left to the owner, which alone knows whether a stored entry is still
    valid.
    """

    def __init__(self, max_entries: int = 50_000) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self._table: OrderedDict[Hashable, Any] = OrderedDict()
        self.max_entries = max_entries
        self.evictions = 0

    def get(self, key: Hashable) -> Any | None:
        """Get value, moving to end if found (LRU).

        Returns:
            The value if found, None otherwise
        """
        if key in self._table:
            self._table.move_to_end(key)
            return self._table[key]
        return None

    def put(self, key: Hashable, value: Any) -> None:
        """Add entry, evicting the least recently used one if at capacity."""
        if key in self._table:
            self._table.move_to_end(key)
        elif len(self._table) >= self.max_entries:
            self._table.popitem(last=False)
            self.evictions += 1
        self._table[key] = value

    def discard(self, key: Hashable) -> bool:
        """Remove ``key`` if present. Returns True when something was removed."""
        return self._table.pop(key, None) is not None

    def __contains__(self, key: Hashable) -> bool:
        return key in self._table

    def __len__(self) -> int:
        return len(self._table)

    def clear(self) -> None:
        """Clear all entries and reset the eviction count."""
        self._table.clear()
        self.evictions = 0
