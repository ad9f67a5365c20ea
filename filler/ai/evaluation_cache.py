"""Two-tier memoization for the expensive placement signals.

Tier 1 (``candidate``) maps ``(signal, anchor, shape offsets)`` to a signal
value for one candidate. Tier 2 (``neighborhood``) maps coarser keys such as
``(signal, cell index)`` to per-cell data shared by many candidates, e.g.
the own cells around a footprint cell.

Every entry is stamped with the grid version, Zobrist fingerprint and acting
player of the board it was computed on. A lookup only returns an entry whose stamp
matches the current board; anything else is dropped on the spot and
recomputed. Both tiers are LRU-bounded.

The cache is an explicit object owned by the caller (normally
:class:`filler.ai.heuristic_ai.HeuristicAI`) and passed into the analyzer.

Usage:
    cache = EvaluationCache(max_entries=50_000)
    cache.bump_version(board)
    value = cache.get_or_compute(("flood_fill",) + placement.cache_key(),
                                 lambda: flood_fill_estimate(board, placement))
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable
from typing import Any, TypeVar

from ..board_manager import Board
from ..errors import InvalidStateError
from ..metrics import CACHE_LOOKUPS, CACHE_SIZE
from .bounded_transposition_table import BoundedTranspositionTable

logger = logging.getLogger(__name__)

T = TypeVar("T")

TIER_CANDIDATE = "candidate"
TIER_NEIGHBORHOOD = "neighborhood"
TIERS = (TIER_CANDIDATE, TIER_NEIGHBORHOOD)


class _TierCounters:
    __slots__ = ("hits", "misses", "stale_evictions")

    def __init__(self) -> None:
        self.hits = 0
        self.misses = 0
        self.stale_evictions = 0


class EvaluationCache:
    """Version-stamped, LRU-bounded cache for analyzer signals.

    Args:
        max_entries: Entry cap for the candidate tier
        neighborhood_max_entries: Entry cap for the neighborhood tier;
            defaults to ``max_entries``
    """

    def __init__(
        self,
        max_entries: int = 50_000,
        neighborhood_max_entries: int | None = None,
    ) -> None:
        self._tables: dict[str, BoundedTranspositionTable] = {
            TIER_CANDIDATE: BoundedTranspositionTable(max_entries),
            TIER_NEIGHBORHOOD: BoundedTranspositionTable(
                neighborhood_max_entries or max_entries
            ),
        }
        self._counters = {tier: _TierCounters() for tier in TIERS}
        self._stamp: tuple[int, int, int] | None = None

    @property
    def version(self) -> int | None:
        return self._stamp[0] if self._stamp is not None else None

    def is_current(self, board: Board) -> bool:
        return self._stamp == (board.version, board.fingerprint, board.player)

    def bump_version(self, board: Board) -> None:
        """Make ``board`` the current snapshot.

        Entries computed for any other snapshot become unreachable and are
        evicted the next time their key is looked up.
        """
        self._stamp = (board.version, board.fingerprint, board.player)
        logger.debug(
            "Evaluation cache now at version %d (%d/%d entries)",
            board.version,
            len(self._tables[TIER_CANDIDATE]),
            len(self._tables[TIER_NEIGHBORHOOD]),
        )

    def get_or_compute(
        self,
        key: Hashable,
        compute_fn: Callable[[], T],
        tier: str = TIER_CANDIDATE,
    ) -> T:
        """Return the cached value for ``key`` or compute and store it.

        Raises:
            InvalidStateError: if no board has been installed with
                :meth:`bump_version`
        """
        if self._stamp is None:
            raise InvalidStateError("Evaluation cache used before bump_version()")
        table = self._tables[tier]
        counters = self._counters[tier]

        entry = table.get(key)
        if entry is not None:
            if entry[0] == self._stamp:
                counters.hits += 1
                CACHE_LOOKUPS.labels(tier, "hit").inc()
                return entry[1]
            table.discard(key)
            counters.stale_evictions += 1
            CACHE_LOOKUPS.labels(tier, "stale").inc()
        else:
            CACHE_LOOKUPS.labels(tier, "miss").inc()

        counters.misses += 1
        value = compute_fn()
        table.put(key, (self._stamp, value))
        return value

    def __len__(self) -> int:
        return sum(len(table) for table in self._tables.values())

    def clear(self) -> None:
        """Drop all entries and counters; the current stamp is kept."""
        for tier in TIERS:
            self._tables[tier].clear()
            self._counters[tier] = _TierCounters()

    def publish_metrics(self) -> None:
        for tier in TIERS:
            CACHE_SIZE.labels(tier).set(len(self._tables[tier]))

    def stats(self) -> dict[str, Any]:
        """Per-tier hits, misses, evictions, stale evictions and hit rate."""
        result: dict[str, Any] = {"version": self.version}
        for tier in TIERS:
            table = self._tables[tier]
            counters = self._counters[tier]
            lookups = counters.hits + counters.misses
            result[tier] = {
                "entries": len(table),
                "max_entries": table.max_entries,
                "hits": counters.hits,
                "misses": counters.misses,
                "evictions": table.evictions,
                "stale_evictions": counters.stale_evictions,
                "hit_rate": counters.hits / lookups if lookups else 0.0,
            }
        return result
