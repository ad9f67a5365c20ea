"""Per-placement heuristic signals.

Signals split into two cost classes:

- **cheap** (``cells_added``, ``weak_position_bonus``, ``edge_control_bonus``):
  proportional to the piece footprint, recomputed every time.
- **expensive** (``flood_fill_estimate``, ``density_bonus``): backed by the
  :class:`~filler.ai.evaluation_cache.EvaluationCache`. Flood fill walks the
  whole reachable region; density unions the own-cell neighbourhoods of the
  footprint, which come from the cache's neighbourhood tier so candidates
  sharing footprint cells share the work.

All signals are pure functions of ``(board, placement)`` and read the
pre-placement board, except flood fill which simulates the placement on a
copy of the owner mask.
"""

from __future__ import annotations

from ..board_manager import Board
from ..models import Placement, ScoreBreakdown
from .evaluation_cache import TIER_NEIGHBORHOOD, EvaluationCache
from .fast_geometry import FastGeometry, GridGeometry
from .heuristic_weights import weighted_score
from .territory import flood_fill_estimate

# Weak-position tiers: an adjacent opponent cell with fewer than
# WEAK_THRESHOLD_HIGH opponent neighbours is worth WEAK_BONUS_HIGH, fewer
# than WEAK_THRESHOLD_MEDIUM is worth WEAK_BONUS_MEDIUM.
WEAK_THRESHOLD_HIGH = 2
WEAK_THRESHOLD_MEDIUM = 4
WEAK_BONUS_HIGH = 3.0
WEAK_BONUS_MEDIUM = 1.5

# Cache key prefixes
FLOOD_FILL_KEY = "flood_fill"
DENSITY_KEY = "density"
OWN_NEIGHBORHOOD_KEY = "own_within_2"

CHEAP_SIGNALS = ("cells_added", "weak_position_bonus", "edge_control_bonus")
EXPENSIVE_SIGNALS = ("flood_fill_estimate", "density_bonus")


def _footprint(geo: GridGeometry, placement: Placement) -> list[int]:
    """Distinct in-bounds footprint cells as flat indices, in offset order."""
    seen: set[int] = set()
    cells: list[int] = []
    for x, y in placement.absolute_cells():
        if 0 <= x < geo.width and 0 <= y < geo.height:
            idx = geo.index(x, y)
            if idx not in seen:
                seen.add(idx)
                cells.append(idx)
    return cells


def cells_added(board: Board, placement: Placement) -> int:
    """Footprint cells not already owned by the acting player."""
    rows = board.owner_rows
    return sum(
        1
        for x, y in set(placement.absolute_cells())
        if board.in_bounds(x, y) and rows[y][x] != board.player
    )


def weak_position_bonus(board: Board, placement: Placement) -> float:
    """Bonus for opponent cells next to the footprint that are poorly connected.

    Each distinct opponent cell 4-adjacent to the footprint is scored by how
    many of its own 4-neighbours the opponent holds.
    """
    geo = FastGeometry.get_instance().for_size(board.width, board.height)
    owner = board.owner_flat
    opponent = board.opponent
    adjacency = geo.adjacency

    targets: set[int] = set()
    for idx in _footprint(geo, placement):
        for n_idx in adjacency[idx]:
            if owner[n_idx] == opponent:
                targets.add(n_idx)

    bonus = 0.0
    for idx in targets:
        allies = sum(1 for n_idx in adjacency[idx] if owner[n_idx] == opponent)
        if allies < WEAK_THRESHOLD_HIGH:
            bonus += WEAK_BONUS_HIGH
        elif allies < WEAK_THRESHOLD_MEDIUM:
            bonus += WEAK_BONUS_MEDIUM
    return bonus


def edge_control_bonus(board: Board, placement: Placement) -> float:
    """Corner cells are worth 2.0, other border cells 1.0."""
    geo = FastGeometry.get_instance().for_size(board.width, board.height)
    edge_values = geo.edge_values
    return float(sum(edge_values[idx] for idx in _footprint(geo, placement)))


def own_cells_near(board: Board, idx: int) -> frozenset[int]:
    """Own cells within Manhattan distance 2 of flat index ``idx``."""
    geo = FastGeometry.get_instance().for_size(board.width, board.height)
    owner = board.owner_flat
    player = board.player
    return frozenset(n for n in geo.neighborhood2[idx] if owner[n] == player)


def density_bonus(board: Board, placement: Placement) -> int:
    """Distinct own cells within Manhattan distance 2 of the footprint."""
    geo = FastGeometry.get_instance().for_size(board.width, board.height)
    near: set[int] = set()
    for idx in _footprint(geo, placement):
        near |= own_cells_near(board, idx)
    return len(near)


class PlacementAnalyzer:
    """Computes :class:`ScoreBreakdown` signals, memoising the costly ones.

    Args:
        cache: Evaluation cache shared across the turn; a private one is
            created when omitted
        flood_fill_max_iterations: Optional bound passed to the flood fill
    """

    def __init__(
        self,
        cache: EvaluationCache | None = None,
        flood_fill_max_iterations: int | None = None,
    ) -> None:
        self.cache = cache if cache is not None else EvaluationCache()
        self.flood_fill_max_iterations = flood_fill_max_iterations

    def _sync(self, board: Board) -> None:
        if not self.cache.is_current(board):
            self.cache.bump_version(board)

    def cheap_signals(self, board: Board, placement: Placement) -> dict[str, float]:
        return {
            "cells_added": float(cells_added(board, placement)),
            "weak_position_bonus": weak_position_bonus(board, placement),
            "edge_control_bonus": edge_control_bonus(board, placement),
        }

    def flood_fill(self, board: Board, placement: Placement) -> float:
        self._sync(board)
        key = (FLOOD_FILL_KEY, self.flood_fill_max_iterations) + placement.cache_key()
        return float(
            self.cache.get_or_compute(
                key,
                lambda: flood_fill_estimate(
                    board, placement, self.flood_fill_max_iterations
                ),
            )
        )

    def density(self, board: Board, placement: Placement) -> float:
        self._sync(board)
        key = (DENSITY_KEY,) + placement.cache_key()
        return float(
            self.cache.get_or_compute(key, lambda: self._density(board, placement))
        )

    def _density(self, board: Board, placement: Placement) -> int:
        geo = FastGeometry.get_instance().for_size(board.width, board.height)
        near: set[int] = set()
        for idx in _footprint(geo, placement):
            near |= self.cache.get_or_compute(
                (OWN_NEIGHBORHOOD_KEY, idx),
                lambda idx=idx: own_cells_near(board, idx),
                tier=TIER_NEIGHBORHOOD,
            )
        return len(near)

    def expensive_signals(self, board: Board, placement: Placement) -> dict[str, float]:
        return {
            "flood_fill_estimate": self.flood_fill(board, placement),
            "density_bonus": self.density(board, placement),
        }

    def analyze(
        self,
        board: Board,
        placement: Placement,
        weights: dict[str, float] | None = None,
    ) -> ScoreBreakdown:
        """Full breakdown for ``placement``; ``total`` is 0 without weights."""
        signals = self.cheap_signals(board, placement)
        signals.update(self.expensive_signals(board, placement))
        total = weighted_score(signals, weights) if weights else 0.0
        return ScoreBreakdown(total=total, **signals)
