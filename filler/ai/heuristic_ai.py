"""
Heuristic AI implementation for Filler.

This engine evaluates the flat set of legal placements for the current piece
with a weighted heuristic score and returns the best one. It looks exactly
one ply ahead: there is no search over opponent replies.

Selection is deterministic. Candidates come from the generator in raster
order, and ties on score go to the candidate discovered first, so the same
(board, piece, profile) always yields the same anchor whatever the cache
state.

Bound pruning
=============
With ``use_pruning`` enabled (the default), the cheap signals are computed
for every candidate first. Each candidate then gets an optimistic bound: its
cheap score plus, for every expensive signal with a positive weight, that
weight times the largest value the signal can take on this board (own plus
empty cells for flood fill; own cells, capped at 13 per footprint cell, for
density). Candidates are fully evaluated in descending-bound order and a
candidate is skipped once its bound cannot beat the best total found so far.
The pruned selection is identical to the exhaustive one.

Time budget
===========
When ``time_budget_ms`` is set, the deadline is checked before every full
evaluation after the first, and every ``CHEAP_PASS_CLOCK_STRIDE`` candidates
during the cheap-signal pass. If the cheap pass runs out of time, only the
candidates bounded so far compete. On expiry the best fully evaluated
candidate is returned and the decision is flagged ``timed_out``.

Candidate generation itself is not interrupted: the deadline starts before
it and its cost counts against the budget, but a turn always sees its full
list of legal anchors.

Environment flags
=================
- ``FILLER_USE_PRUNING=true`` (default: true), read through
  :meth:`EngineConfig.from_env`.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence

from ..board_manager import Board
from ..metrics import CANDIDATES_PRUNED, record_decision
from ..models import (
    DecisionStatus,
    EngineConfig,
    MoveDecision,
    Placement,
    ScoreBreakdown,
    Shape,
)
from .base import BaseAI
from .evaluation_cache import EvaluationCache
from .fast_geometry import NEIGHBORHOOD2_SIZE
from .heuristic_weights import get_weights, weighted_score
from .heuristics import PlacementAnalyzer
from .placement import CandidateGenerator
from .territory import flood_fill_upper_bound

logger = logging.getLogger(__name__)

# Cheap-signal pass reads the clock once per this many candidates.
CHEAP_PASS_CLOCK_STRIDE = 64


def select_best(ranked: Sequence[tuple[Placement, float]]) -> Placement | None:
    """Top placement of a stable descending sort by score, or None if empty."""
    if not ranked:
        return None
    ordered = sorted(ranked, key=lambda item: item[1], reverse=True)
    return ordered[0][0]


class _Candidate:
    __slots__ = ("index", "placement", "signals", "bound")

    def __init__(
        self,
        index: int,
        placement: Placement,
        signals: dict[str, float],
        bound: float,
    ) -> None:
        self.index = index
        self.placement = placement
        self.signals = signals
        self.bound = bound


class HeuristicAI(BaseAI):
    """One-ply weighted-heuristic placement selector.

    Args:
        config: Engine configuration; defaults to ``EngineConfig()``
        cache: Evaluation cache to use; a new one sized by
            ``config.cache_max_entries`` is created when omitted
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        cache: EvaluationCache | None = None,
    ) -> None:
        super().__init__(config or EngineConfig())
        self.cache = (
            cache
            if cache is not None
            else EvaluationCache(max_entries=self.config.cache_max_entries)
        )
        self.analyzer = PlacementAnalyzer(
            self.cache, self.config.flood_fill_max_iterations
        )
        self.weights = get_weights(self.config.profile)
        self.clock: Callable[[], float] = time.perf_counter

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def get_evaluation_breakdown(
        self, board: Board, placement: Placement
    ) -> ScoreBreakdown:
        return self.analyzer.analyze(board, placement, self.weights)

    def evaluate_placement(self, board: Board, placement: Placement) -> float:
        return self.get_evaluation_breakdown(board, placement).total

    def rank_placements(
        self, board: Board, placements: Iterable[Placement]
    ) -> list[tuple[Placement, ScoreBreakdown]]:
        """Fully evaluate ``placements``; stable sort by descending total."""
        scored = [
            (placement, self.get_evaluation_breakdown(board, placement))
            for placement in placements
        ]
        scored.sort(key=lambda item: item[1].total, reverse=True)
        return scored

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_move(self, board: Board, shape: Shape) -> MoveDecision:
        """Select the best placement of ``shape`` for ``board.player``.

        Returns:
            A PLACED decision with the chosen placement and its breakdown,
            or a NO_LEGAL_MOVE decision. A placement is never synthesised.
        """
        start = self.clock()
        deadline = None
        if self.config.time_budget_ms is not None:
            deadline = start + self.config.time_budget_ms / 1000.0

        candidates = list(CandidateGenerator(board, shape))
        profile = self.config.profile

        if not candidates:
            elapsed = self.clock() - start
            logger.info("No legal placement for player %d", board.player)
            record_decision(profile.value, DecisionStatus.NO_LEGAL_MOVE.value, elapsed, 0)
            self.move_count += 1
            return MoveDecision.no_legal_move(profile, elapsed_ms=elapsed * 1000.0)

        if self.config.use_pruning:
            best, breakdown, evaluated, timed_out = self._select_pruned(
                board, candidates, deadline
            )
        else:
            best, breakdown, evaluated, timed_out = self._select_exhaustive(
                board, candidates, deadline
            )

        elapsed = self.clock() - start
        outcome = "timed_out" if timed_out else DecisionStatus.PLACED.value
        record_decision(profile.value, outcome, elapsed, len(candidates))
        self.cache.publish_metrics()
        self.move_count += 1

        logger.debug(
            "Player %d: %d candidates, %d evaluated, best %s score %.2f%s",
            board.player,
            len(candidates),
            evaluated,
            best.anchor.to_key(),
            breakdown.total,
            " (timed out)" if timed_out else "",
        )
        return MoveDecision(
            status=DecisionStatus.PLACED,
            placement=best,
            breakdown=breakdown,
            profile=profile,
            candidates_considered=len(candidates),
            candidates_evaluated=evaluated,
            timed_out=timed_out,
            elapsed_ms=elapsed * 1000.0,
        )

    def _full_breakdown(
        self, board: Board, placement: Placement, signals: dict[str, float]
    ) -> ScoreBreakdown:
        signals = dict(signals)
        signals.update(self.analyzer.expensive_signals(board, placement))
        return ScoreBreakdown(total=weighted_score(signals, self.weights), **signals)

    def _select_exhaustive(
        self,
        board: Board,
        candidates: list[Placement],
        deadline: float | None,
    ) -> tuple[Placement, ScoreBreakdown, int, bool]:
        ranked: list[tuple[Placement, float]] = []
        breakdowns: dict[int, ScoreBreakdown] = {}
        timed_out = False
        for index, placement in enumerate(candidates):
            if ranked and deadline is not None and self.clock() >= deadline:
                timed_out = True
                CANDIDATES_PRUNED.labels("deadline").inc(len(candidates) - index)
                break
            breakdown = self.analyzer.analyze(board, placement, self.weights)
            breakdowns[id(placement)] = breakdown
            ranked.append((placement, breakdown.total))

        best = select_best(ranked)
        assert best is not None
        return best, breakdowns[id(best)], len(ranked), timed_out

    def _upper_bounds(self, board: Board) -> dict[str, float]:
        return {
            "flood_fill_estimate": float(flood_fill_upper_bound(board)),
            "density_bonus": float(board.count(board.player)),
        }

    def _select_pruned(
        self,
        board: Board,
        candidates: list[Placement],
        deadline: float | None,
    ) -> tuple[Placement, ScoreBreakdown, int, bool]:
        weights = self.weights
        bounds = self._upper_bounds(board)
        pool: list[_Candidate] = []
        timed_out = False
        for index, placement in enumerate(candidates):
            if (
                deadline is not None
                and index
                and index % CHEAP_PASS_CLOCK_STRIDE == 0
                and self.clock() >= deadline
            ):
                timed_out = True
                CANDIDATES_PRUNED.labels("deadline").inc(len(candidates) - index)
                break
            signals = self.analyzer.cheap_signals(board, placement)
            optimistic = dict(signals)
            for key, upper in bounds.items():
                if key == "density_bonus":
                    footprint = len(set(placement.absolute_cells()))
                    upper = min(upper, float(NEIGHBORHOOD2_SIZE * footprint))
                optimistic[key] = upper if weights.get(key, 0.0) > 0 else 0.0
            pool.append(
                _Candidate(index, placement, signals, weighted_score(optimistic, weights))
            )

        pool.sort(key=lambda c: (-c.bound, c.index))

        best: _Candidate | None = None
        best_breakdown: ScoreBreakdown | None = None
        evaluated = 0
        pruned = 0
        for position, candidate in enumerate(pool):
            if best_breakdown is not None:
                best_total = best_breakdown.total
                if candidate.bound < best_total or (
                    candidate.bound == best_total and candidate.index > best.index
                ):
                    pruned += 1
                    continue
                if deadline is not None and self.clock() >= deadline:
                    timed_out = True
                    CANDIDATES_PRUNED.labels("deadline").inc(len(pool) - position)
                    break

            breakdown = self._full_breakdown(board, candidate.placement, candidate.signals)
            evaluated += 1
            if (
                best_breakdown is None
                or breakdown.total > best_breakdown.total
                or (
                    breakdown.total == best_breakdown.total
                    and candidate.index < best.index
                )
            ):
                best, best_breakdown = candidate, breakdown

        if pruned:
            CANDIDATES_PRUNED.labels("bound").inc(pruned)
        assert best is not None and best_breakdown is not None
        return best.placement, best_breakdown, evaluated, timed_out
