"""
Shared pytest fixtures for filler tests.

Boards are described with protocol rows ('.', '@', '$', 'a', 's') so test
layouts read the same way the game VM prints them. Factories are
function-scoped; every test gets fresh boards and caches.
"""

from typing import Callable, List, Optional, Sequence, Tuple

import pytest

from filler.ai.evaluation_cache import EvaluationCache
from filler.ai.heuristic_ai import HeuristicAI
from filler.board_manager import Board
from filler.models import EngineConfig, Placement, Position, Shape, StrategyProfile


# =============================================================================
# FACTORY FIXTURES
# =============================================================================


@pytest.fixture
def board_factory() -> Callable[..., Board]:
    """Factory for boards built from protocol rows or from a cell list."""

    def _create_board(
        rows: Optional[List[str]] = None,
        player: int = 1,
        width: int = 8,
        height: int = 8,
        own: Sequence[Tuple[int, int]] = (),
        opponent: Sequence[Tuple[int, int]] = (),
        version: int = 0,
    ) -> Board:
        if rows is None:
            grid = [["."] * width for _ in range(height)]
            own_char, opp_char = ("@", "$") if player == 1 else ("$", "@")
            for x, y in own:
                grid[y][x] = own_char
            for x, y in opponent:
                grid[y][x] = opp_char
            rows = ["".join(row) for row in grid]
        return Board.from_rows(rows, player, version)

    return _create_board


@pytest.fixture
def shape_factory() -> Callable[..., Shape]:
    """Factory for shapes from piece rows ('#'/'*'/'O' filled) or offsets."""

    def _create_shape(
        rows: Optional[List[str]] = None,
        offsets: Optional[List[Tuple[int, int]]] = None,
    ) -> Shape:
        if offsets is not None:
            return Shape.from_offsets(offsets)
        return Shape.from_rows(rows or ["#"])

    return _create_shape


@pytest.fixture
def placement_factory() -> Callable[..., Placement]:
    """Factory for placements from an anchor and a shape."""

    def _create_placement(x: int, y: int, shape: Shape) -> Placement:
        return Placement(anchor=Position(x=x, y=y), shape=shape)

    return _create_placement


@pytest.fixture
def ai_factory() -> Callable[..., HeuristicAI]:
    """Factory for HeuristicAI instances with a private cache."""

    def _create_ai(
        profile: StrategyProfile = StrategyProfile.BALANCED,
        **config_kwargs,
    ) -> HeuristicAI:
        config = EngineConfig(profile=profile, **config_kwargs)
        return HeuristicAI(config, cache=EvaluationCache(max_entries=10_000))

    return _create_ai


# =============================================================================
# SCENARIO FIXTURES
# =============================================================================


@pytest.fixture
def domino() -> Shape:
    """Two horizontally adjacent filled cells."""
    return Shape.from_offsets([(0, 0), (1, 0)])


@pytest.fixture
def pocket_board(board_factory) -> Board:
    """8x5 board where flood fill and density favour different candidates.

    Player 1 owns a 3x3 ring with an empty centre walled off by the
    opponent, plus one cell out in the open. Legal anchors for a domino are
    (0,1) and (1,1) into the pocket, and (4,2) and (5,2) into open space.
    """
    return board_factory(
        rows=[
            "@@@$....",
            "@.@$....",
            "@@@$.@..",
            "$$$$....",
            "........",
        ],
        player=1,
    )


@pytest.fixture
def lone_cell_board(board_factory) -> Board:
    """20x15 empty board with player 1 owning only (9, 2)."""
    return board_factory(width=20, height=15, own=[(9, 2)])
