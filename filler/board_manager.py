"""Board-level helpers for the Filler decision engine.

A :class:`Board` is the per-turn, read-only view of the Anfield: cell codes
and the derived owner mask live in numpy arrays whose write flag is cleared,
so nothing in the engine can mutate the snapshot. Hypothetical "what if the
piece lands here" analysis always works on :meth:`Board.owner_copy`.

:class:`BoardManager` owns the current board for a match. Every time a new
snapshot is installed it bumps the grid version counter, which is the
invalidation signal for :class:`filler.ai.evaluation_cache.EvaluationCache`.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from .errors import InvalidStateError
from .models import CellState, Coord, Placement
from .zobrist import ZobristHash

if TYPE_CHECKING:
    from .ai.evaluation_cache import EvaluationCache

__all__ = ["Board", "BoardManager", "CELL_CODES", "CODE_TO_CELL"]

logger = logging.getLogger(__name__)

# Cell code used in the numpy grid for each cell state.
CELL_CODES: dict[CellState, int] = {
    CellState.EMPTY: 0,
    CellState.PLAYER1: 1,
    CellState.PLAYER2: 2,
    CellState.PLAYER1_LAST: 3,
    CellState.PLAYER2_LAST: 4,
}
CODE_TO_CELL: dict[int, CellState] = {code: cell for cell, code in CELL_CODES.items()}

# code -> owning player (0 = empty)
_CODE_OWNER = np.array([0, 1, 2, 1, 2], dtype=np.int8)


class Board:
    """Immutable snapshot of the grid for one turn.

    Args:
        codes: ``(height, width)`` array of cell codes (see ``CELL_CODES``)
        player: Acting player number (1 or 2)
        version: Grid version counter assigned by :class:`BoardManager`
    """

    def __init__(self, codes: np.ndarray, player: int, version: int = 0) -> None:
        if player not in (1, 2):
            raise InvalidStateError(
                "Acting player must be 1 or 2", context={"player": player}
            )
        codes = np.array(codes, dtype=np.int8, copy=True)
        if codes.ndim != 2:
            raise InvalidStateError(
                "Grid must be two-dimensional", context={"ndim": codes.ndim}
            )
        codes.flags.writeable = False
        owner = _CODE_OWNER[codes]
        owner.flags.writeable = False

        self.codes = codes
        self.owner = owner
        self.player = player
        self.version = version
        self.height, self.width = codes.shape
        self._fingerprint: int | None = None
        self._owned_cells: dict[int, list[Coord]] = {}
        self._owner_rows: list[list[int]] | None = None
        self._owner_flat: list[int] | None = None

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_rows(cls, rows: list[str], player: int, version: int = 0) -> Board:
        """Build a board from protocol rows such as ``"..@.."``."""
        width = len(rows[0]) if rows else 0
        codes = np.zeros((len(rows), width), dtype=np.int8)
        for y, row in enumerate(rows):
            if len(row) != width:
                raise InvalidStateError(
                    "Grid rows must have equal length",
                    context={"row": y, "expected": width, "actual": len(row)},
                )
            for x, ch in enumerate(row):
                codes[y, x] = CELL_CODES[CellState(ch)]
        return cls(codes, player, version)

    def with_version(self, version: int) -> Board:
        """Return the same snapshot tagged with a different grid version."""
        board = Board(self.codes, self.player, version)
        board._fingerprint = self._fingerprint
        return board

    def with_cells(self, cells: dict[Coord, CellState]) -> Board:
        """Return a copy with some cells replaced (used by tests and tools)."""
        codes = np.array(self.codes, copy=True)
        for (x, y), state in cells.items():
            codes[y, x] = CELL_CODES[state]
        return Board(codes, self.player, self.version)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def opponent(self) -> int:
        return 2 if self.player == 1 else 1

    @property
    def size(self) -> int:
        return self.width * self.height

    @property
    def fingerprint(self) -> int:
        """Zobrist hash of the cell contents (independent of version)."""
        if self._fingerprint is None:
            self._fingerprint = ZobristHash.get_instance().compute(self.codes)
        return self._fingerprint

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell(self, x: int, y: int) -> CellState:
        return CODE_TO_CELL[int(self.codes[y, x])]

    def owner_at(self, x: int, y: int) -> int:
        return int(self.owner[y, x])

    @property
    def owner_rows(self) -> list[list[int]]:
        """Owner mask as nested lists, for per-cell lookups in hot loops."""
        if self._owner_rows is None:
            self._owner_rows = self.owner.tolist()
        return self._owner_rows

    @property
    def owner_flat(self) -> list[int]:
        """Owner mask flattened in raster order (index ``y * width + x``)."""
        if self._owner_flat is None:
            self._owner_flat = self.owner.ravel().tolist()
        return self._owner_flat

    def owned_cells(self, player: int | None = None) -> list[Coord]:
        """Cells owned by ``player`` (default: acting player) in raster order."""
        player = self.player if player is None else player
        cells = self._owned_cells.get(player)
        if cells is None:
            ys, xs = np.nonzero(self.owner == player)
            cells = [(int(x), int(y)) for y, x in zip(ys, xs)]
            self._owned_cells[player] = cells
        return cells

    def count(self, player: int) -> int:
        return int(np.count_nonzero(self.owner == player))

    def empty_count(self) -> int:
        return int(np.count_nonzero(self.owner == 0))

    def owner_copy(self) -> np.ndarray:
        """Writable copy of the owner mask for hypothetical analysis."""
        return np.array(self.owner, copy=True)

    def apply_placement(self, placement: Placement) -> np.ndarray:
        """Owner mask after the acting player lands ``placement``.

        The board itself is untouched; cells outside the grid are ignored.
        """
        owner = self.owner_copy()
        for x, y in placement.absolute_cells():
            if 0 <= x < self.width and 0 <= y < self.height:
                owner[y, x] = self.player
        return owner

    def to_rows(self) -> list[str]:
        return [
            "".join(CODE_TO_CELL[int(code)].value for code in row)
            for row in self.codes
        ]

    def __repr__(self) -> str:
        return (
            f"Board(width={self.width}, height={self.height}, "
            f"player={self.player}, version={self.version})"
        )


class BoardManager:
    """Tracks the current board and the grid version counter for a match.

    When an evaluation cache is attached, installing a board also moves the
    cache to the new version.
    """

    def __init__(self, cache: EvaluationCache | None = None) -> None:
        self._version = 0
        self._board: Board | None = None
        self.cache = cache

    @property
    def version(self) -> int:
        return self._version

    @property
    def board(self) -> Board | None:
        return self._board

    def install(self, board: Board) -> Board:
        """Replace the current board, bumping the grid version.

        Returns the installed board tagged with its new version.
        """
        self._version += 1
        self._board = board.with_version(self._version)
        if self.cache is not None:
            self.cache.bump_version(self._board)
        logger.debug(
            "Installed board %dx%d for player %d at version %d",
            board.width,
            board.height,
            board.player,
            self._version,
        )
        return self._board
