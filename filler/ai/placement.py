"""Placement legality and candidate generation.

``validate_placement`` is the single source of truth for legality: the
candidate generator, the move selector's sanity checks and the tests all
funnel through it. Illegality is reported as a :class:`PlacementResult`
value, never raised, because rejecting anchors is the normal outcome for
almost every position on the grid.

Usage:
    from filler.ai.placement import CandidateGenerator, validate_placement

    result = validate_placement(board, board.player, placement)
    if result.is_legal:
        ...

    for placement in CandidateGenerator(board, shape):
        ...
"""

from __future__ import annotations

import logging
from collections import Counter
from enum import Enum
from typing import Iterator

from ..board_manager import Board
from ..models import Coord, Placement, Position, Shape

logger = logging.getLogger(__name__)


class PlacementResult(str, Enum):
    """Outcome of validating one placement.

    Every member except ``LEGAL`` is an illegality reason.
    """
    LEGAL = "legal"
    EMPTY_SHAPE = "empty_shape"
    OUT_OF_BOUNDS = "out_of_bounds"
    COLLISION_WITH_OPPONENT = "collision_with_opponent"
    COLLISION_WITH_SELF = "collision_with_self"
    NO_TERRITORY_CONTACT = "no_territory_contact"
    MULTIPLE_CONTACTS = "multiple_contacts"

    @property
    def is_legal(self) -> bool:
        return self is PlacementResult.LEGAL

    @property
    def message(self) -> str:
        return _MESSAGES[self]


# Alias used where only the rejection reasons are meant.
PlacementError = PlacementResult

_MESSAGES: dict[PlacementResult, str] = {
    PlacementResult.LEGAL: "Placement is legal",
    PlacementResult.EMPTY_SHAPE: "Piece has no filled cells",
    PlacementResult.OUT_OF_BOUNDS: "Piece extends outside the board",
    PlacementResult.COLLISION_WITH_OPPONENT: "Piece overlaps opponent territory",
    PlacementResult.COLLISION_WITH_SELF: "Piece claims the same cell twice",
    PlacementResult.NO_TERRITORY_CONTACT: "Piece does not touch own territory",
    PlacementResult.MULTIPLE_CONTACTS: "Piece overlaps own territory more than once",
}


def validate_placement(
    board: Board,
    player: int | None,
    placement: Placement,
) -> PlacementResult:
    """Check a placement against the board, cheapest checks first.

    Args:
        board: Current board snapshot
        player: Acting player; ``None`` means ``board.player``
        placement: Anchor and shape to check

    Returns:
        ``PlacementResult.LEGAL`` or the first failing reason, in the order
        EMPTY_SHAPE, OUT_OF_BOUNDS, COLLISION_WITH_OPPONENT,
        COLLISION_WITH_SELF, then NO_TERRITORY_CONTACT / MULTIPLE_CONTACTS.
    """
    player = board.player if player is None else player
    return _validate_cells(board, player, placement.absolute_cells())


def is_legal_placement(
    board: Board,
    player: int | None,
    placement: Placement,
) -> bool:
    return validate_placement(board, player, placement).is_legal


def _validate_cells(board: Board, player: int, cells: list[Coord]) -> PlacementResult:
    if not cells:
        return PlacementResult.EMPTY_SHAPE

    width, height = board.width, board.height
    for x, y in cells:
        if x < 0 or y < 0 or x >= width or y >= height:
            return PlacementResult.OUT_OF_BOUNDS

    rows = board.owner_rows
    opponent = 3 - player
    for x, y in cells:
        if rows[y][x] == opponent:
            return PlacementResult.COLLISION_WITH_OPPONENT

    if len(set(cells)) != len(cells):
        return PlacementResult.COLLISION_WITH_SELF

    contacts = 0
    for x, y in cells:
        if rows[y][x] == player:
            contacts += 1
    if contacts == 0:
        return PlacementResult.NO_TERRITORY_CONTACT
    if contacts > 1:
        return PlacementResult.MULTIPLE_CONTACTS
    return PlacementResult.LEGAL


def anchor_bounds(board: Board, shape: Shape) -> tuple[int, int, int, int] | None:
    """Inclusive ``(min_x, min_y, max_x, max_y)`` anchor range.

    Only anchors in this range keep every filled cell inside the grid.
    Returns ``None`` for an empty shape or one that cannot fit at all.
    """
    extent = shape.extent()
    if extent is None:
        return None
    min_dx, min_dy, max_dx, max_dy = extent
    bounds = (-min_dx, -min_dy, board.width - 1 - max_dx, board.height - 1 - max_dy)
    if bounds[0] > bounds[2] or bounds[1] > bounds[3]:
        return None
    return bounds


def contact_anchors(board: Board, shape: Shape, player: int | None = None) -> list[Coord]:
    """Anchors that put at least one filled cell on an owned cell.

    Computed from the owned-cell set as ``owned - offset`` for every distinct
    offset, restricted to :func:`anchor_bounds`, in raster order (y, then x).
    """
    bounds = anchor_bounds(board, shape)
    if bounds is None:
        return []
    min_x, min_y, max_x, max_y = bounds
    offsets = set(shape.offsets)
    anchors: set[Coord] = set()
    for ox, oy in board.owned_cells(player):
        for dx, dy in offsets:
            ax, ay = ox - dx, oy - dy
            if min_x <= ax <= max_x and min_y <= ay <= max_y:
                anchors.add((ax, ay))
    return sorted(anchors, key=lambda a: (a[1], a[0]))


class CandidateGenerator:
    """Re-iterable sequence of legal placements in raster order.

    Each call to ``iter()`` starts a fresh scan of the same board and shape,
    so no iterator state escapes between consumers.
    """

    def __init__(self, board: Board, shape: Shape, player: int | None = None) -> None:
        self.board = board
        self.shape = shape
        self.player = board.player if player is None else player

    def __iter__(self) -> Iterator[Placement]:
        board, shape, player = self.board, self.shape, self.player
        offsets = shape.offsets
        debug = logger.isEnabledFor(logging.DEBUG)
        rejected: Counter[PlacementResult] = Counter()

        for ax, ay in contact_anchors(board, shape, player):
            cells = [(ax + dx, ay + dy) for dx, dy in offsets]
            result = _validate_cells(board, player, cells)
            if result.is_legal:
                yield Placement(anchor=Position(x=ax, y=ay), shape=shape)
            elif debug:
                rejected[result] += 1

        if debug and rejected:
            logger.debug(
                "Rejected anchors: %s",
                ", ".join(f"{r.value}={n}" for r, n in sorted(rejected.items())),
            )


def iter_legal_placements(
    board: Board,
    player: int | None,
    shape: Shape,
) -> Iterator[Placement]:
    """Lazily yield every legal placement of ``shape`` in raster order."""
    return iter(CandidateGenerator(board, shape, player))
