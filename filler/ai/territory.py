"""Reachable-territory projection for a candidate placement.

The flood fill simulates landing the piece on a copy of the owner mask and
walks outward from the piece's cells. Empty cells are counted and expanded,
cells already owned by the acting player are counted but not expanded, and
opponent cells block. The count approximates how much room the placement
leaves the player to grow into.

The walk is iterative (explicit ``deque``) with a flat numpy visited array,
so memory is bounded by the grid size and deep regions cannot exhaust the
stack.
"""

from __future__ import annotations

from collections import deque

import numpy as np

from ..board_manager import Board
from ..models import Placement
from .fast_geometry import FastGeometry


def flood_fill_estimate(
    board: Board,
    placement: Placement,
    max_iterations: int | None = None,
) -> int:
    """Count cells reachable from ``placement`` after it is applied.

    Args:
        board: Pre-placement board snapshot (not modified)
        placement: Piece to simulate for the acting player
        max_iterations: Optional cap on dequeued cells, for budgeted
            analysis; ``None`` walks the whole reachable region

    Returns:
        Number of empty plus own cells reached, excluding the piece's own
        cells.
    """
    geo = FastGeometry.get_instance().for_size(board.width, board.height)
    owner = board.apply_placement(placement).ravel().tolist()
    player = board.player
    adjacency = geo.adjacency

    visited = np.zeros(geo.size, dtype=bool)
    queue: deque[int] = deque()
    for x, y in placement.absolute_cells():
        if board.in_bounds(x, y):
            idx = geo.index(x, y)
            if not visited[idx]:
                visited[idx] = True
                queue.append(idx)

    reachable = 0
    iterations = 0
    while queue:
        if max_iterations is not None and iterations >= max_iterations:
            break
        iterations += 1
        idx = queue.popleft()
        for n_idx in adjacency[idx]:
            if visited[n_idx]:
                continue
            state = owner[n_idx]
            if state == 0:
                visited[n_idx] = True
                reachable += 1
                queue.append(n_idx)
            elif state == player:
                visited[n_idx] = True
                reachable += 1
    return reachable


def flood_fill_upper_bound(board: Board) -> int:
    """Largest value :func:`flood_fill_estimate` can return on ``board``."""
    return board.count(board.player) + board.empty_count()
