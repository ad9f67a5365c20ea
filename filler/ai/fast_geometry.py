"""Fast geometry operations for Filler evaluation.

Pre-computes adjacency and neighbourhood tables over flat cell indices
(``idx = y * width + x``) so the analyzer's hot loops never build Position
objects or re-check bounds. Tables are built once per grid size; a match
keeps the same Anfield dimensions for every turn, so after the first turn
every lookup is a list index.

Usage:
    from filler.ai.fast_geometry import FastGeometry

    geo = FastGeometry.get_instance().for_size(20, 15)

    # 4-connected neighbours of (3, 4), as flat indices
    neighbors = geo.adjacency[geo.index(3, 4)]

    # Cells within Manhattan distance 2 (including the cell itself)
    nearby = geo.neighborhood2[geo.index(3, 4)]
"""

from __future__ import annotations

import numpy as np

# Orthogonal directions (4-connectivity, von Neumann)
ORTHOGONAL_DIRECTIONS: list[tuple[int, int]] = [(0, -1), (0, 1), (-1, 0), (1, 0)]

# Radius used by the density signal.
DENSITY_RADIUS = 2

# Edge-control values per cell class.
CORNER_VALUE = 2.0
EDGE_VALUE = 1.0


def _manhattan_offsets(radius: int) -> list[tuple[int, int]]:
    return [
        (dx, dy)
        for dy in range(-radius, radius + 1)
        for dx in range(-radius, radius + 1)
        if abs(dx) + abs(dy) <= radius
    ]


# Cells within DENSITY_RADIUS of an interior cell, the cell itself included.
NEIGHBORHOOD2_SIZE = len(_manhattan_offsets(DENSITY_RADIUS))


class GridGeometry:
    """Pre-computed tables for one ``width x height`` grid."""

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.size = width * height

        self.adjacency: list[tuple[int, ...]] = []
        self.neighborhood2: list[tuple[int, ...]] = []
        self.edge_values = np.zeros(self.size, dtype=np.float64)

        self._build_adjacency()
        self._build_neighborhoods()
        self._build_edge_values()

    def index(self, x: int, y: int) -> int:
        return y * self.width + x

    def coords(self, idx: int) -> tuple[int, int]:
        return idx % self.width, idx // self.width

    def _build_adjacency(self) -> None:
        """Pre-compute 4-connected adjacency."""
        w, h = self.width, self.height
        for y in range(h):
            for x in range(w):
                neighbors: list[int] = []
                for dx, dy in ORTHOGONAL_DIRECTIONS:
                    nx, ny = x + dx, y + dy
                    if 0 <= nx < w and 0 <= ny < h:
                        neighbors.append(ny * w + nx)
                self.adjacency.append(tuple(neighbors))

    def _build_neighborhoods(self) -> None:
        """Pre-compute Manhattan-radius neighbourhoods for density."""
        w, h = self.width, self.height
        offsets = _manhattan_offsets(DENSITY_RADIUS)
        for y in range(h):
            for x in range(w):
                cells: list[int] = []
                for dx, dy in offsets:
                    nx, ny = x + dx, y + dy
                    if 0 <= nx < w and 0 <= ny < h:
                        cells.append(ny * w + nx)
                self.neighborhood2.append(tuple(cells))

    def _build_edge_values(self) -> None:
        """Corner cells get CORNER_VALUE, other border cells EDGE_VALUE."""
        w, h = self.width, self.height
        if self.size == 0:
            return
        values = np.zeros((h, w), dtype=np.float64)
        values[0, :] = EDGE_VALUE
        values[-1, :] = EDGE_VALUE
        values[:, 0] = EDGE_VALUE
        values[:, -1] = EDGE_VALUE
        for y in {0, h - 1}:
            for x in {0, w - 1}:
                values[y, x] = CORNER_VALUE
        self.edge_values = values.ravel()
        self.edge_values.flags.writeable = False


class FastGeometry:
    """Cache of :class:`GridGeometry` tables keyed by grid size."""

    _instance: FastGeometry | None = None

    def __init__(self) -> None:
        self._geometries: dict[tuple[int, int], GridGeometry] = {}

    @classmethod
    def get_instance(cls) -> FastGeometry:
        """Get singleton instance of FastGeometry."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def for_size(self, width: int, height: int) -> GridGeometry:
        key = (width, height)
        geometry = self._geometries.get(key)
        if geometry is None:
            geometry = GridGeometry(width, height)
            self._geometries[key] = geometry
        return geometry

    def clear(self) -> None:
        self._geometries.clear()
