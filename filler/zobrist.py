"""Zobrist hashing for Filler grids.

A grid fingerprint is the XOR of one random 64-bit key per (row, column,
cell code). Key tables are generated from a fixed seed so fingerprints are
stable across runs, and cached per grid size because a match keeps the same
dimensions for every turn.
"""

from __future__ import annotations

import numpy as np

# Number of distinct cell codes (see board_manager.CELL_CODES).
NUM_CELL_CODES = 5

_DEFAULT_SEED = 0x5EED_F111


class ZobristHash:
    """Per-size Zobrist key tables."""

    _instance: ZobristHash | None = None

    def __init__(self, seed: int = _DEFAULT_SEED) -> None:
        self.seed = seed
        self._tables: dict[tuple[int, int], np.ndarray] = {}

    @classmethod
    def get_instance(cls) -> ZobristHash:
        """Get singleton instance of ZobristHash."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def table_for(self, width: int, height: int) -> np.ndarray:
        """Return the ``(height, width, NUM_CELL_CODES)`` key table."""
        key = (width, height)
        table = self._tables.get(key)
        if table is None:
            rng = np.random.default_rng((self.seed, width, height))
            table = rng.integers(
                0,
                np.iinfo(np.uint64).max,
                size=(height, width, NUM_CELL_CODES),
                dtype=np.uint64,
                endpoint=True,
            )
            table.flags.writeable = False
            self._tables[key] = table
        return table

    def compute(self, codes: np.ndarray) -> int:
        """Hash a ``(height, width)`` array of cell codes."""
        height, width = codes.shape
        if codes.size == 0:
            return 0
        table = self.table_for(width, height)
        keys = np.take_along_axis(
            table, codes.astype(np.intp)[..., np.newaxis], axis=2
        )
        return int(np.bitwise_xor.reduce(keys.ravel()))
