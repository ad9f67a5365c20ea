"""
Pydantic Models for the Filler decision engine
Mirrors the cell alphabet of the Filler VM protocol
"""

import os
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, NonNegativeInt

from .errors import ConfigurationError

# Offset or absolute coordinate as a raw (x, y) tuple. Hot paths use these
# instead of Position objects to avoid model construction overhead.
Coord = Tuple[int, int]


class CellState(str, Enum):
    """Cell state enumeration (protocol character as value)"""
    EMPTY = "."
    PLAYER1 = "@"
    PLAYER2 = "$"
    PLAYER1_LAST = "a"
    PLAYER2_LAST = "s"

    @property
    def owner(self) -> int:
        """Owning player number, or 0 for an empty cell.

        The "last placed" variants only mark the most recent move; they do
        not change ownership.
        """
        if self in (CellState.PLAYER1, CellState.PLAYER1_LAST):
            return 1
        if self in (CellState.PLAYER2, CellState.PLAYER2_LAST):
            return 2
        return 0

    @property
    def is_last_placed(self) -> bool:
        return self in (CellState.PLAYER1_LAST, CellState.PLAYER2_LAST)


class StrategyProfile(str, Enum):
    """Named weight profiles for candidate scoring"""
    AGGRESSIVE_EXPANSION = "aggressive-expansion"
    OPPORTUNISTIC = "opportunistic"
    DEFENSIVE = "defensive"
    STRATEGIC_BLOCKING = "strategic-blocking"
    BALANCED = "balanced"
    TERRITORIAL = "territorial"


class DecisionStatus(str, Enum):
    """Outcome of a turn decision"""
    PLACED = "placed"
    NO_LEGAL_MOVE = "no_legal_move"


class Position(BaseModel):
    """Grid position (column x, row y)"""
    x: int
    y: int

    class Config:
        frozen = True

    def to_key(self) -> str:
        """Convert position to string key"""
        return f"{self.x},{self.y}"

    def as_tuple(self) -> Coord:
        return (self.x, self.y)


class Shape(BaseModel):
    """Piece shape as filled-cell offsets from the piece's top-left corner.

    ``offsets`` keeps the order and multiplicity it was built with so the
    validator can report a piece that claims the same cell twice. ``width``
    and ``height`` are the declared piece dimensions from the protocol; the
    filled cells may not reach every row or column of that box.
    """
    offsets: Tuple[Tuple[NonNegativeInt, NonNegativeInt], ...]
    width: NonNegativeInt = 0
    height: NonNegativeInt = 0

    class Config:
        frozen = True

    @classmethod
    def from_rows(cls, rows: List[str]) -> "Shape":
        """Build a shape from piece rows, where any non-'.' char is filled."""
        offsets = tuple(
            (dx, dy)
            for dy, row in enumerate(rows)
            for dx, ch in enumerate(row)
            if ch != "."
        )
        width = max((len(row) for row in rows), default=0)
        return cls(offsets=offsets, width=width, height=len(rows))

    @classmethod
    def from_offsets(cls, offsets: List[Coord]) -> "Shape":
        offsets = tuple((int(dx), int(dy)) for dx, dy in offsets)
        width = max((dx for dx, _ in offsets), default=-1) + 1
        height = max((dy for _, dy in offsets), default=-1) + 1
        return cls(offsets=offsets, width=width, height=height)

    def is_empty(self) -> bool:
        return not self.offsets

    def extent(self) -> Optional[Tuple[int, int, int, int]]:
        """Return ``(min_dx, min_dy, max_dx, max_dy)`` of the filled cells."""
        if not self.offsets:
            return None
        xs = [dx for dx, _ in self.offsets]
        ys = [dy for _, dy in self.offsets]
        return (min(xs), min(ys), max(xs), max(ys))

    def __len__(self) -> int:
        return len(self.offsets)


class Placement(BaseModel):
    """A candidate anchor for the current piece.

    The anchor is where the piece's top-left corner lands; it can be
    negative when the piece has empty leading rows or columns.
    """
    anchor: Position
    shape: Shape

    class Config:
        frozen = True

    def absolute_cells(self) -> List[Coord]:
        """Absolute grid cells covered by the piece's filled offsets."""
        ax, ay = self.anchor.x, self.anchor.y
        return [(ax + dx, ay + dy) for dx, dy in self.shape.offsets]

    def cache_key(self) -> Tuple[Coord, Tuple[Coord, ...]]:
        """Anchor plus shape identity, used to key analyzer caches."""
        return (self.anchor.as_tuple(), self.shape.offsets)


class ScoreBreakdown(BaseModel):
    """Raw heuristic signals for one placement and their weighted total"""
    cells_added: float = 0.0
    flood_fill_estimate: float = 0.0
    weak_position_bonus: float = 0.0
    density_bonus: float = 0.0
    edge_control_bonus: float = 0.0
    total: float = 0.0

    class Config:
        frozen = True

    def signals(self) -> Dict[str, float]:
        """Signal values keyed by name, excluding the weighted total."""
        return {
            "cells_added": self.cells_added,
            "flood_fill_estimate": self.flood_fill_estimate,
            "weak_position_bonus": self.weak_position_bonus,
            "density_bonus": self.density_bonus,
            "edge_control_bonus": self.edge_control_bonus,
        }


class MoveDecision(BaseModel):
    """Result of one turn of the decision engine.

    ``placement`` is set only when ``status`` is PLACED. "No legal move" is a
    distinct status rather than a sentinel coordinate; mapping it to the
    wire protocol's fallback is the writer's job.
    """
    status: DecisionStatus
    placement: Optional[Placement] = None
    breakdown: Optional[ScoreBreakdown] = None
    profile: StrategyProfile = StrategyProfile.BALANCED
    candidates_considered: int = 0
    candidates_evaluated: int = 0
    timed_out: bool = False
    elapsed_ms: float = 0.0

    class Config:
        frozen = True

    @property
    def anchor(self) -> Optional[Position]:
        return self.placement.anchor if self.placement is not None else None

    @classmethod
    def no_legal_move(cls, profile: StrategyProfile, **kwargs) -> "MoveDecision":
        return cls(status=DecisionStatus.NO_LEGAL_MOVE, profile=profile, **kwargs)


class EngineConfig(BaseModel):
    """Decision engine configuration"""
    profile: StrategyProfile = StrategyProfile.BALANCED
    time_budget_ms: Optional[int] = Field(None, ge=1)
    cache_max_entries: int = Field(50_000, ge=1)
    flood_fill_max_iterations: Optional[int] = Field(None, ge=1)
    use_pruning: bool = True

    class Config:
        frozen = True

    @classmethod
    def from_env(cls, **overrides) -> "EngineConfig":
        """Build a config from ``FILLER_*`` environment variables.

        Explicit keyword overrides win over the environment; ``None``
        overrides are ignored so argparse defaults can be passed straight
        through.
        """
        values: dict = {}
        profile = os.getenv("FILLER_PROFILE")
        if profile:
            values["profile"] = parse_profile(profile)
        budget = os.getenv("FILLER_TIME_BUDGET_MS")
        if budget:
            values["time_budget_ms"] = int(budget)
        cache_size = os.getenv("FILLER_CACHE_SIZE")
        if cache_size:
            values["cache_max_entries"] = int(cache_size)
        values["use_pruning"] = (
            os.getenv("FILLER_USE_PRUNING", "true").lower() == "true"
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def parse_profile(value: str) -> StrategyProfile:
    """Resolve a profile name, accepting underscores for hyphens."""
    normalised = value.strip().lower().replace("_", "-")
    try:
        return StrategyProfile(normalised)
    except ValueError as exc:
        known = ", ".join(p.value for p in StrategyProfile)
        raise ConfigurationError(
            f"Unknown strategy profile {value!r}",
            context={"known": known},
        ) from exc
