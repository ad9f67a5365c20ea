"""
Base AI player class for Filler
Abstract base class that all decision engines inherit from
"""

from abc import ABC, abstractmethod
from typing import List

from ..board_manager import Board
from ..models import EngineConfig, MoveDecision, Placement, ScoreBreakdown, Shape
from .placement import CandidateGenerator


class BaseAI(ABC):
    """Abstract base class for all AI implementations"""

    def __init__(self, config: EngineConfig):
        """
        Initialize AI player

        Args:
            config: Engine configuration settings
        """
        self.config = config
        self.move_count = 0

    @abstractmethod
    def select_move(self, board: Board, shape: Shape) -> MoveDecision:
        """
        Select a placement for the current piece

        Args:
            board: Current board snapshot (acting player included)
            shape: Piece to place

        Returns:
            A PLACED decision, or NO_LEGAL_MOVE when nothing fits
        """
        pass

    @abstractmethod
    def evaluate_placement(self, board: Board, placement: Placement) -> float:
        """
        Score a legal placement from the acting player's perspective

        Args:
            board: Current board snapshot
            placement: Legal placement to score

        Returns:
            Weighted score (higher is better)
        """
        pass

    def get_evaluation_breakdown(
        self, board: Board, placement: Placement
    ) -> ScoreBreakdown:
        """
        Get detailed breakdown of a placement's evaluation

        Args:
            board: Current board snapshot
            placement: Legal placement to score

        Returns:
            Signal breakdown; the default only fills in the total
        """
        return ScoreBreakdown(total=self.evaluate_placement(board, placement))

    def get_valid_placements(self, board: Board, shape: Shape) -> List[Placement]:
        """
        Get all legal placements for the acting player, in raster order

        Args:
            board: Current board snapshot
            shape: Piece to place

        Returns:
            List of legal Placement instances
        """
        return list(CandidateGenerator(board, shape))

    def __repr__(self) -> str:
        """String representation of AI"""
        return (
            f"{self.__class__.__name__}"
            f"(profile={self.config.profile.value})"
        )
