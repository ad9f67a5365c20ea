"""Decision engine for Filler.

The recommended entry point is :class:`HeuristicAI`:

    from filler.ai import HeuristicAI
    from filler.models import EngineConfig, StrategyProfile

    ai = HeuristicAI(EngineConfig(profile=StrategyProfile.DEFENSIVE))
    decision = ai.select_move(board, shape)

Architecture:
- placement.py: legality validator and candidate generator
- territory.py: flood-fill reachable-territory projection
- heuristics.py: per-placement signals (PlacementAnalyzer)
- evaluation_cache.py: two-tier version-stamped cache
- heuristic_weights.py: strategy weight profiles
- heuristic_ai.py: one-ply selector with bound pruning
"""

from filler.ai.base import BaseAI
from filler.ai.evaluation_cache import EvaluationCache
from filler.ai.heuristic_weights import (
    HEURISTIC_WEIGHT_PROFILES,
    get_weights,
    weighted_score,
)
from filler.ai.placement import (
    CandidateGenerator,
    PlacementError,
    PlacementResult,
    is_legal_placement,
    iter_legal_placements,
    validate_placement,
)

# Lazy-load the engine to keep `import filler.ai.placement` light
_AI_CLASSES = {
    "HeuristicAI": "filler.ai.heuristic_ai",
    "PlacementAnalyzer": "filler.ai.heuristics",
}


def __getattr__(name: str):
    """Lazy loading for engine classes."""
    if name in _AI_CLASSES:
        import importlib
        module = importlib.import_module(_AI_CLASSES[name])
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # Profile data
    "HEURISTIC_WEIGHT_PROFILES",
    # Base class
    "BaseAI",
    "CandidateGenerator",
    "EvaluationCache",
    # Engine classes (lazy-loaded)
    "HeuristicAI",
    "PlacementAnalyzer",
    "PlacementError",
    "PlacementResult",
    "get_weights",
    "is_legal_placement",
    "iter_legal_placements",
    "validate_placement",
    "weighted_score",
]
