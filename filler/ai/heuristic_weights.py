"""Heuristic weight profiles for Filler.

This module centralises every scalar weight used by :class:`HeuristicAI`
when turning a :class:`~filler.models.ScoreBreakdown` into a score, and
exposes one named profile per :class:`~filler.models.StrategyProfile`.

Design goals:

* Keep a **single source of truth** for weights instead of scattering
  literals across the evaluator.
* Profiles are **data rows**: adding a playing style means adding a row
  here, never new evaluator code. Every profile runs the same signal
  computation and differs only in its weight vector.
* Remain JSON-serialisable so tuning runs can snapshot profiles and feed
  them back through :func:`load_trained_profiles_if_available`.

The keys in each profile are the signal field names on ``ScoreBreakdown``.
"""

from __future__ import annotations

import json
import logging
import math
import os
from collections.abc import Mapping

from ..errors import ConfigurationError
from ..models import ScoreBreakdown, StrategyProfile, parse_profile

logger = logging.getLogger(__name__)

HeuristicWeights = dict[str, float]


# Canonical ordered list of signal keys. Profiles are always expanded to
# exactly these keys; tuning tools rely on the order.
WEIGHT_KEYS: list[str] = [
    "cells_added",
    "flood_fill_estimate",
    "weak_position_bonus",
    "density_bonus",
    "edge_control_bonus",
]


def _profile(**weights: float) -> HeuristicWeights:
    """Build a full profile; signals not mentioned get weight 0."""
    unknown = set(weights) - set(WEIGHT_KEYS)
    if unknown:
        raise ConfigurationError(
            "Unknown weight keys", context={"keys": sorted(unknown)}
        )
    return {key: float(weights.get(key, 0.0)) for key in WEIGHT_KEYS}


# --- Balanced --------------------------------------------------------------
#
# Default profile: every signal contributes, with immediate expansion
# dominating and edge control as a tie-breaker.

BALANCED_WEIGHTS: HeuristicWeights = _profile(
    cells_added=10.0,
    flood_fill_estimate=1.5,
    weak_position_bonus=2.0,
    density_bonus=1.2,
    edge_control_bonus=0.5,
)


# --- Personas --------------------------------------------------------------

# Grab cells now and keep the most room to grow.
AGGRESSIVE_EXPANSION_WEIGHTS: HeuristicWeights = _profile(
    cells_added=10.0,
    flood_fill_estimate=2.0,
)

# Go after thinly defended opponent cells.
OPPORTUNISTIC_WEIGHTS: HeuristicWeights = _profile(
    cells_added=5.0,
    weak_position_bonus=2.5,
)

# Consolidate around existing territory and hug the walls.
DEFENSIVE_WEIGHTS: HeuristicWeights = _profile(
    density_bonus=2.0,
    edge_control_bonus=1.5,
)

# Deny the opponent space next to their weak cells.
STRATEGIC_BLOCKING_WEIGHTS: HeuristicWeights = _profile(
    cells_added=3.0,
    weak_position_bonus=1.8,
)

# Expansion with an eye on long-term room and the board edges.
TERRITORIAL_WEIGHTS: HeuristicWeights = _profile(
    cells_added=8.0,
    flood_fill_estimate=1.5,
    edge_control_bonus=0.8,
)


HEURISTIC_WEIGHT_PROFILES: dict[StrategyProfile, HeuristicWeights] = {
    StrategyProfile.AGGRESSIVE_EXPANSION: AGGRESSIVE_EXPANSION_WEIGHTS,
    StrategyProfile.OPPORTUNISTIC: OPPORTUNISTIC_WEIGHTS,
    StrategyProfile.DEFENSIVE: DEFENSIVE_WEIGHTS,
    StrategyProfile.STRATEGIC_BLOCKING: STRATEGIC_BLOCKING_WEIGHTS,
    StrategyProfile.BALANCED: BALANCED_WEIGHTS,
    StrategyProfile.TERRITORIAL: TERRITORIAL_WEIGHTS,
}


def get_weights(profile: StrategyProfile | str) -> HeuristicWeights:
    """Return a copy of the weight profile for ``profile``.

    Raises:
        ConfigurationError: for an unknown profile name
    """
    if not isinstance(profile, StrategyProfile):
        profile = parse_profile(profile)
    return dict(HEURISTIC_WEIGHT_PROFILES[profile])


def weighted_score(
    breakdown: ScoreBreakdown | Mapping[str, float],
    weights: Mapping[str, float],
) -> float:
    """Sum of ``signal * weight`` over :data:`WEIGHT_KEYS`.

    Accepts either a breakdown or a plain signal mapping; missing signals
    count as 0.
    """
    signals = breakdown.signals() if isinstance(breakdown, ScoreBreakdown) else breakdown
    total = 0.0
    for key in WEIGHT_KEYS:
        weight = weights.get(key, 0.0)
        if weight:
            total += signals.get(key, 0.0) * weight
    return total


TRAINED_PROFILES_ENV = "FILLER_TRAINED_WEIGHT_PROFILES"


def load_trained_profiles_if_available(
    path: str | None = None,
) -> dict[StrategyProfile, HeuristicWeights]:
    """Load tuned weights from JSON and merge them into the registry.

    The file has the shape ``{"profiles": {"<profile>": {"<signal>": w}}}``.
    Signals a profile omits keep their current value.

    Parameters
    ----------
    path:
        Optional explicit path. If omitted, the helper looks for the
        ``FILLER_TRAINED_WEIGHT_PROFILES`` environment variable.

    Returns
    -------
    Dict[StrategyProfile, HeuristicWeights]
        The profiles that were updated, with their merged weights.

    Raises
    ------
    ConfigurationError
        For an unreadable file, an unknown profile name, an unknown
        signal key or a weight that is not a finite number.
    """

    if path is None:
        path = os.getenv(TRAINED_PROFILES_ENV)

    if not path or not os.path.exists(path):
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(
            "Could not read trained weight profiles", context={"path": path}
        ) from exc

    profiles = payload.get("profiles", {}) if isinstance(payload, dict) else None
    if not isinstance(profiles, dict):
        raise ConfigurationError(
            "Trained weight file must contain a 'profiles' object",
            context={"path": path},
        )

    # Validate everything before touching the registry.
    staged: dict[StrategyProfile, HeuristicWeights] = {}
    for name, weights in profiles.items():
        profile = parse_profile(name)
        if not isinstance(weights, dict):
            raise ConfigurationError(
                "Profile weights must be an object", context={"profile": name}
            )
        unknown = set(weights) - set(WEIGHT_KEYS)
        if unknown:
            raise ConfigurationError(
                "Unknown weight keys",
                context={"profile": name, "keys": sorted(unknown)},
            )
        merged = dict(HEURISTIC_WEIGHT_PROFILES[profile])
        for key, value in weights.items():
            if (
                isinstance(value, bool)
                or not isinstance(value, (int, float))
                or not math.isfinite(value)
            ):
                raise ConfigurationError(
                    "Weight must be a finite number",
                    context={"profile": name, "key": key},
                )
            merged[key] = float(value)
        staged[profile] = merged

    for profile, weights in staged.items():
        HEURISTIC_WEIGHT_PROFILES[profile] = weights
        logger.info("Loaded trained weights for profile %s", profile.value)
    return staged
