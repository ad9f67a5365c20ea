"""Prometheus metrics for the Filler decision engine.

Counters and histograms live here so the engine and the evaluation cache
can record lightweight telemetry without managing their own metric
instances. Nothing is exported over HTTP; the default registry can be
scraped or dumped by whatever embeds the engine.
"""

from __future__ import annotations

from typing import Final

from prometheus_client import Counter, Gauge, Histogram


DECISIONS: Final[Counter] = Counter(
    "filler_decisions_total",
    "Total number of turn decisions, labeled by profile and outcome.",
    labelnames=("profile", "outcome"),
)

DECISION_LATENCY: Final[Histogram] = Histogram(
    "filler_decision_latency_seconds",
    "Latency of turn decisions in seconds, labeled by profile.",
    labelnames=("profile",),
    buckets=(
        0.001,
        0.005,
        0.01,
        0.025,
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.0,
    ),
)

CANDIDATES_PER_TURN: Final[Histogram] = Histogram(
    "filler_candidates_per_turn",
    "Legal candidates considered per turn.",
    buckets=(0, 1, 5, 10, 25, 50, 100, 250, 500, 1000),
)

CANDIDATES_PRUNED: Final[Counter] = Counter(
    "filler_candidates_pruned_total",
    "Candidates skipped by bound pruning or the time budget.",
    labelnames=("reason",),
)

CACHE_LOOKUPS: Final[Counter] = Counter(
    "filler_cache_lookups_total",
    "Evaluation cache lookups, labeled by tier and outcome.",
    labelnames=("tier", "outcome"),
)

CACHE_SIZE: Final[Gauge] = Gauge(
    "filler_cache_entries",
    "Current number of entries per evaluation cache tier.",
    labelnames=("tier",),
)


def record_decision(
    profile: str,
    outcome: str,
    elapsed_seconds: float,
    candidates: int,
) -> None:
    """Record metrics for one completed turn decision.

    Args:
        profile: Strategy profile value (e.g. 'balanced')
        outcome: Decision status value, or 'timed_out'
        elapsed_seconds: Wall-clock time spent deciding
        candidates: Number of legal candidates generated
    """
    DECISIONS.labels(profile, outcome).inc()
    DECISION_LATENCY.labels(profile).observe(elapsed_seconds)
    CANDIDATES_PER_TURN.observe(candidates)
