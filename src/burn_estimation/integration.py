"""
Helpers for callers that store or forward a summarised analysis.

The summary (BurnAnalysisMetadata) is what gets persisted or sent to other
subsystems: Kelly sizing, Monte Carlo simulators, edge displays. Stored
summaries must pass validate_metadata before use; anything that fails should
be recomputed from scratch, not patched.
"""

import math
import time
from dataclasses import dataclass, replace
from numbers import Real
from typing import Any, Dict, Mapping, Optional

import numpy as np

from .models import ProfessionalBurnAnalysis, clamp

REQUIRED_FIELDS = {
    "weighted_edge_impact": "weightedEdgeImpact",
    "uncertainty_level": "uncertaintyLevel",
    "kelly_multiplier": "kellyMultiplier",
    "monte_carlo_adjustment": "monteCarloAdjustment",
}

FIELD_BOUNDS = {
    "uncertainty_level": (0.0, 1.0),
    "kelly_multiplier": (0.1, 3.0),
    "monte_carlo_adjustment": (0.1, 2.0),
}


@dataclass(frozen=True)
class BurnAnalysisMetadata:
    weighted_edge_impact: float
    uncertainty_level: float
    kelly_multiplier: float
    monte_carlo_adjustment: float
    last_updated: float  # epoch seconds

    @classmethod
    def from_analysis(
        cls, analysis: ProfessionalBurnAnalysis, now: Optional[float] = None
    ) -> "BurnAnalysisMetadata":
        return cls(
            weighted_edge_impact=analysis.weighted_edge_impact,
            uncertainty_level=analysis.uncertainty_level,
            kelly_multiplier=analysis.kelly_multiplier,
            monte_carlo_adjustment=analysis.monte_carlo_adjustment,
            last_updated=time.time() if now is None else now,
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "weightedEdgeImpact": self.weighted_edge_impact,
            "uncertaintyLevel": self.uncertainty_level,
            "kellyMultiplier": self.kelly_multiplier,
            "monteCarloAdjustment": self.monte_carlo_adjustment,
            "lastUpdated": self.last_updated,
        }


def default_metadata(now: Optional[float] = None) -> BurnAnalysisMetadata:
    return BurnAnalysisMetadata(
        weighted_edge_impact=0.0,
        uncertainty_level=0.1,
        kelly_multiplier=1.0,
        monte_carlo_adjustment=1.0,
        last_updated=time.time() if now is None else now,
    )


def validate_metadata(metadata: Optional[Mapping[str, Any]]) -> bool:
    """
    Check a (possibly partial) stored summary.

    Accepts snake_case or camelCase keys. Every required field must be a real,
    finite number and the bounded ones must sit inside their documented range.
    """
    if not metadata:
        return False

    values = {}
    for name, camel in REQUIRED_FIELDS.items():
        value = metadata.get(name, metadata.get(camel))
        if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
            return False
        values[name] = float(value)

    for name, (low, high) in FIELD_BOUNDS.items():
        if values[name] < low or values[name] > high:
            return False
    return True


def apply_to_kelly(base_kelly: float, metadata: Optional[BurnAnalysisMetadata]) -> float:
    """Scale an external Kelly fraction; up to 30% off for uncertainty."""
    if metadata is None:
        return base_kelly
    adjusted = base_kelly * metadata.kelly_multiplier
    adjusted *= 1.0 - metadata.uncertainty_level * 0.3
    return clamp(adjusted, 0.001, 0.5)


@dataclass(frozen=True)
class EdgeCalculation:
    """Edge figures owned by the caller's edge calculator."""

    player_edge: float
    banker_edge: float
    tie_edge: float
    player_pair_edge: float
    banker_pair_edge: float
    confidence: float
    edge_sorting_advantage: Optional[float] = None


def apply_to_edges(edges: EdgeCalculation, metadata: Optional[BurnAnalysisMetadata]) -> EdgeCalculation:
    if metadata is None:
        return edges
    shift = metadata.weighted_edge_impact
    # Pairs are less affected by the burn composition
    pair_shift = shift * 0.5
    penalty = min(metadata.uncertainty_level * 0.3, 0.2)
    sorting = edges.edge_sorting_advantage
    return replace(
        edges,
        player_edge=edges.player_edge + shift,
        banker_edge=edges.banker_edge + shift,
        player_pair_edge=edges.player_pair_edge + pair_shift,
        banker_pair_edge=edges.banker_pair_edge + pair_shift,
        confidence=max(edges.confidence - penalty, 0.1),
        edge_sorting_advantage=None if sorting is None else sorting + shift * 0.3,
    )


@dataclass(frozen=True)
class MonteCarloParams:
    win_rate: float
    avg_bet_size: float
    avg_win: float
    avg_loss: float
    simulations: int
    hands_to_simulate: int


def apply_to_monte_carlo(
    params: MonteCarloParams,
    metadata: Optional[BurnAnalysisMetadata],
    rng: Optional[np.random.Generator] = None,
) -> MonteCarloParams:
    """
    Adjust simulator inputs: scale the win rate and widen win/loss sizes.

    The jitter on average win/loss grows with uncertainty; pass a seeded
    generator for repeatable results.
    """
    if metadata is None:
        return params
    rng = rng if rng is not None else np.random.default_rng()
    spread = 0.2 * (1.0 + metadata.uncertainty_level * 0.5)
    win_jitter, loss_jitter = rng.random(2) - 0.5
    return replace(
        params,
        win_rate=clamp(params.win_rate * metadata.monte_carlo_adjustment, 0.1, 0.9),
        avg_win=params.avg_win * (1.0 + win_jitter * spread),
        avg_loss=params.avg_loss * (1.0 + loss_jitter * spread),
    )


def overall_confidence(metadata: Optional[BurnAnalysisMetadata]) -> float:
    if metadata is None:
        return 1.0
    return max(0.1, 0.9 - metadata.uncertainty_level * 0.4)
