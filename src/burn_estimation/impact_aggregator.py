"""
Edge and stake impact of burn scenarios.

Per scenario we score an edge shift and a Kelly adjustment; across scenarios we
take a weight-normalised convex combination. The combination is a simplified
model average, not a joint posterior over scenarios: it is kept that way so the
recommendation thresholds keep their documented meaning.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from baccarat_mechanics.cards import card_value
from .config import BurnEngineConfig, DEFAULT_CONFIG
from .models import BurnEstimate, BurnScenario, clamp, estimates_uncertainty


def signed_card_weight(rank: str, config: BurnEngineConfig = DEFAULT_CONFIG) -> float:
    """
    Edge contribution of burning one card of this rank.

    Zero-value cards leaving the shoe slightly favour the banker, cards worth
    1-3 favour the player; everything else is treated as neutral.
    """
    value = card_value(rank)
    if value == 0:
        return config.zero_value_card_weight
    if value <= config.low_value_max:
        return config.low_value_card_weight
    return 0.0


def edge_impact(estimates: Iterable[BurnEstimate], config: BurnEngineConfig = DEFAULT_CONFIG) -> float:
    total = 0.0
    for estimate in estimates:
        total += estimate.probability * estimate.confidence * signed_card_weight(estimate.rank, config)
    return total


def kelly_adjustment(estimates: Sequence[BurnEstimate], config: BurnEngineConfig = DEFAULT_CONFIG) -> float:
    """Scale on the base Kelly fraction: edge raises it, uncertainty cuts it."""
    raw = 1.0 + edge_impact(estimates, config) - estimates_uncertainty(estimates) * config.uncertainty_penalty
    low, high = config.kelly_adjustment_bounds
    return clamp(raw, low, high)


def build_scenario(
    scenario_id: str,
    name: str,
    estimates: Sequence[BurnEstimate],
    weight: float,
    config: BurnEngineConfig = DEFAULT_CONFIG,
) -> BurnScenario:
    """Create a scenario with its impact figures filled in."""
    estimates = tuple(estimates)
    return BurnScenario(
        id=scenario_id,
        name=name,
        estimates=estimates,
        scenario_weight=weight,
        edge_impact=edge_impact(estimates, config),
        kelly_adjustment=kelly_adjustment(estimates, config),
    )


@dataclass(frozen=True)
class AggregateImpact:
    weighted_edge_impact: float
    kelly_multiplier: float
    monte_carlo_adjustment: float
    confidence_interval: Tuple[float, float]
    uncertainty_level: float

    @classmethod
    def neutral(cls) -> "AggregateImpact":
        return cls(0.0, 1.0, 1.0, (0.0, 0.0), 0.0)


def confidence_interval(
    impacts: Sequence[float], quantiles: Tuple[float, float] = (0.1, 0.9)
) -> Tuple[float, float]:
    """
    Lower/upper percentile of per-scenario edge impacts.

    Uses the nearest-rank index floor(n * q) on the sorted values so that small
    scenario sets map onto actual scenario impacts.
    """
    if len(impacts) == 0:
        return (0.0, 0.0)
    ordered = np.sort(np.asarray(impacts, dtype=float))
    n = len(ordered)
    lo_idx = min(n - 1, int(math.floor(n * quantiles[0])))
    hi_idx = min(n - 1, int(math.floor(n * quantiles[1])))
    low, high = float(ordered[lo_idx]), float(ordered[hi_idx])
    return (min(low, high), max(low, high))


def aggregate_scenarios(
    scenarios: Sequence[BurnScenario],
    config: BurnEngineConfig = DEFAULT_CONFIG,
    *,
    monte_carlo_adjustment: Optional[float] = None,
    realised_uncertainty: Optional[float] = None,
) -> AggregateImpact:
    """
    Combine all scenarios into a single weighted estimate.

    Args:
        scenarios: Generated and fused scenarios
        config: Engine constants
        monte_carlo_adjustment: Sampled replacement for the closed-form
            uncertainty adjustment, if a refinement was run
        realised_uncertainty: Sampled uncertainty behind that adjustment; it
            replaces the weighted uncertainty so both figures agree

    Returns:
        AggregateImpact with every figure clamped to its contract bounds
    """
    if not scenarios:
        return AggregateImpact.neutral()

    weights = np.array([s.scenario_weight for s in scenarios], dtype=float)
    total_weight = float(weights.sum())
    if total_weight <= 0.0 or not np.isfinite(total_weight):
        return AggregateImpact.neutral()

    impacts = np.array([s.edge_impact for s in scenarios], dtype=float)
    kellys = np.array([s.kelly_adjustment for s in scenarios], dtype=float)
    uncertainties = np.array([s.uncertainty for s in scenarios], dtype=float)

    weighted_edge = float(np.dot(impacts, weights) / total_weight)
    weighted_kelly = float(np.dot(kellys, weights) / total_weight)
    weighted_uncertainty = float(np.dot(uncertainties, weights) / total_weight)
    if realised_uncertainty is not None:
        weighted_uncertainty = realised_uncertainty

    kelly_low, kelly_high = config.kelly_multiplier_bounds
    mc_low, mc_high = config.monte_carlo_bounds
    if monte_carlo_adjustment is None:
        monte_carlo_adjustment = 1.0 - weighted_uncertainty * config.monte_carlo_uncertainty_factor

    return AggregateImpact(
        weighted_edge_impact=weighted_edge,
        kelly_multiplier=clamp(1.0 + weighted_kelly, kelly_low, kelly_high),
        monte_carlo_adjustment=clamp(monte_carlo_adjustment, mc_low, mc_high),
        confidence_interval=confidence_interval(impacts.tolist(), config.interval_quantiles),
        uncertainty_level=clamp(weighted_uncertainty, 0.0, 1.0),
    )
