"""
Bayesian refinement of burn estimates.

Each call is a one-way step: the posterior of one call is the prior of the
next, so applying the same evidence twice compounds it. Callers that need
reproducibility must track how many times they refined a scenario.
"""

from dataclasses import replace
from typing import Sequence, Tuple

from .config import BurnEngineConfig, DEFAULT_CONFIG
from .impact_aggregator import build_scenario
from .models import BurnEstimate, BurnMethod, BurnScenario, Evidence, EvidenceType


def likelihood(
    estimate: BurnEstimate, evidence: Sequence[Evidence], config: BurnEngineConfig = DEFAULT_CONFIG
) -> float:
    """P(evidence | this card was burned), from fixed per-type boosts."""
    value = config.base_likelihood
    for item in evidence:
        if item.type == EvidenceType.DEALER_TELL and item.rank == estimate.rank:
            value += config.dealer_tell_boost
        if item.type == EvidenceType.PARTIAL_GLIMPSE and item.rank == estimate.rank:
            value += config.partial_glimpse_boost
        if item.type == EvidenceType.TIMING_PATTERN:
            value += config.timing_pattern_boost
    return min(value, config.likelihood_cap)


def posterior(prior: float, likelihood_value: float) -> float:
    numerator = likelihood_value * prior
    denominator = numerator + (1.0 - likelihood_value) * (1.0 - prior)
    if denominator <= 0.0:
        return prior
    return numerator / denominator


def bayesian_update(
    estimates: Sequence[BurnEstimate],
    evidence: Sequence[Evidence],
    config: BurnEngineConfig = DEFAULT_CONFIG,
) -> Tuple[BurnEstimate, ...]:
    """Return new estimates with updated probabilities; inputs are untouched."""
    updated = []
    for estimate in estimates:
        updated.append(
            replace(
                estimate,
                probability=posterior(estimate.probability, likelihood(estimate, evidence, config)),
                confidence=min(estimate.confidence + config.bayesian_confidence_step, 1.0),
                method=BurnMethod.BAYESIAN,
                evidence=estimate.evidence + ("bayesian_update",),
            )
        )
    return tuple(updated)


def refine_scenario(
    scenario: BurnScenario,
    evidence: Sequence[Evidence],
    config: BurnEngineConfig = DEFAULT_CONFIG,
) -> BurnScenario:
    """A new scenario with refined estimates and recomputed impact figures."""
    return build_scenario(
        scenario.id,
        scenario.name,
        bayesian_update(scenario.estimates, evidence, config),
        scenario.scenario_weight,
        config,
    )
