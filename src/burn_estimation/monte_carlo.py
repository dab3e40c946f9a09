"""
Sampling refinement of the Monte Carlo adjustment.

The closed-form adjustment uses each scenario's mean confidence. Sampling
instead draws concrete burns: a scenario is picked by weight and every
estimate is burned with its own probability. The realised uncertainty of the
drawn cards replaces the closed-form one.

Work is CPU-bound and split into batches; the trial budget and an optional
wall-clock deadline bound it. Stopping early is fine, since the only product
is a variance multiplier.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from .config import BurnEngineConfig, DEFAULT_CONFIG
from .impact_aggregator import signed_card_weight
from .models import BurnScenario, clamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonteCarloRefinement:
    trials_requested: int
    trials_run: int
    adjustment: float
    realised_uncertainty: float
    edge_mean: float
    edge_interval: Tuple[float, float]

    @property
    def completed(self) -> bool:
        return self.trials_run >= self.trials_requested


def refine_adjustment(
    scenarios: Sequence[BurnScenario],
    trials: int,
    config: BurnEngineConfig = DEFAULT_CONFIG,
    *,
    seed: Optional[int] = None,
    deadline: Optional[float] = None,
    batch_size: Optional[int] = None,
) -> Optional[MonteCarloRefinement]:
    """
    Run up to `trials` sampled burns across the weighted scenarios.

    Args:
        scenarios: Scenarios with weights and estimates
        trials: Trial budget
        config: Engine constants
        seed: Seed for a repeatable run
        deadline: Seconds after which no new batch is started
        batch_size: Trials per batch (defaults to the config value)

    Returns:
        The refinement, or None when there was nothing to sample
    """
    if trials <= 0 or not scenarios:
        return None
    weights = np.array([s.scenario_weight for s in scenarios], dtype=float)
    total_weight = weights.sum()
    if total_weight <= 0.0:
        return None
    weights = weights / total_weight

    rng = np.random.default_rng(seed)
    batch_size = max(1, batch_size or config.monte_carlo_batch_size)

    # Per-scenario arrays, built once
    tables = []
    for scenario in scenarios:
        probabilities = np.array([e.probability for e in scenario.estimates], dtype=float)
        confidences = np.array([e.confidence for e in scenario.estimates], dtype=float)
        signed = np.array([signed_card_weight(e.rank, config) for e in scenario.estimates], dtype=float)
        tables.append((probabilities, confidences, confidences * signed, scenario.uncertainty))

    edges = []
    uncertainties = []
    trials_run = 0
    started = time.monotonic()

    while trials_run < trials:
        n = min(batch_size, trials - trials_run)
        per_scenario = rng.multinomial(n, weights)
        for index, count in enumerate(per_scenario):
            if count == 0:
                continue
            probabilities, confidences, edge_weights, fallback = tables[index]
            burned = rng.random((count, probabilities.size)) < probabilities
            burned_f = burned.astype(float)
            burned_count = burned_f.sum(axis=1)
            confidence_sum = burned_f @ confidences
            mean_confidence = np.divide(
                confidence_sum, burned_count, out=np.zeros(count), where=burned_count > 0
            )
            edges.append(burned_f @ edge_weights)
            uncertainties.append(np.where(burned_count > 0, 1.0 - mean_confidence, fallback))
        trials_run += n

        if deadline is not None and time.monotonic() - started >= deadline and trials_run < trials:
            logger.info("Monte Carlo refinement stopped at deadline after %d/%d trials", trials_run, trials)
            break

    edge_samples = np.concatenate(edges)
    uncertainty_samples = np.concatenate(uncertainties)
    realised = float(uncertainty_samples.mean())
    low, high = config.monte_carlo_bounds
    low_q, high_q = config.interval_quantiles

    return MonteCarloRefinement(
        trials_requested=trials,
        trials_run=trials_run,
        adjustment=clamp(1.0 - realised * config.monte_carlo_uncertainty_factor, low, high),
        realised_uncertainty=realised,
        edge_mean=float(edge_samples.mean()),
        edge_interval=(float(np.quantile(edge_samples, low_q)), float(np.quantile(edge_samples, high_q))),
    )
