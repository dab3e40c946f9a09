"""
Burn analysis orchestration.

Runs the three scenario generators and the fusion steps over one snapshot,
aggregates the result and picks a bounded action. The engine is stateless:
every call works only from its arguments and nothing is cached between calls.
Unusable input degrades to the neutral analysis instead of raising.
"""

import logging
import math
from typing import List, Mapping, Optional, Sequence

from baccarat_mechanics.cards import RANKS, SUITS, Card, CardKey
from baccarat_mechanics.hand_result import HandResult
from baccarat_mechanics.shoe import sanitize_composition
from .bayesian_updater import refine_scenario
from .config import BurnEngineConfig, DEFAULT_CONFIG
from .evidence_fusion import fused_scenarios
from .impact_aggregator import AggregateImpact, aggregate_scenarios
from .models import (
    BurnScenario,
    DealerTellEvidence,
    Evidence,
    ProfessionalBurnAnalysis,
    TeamPlayData,
)
from .monte_carlo import refine_adjustment
from .recommendation import BurnRecommendation, decide_action, recommend
from .scenario_generators import bias_scenarios, composition_scenarios, pattern_scenarios

logger = logging.getLogger(__name__)


class BurnAnalysisEngine:
    """Estimates burned cards and the stake adjustment they imply."""

    def __init__(self, config: Optional[BurnEngineConfig] = None):
        self.config = config or DEFAULT_CONFIG

    def analyze(
        self,
        shoe_composition: Optional[Mapping[CardKey, int]],
        hand_history: Optional[Sequence[HandResult]] = None,
        observed_burns: Optional[Sequence[Card]] = None,
        penetration: Optional[float] = 0.0,
        *,
        dealer_tells: Optional[Sequence[DealerTellEvidence]] = None,
        team_reports: Optional[Sequence[TeamPlayData]] = None,
    ) -> ProfessionalBurnAnalysis:
        """
        Analyse one snapshot.

        Args:
            shoe_composition: Remaining count per card
            hand_history: Completed hands, oldest first
            observed_burns: Burn cards that were exposed
            penetration: Fraction of the shoe already used, clamped to [0, 1]
            dealer_tells: Pre-classified dealer tells
            team_reports: Reports from team observers

        Returns:
            ProfessionalBurnAnalysis; the neutral default when the shoe is unusable
        """
        shoe = sanitize_composition(shoe_composition)
        if shoe is None:
            return ProfessionalBurnAnalysis.neutral()

        hand_history = list(hand_history or ())
        burns = _valid_cards(observed_burns or ())
        penetration = _clean_penetration(penetration)

        scenarios: List[BurnScenario] = []
        scenarios.extend(composition_scenarios(shoe, burns, self.config))
        scenarios.extend(bias_scenarios(shoe, penetration, self.config))
        scenarios.extend(pattern_scenarios(shoe, hand_history, burns, self.config))
        scenarios.extend(
            fused_scenarios(
                shoe,
                hand_history,
                burns,
                dealer_tells or (),
                team_reports or (),
                self.config,
            )
        )
        return self._finalize(scenarios)

    def refine(self, analysis: ProfessionalBurnAnalysis, evidence: Sequence[Evidence]) -> ProfessionalBurnAnalysis:
        """
        Apply new qualitative evidence to every scenario and re-aggregate.

        Returns a new analysis; refining twice with the same evidence compounds.
        """
        if not analysis.scenarios:
            return analysis
        refined = [refine_scenario(s, evidence, self.config) for s in analysis.scenarios]
        return self._finalize(refined)

    def recommend(self, analysis: ProfessionalBurnAnalysis) -> BurnRecommendation:
        return recommend(analysis, self.config)

    def _finalize(self, scenarios: Sequence[BurnScenario]) -> ProfessionalBurnAnalysis:
        sampled_adjustment = None
        sampled_uncertainty = None
        if self.config.monte_carlo_trials > 0:
            refinement = refine_adjustment(
                scenarios,
                self.config.monte_carlo_trials,
                self.config,
                seed=self.config.monte_carlo_seed,
                deadline=self.config.monte_carlo_deadline,
            )
            if refinement is not None:
                sampled_adjustment = refinement.adjustment
                sampled_uncertainty = refinement.realised_uncertainty

        impact = aggregate_scenarios(
            scenarios,
            self.config,
            monte_carlo_adjustment=sampled_adjustment,
            realised_uncertainty=sampled_uncertainty,
        )
        return _build_analysis(scenarios, impact, self.config)


def _build_analysis(
    scenarios: Sequence[BurnScenario], impact: AggregateImpact, config: BurnEngineConfig
) -> ProfessionalBurnAnalysis:
    action = decide_action(
        impact.weighted_edge_impact,
        impact.kelly_multiplier,
        impact.uncertainty_level,
        config,
    )
    return ProfessionalBurnAnalysis(
        scenarios=tuple(scenarios),
        weighted_edge_impact=impact.weighted_edge_impact,
        kelly_multiplier=impact.kelly_multiplier,
        monte_carlo_adjustment=impact.monte_carlo_adjustment,
        confidence_interval=impact.confidence_interval,
        recommended_action=action,
        uncertainty_level=impact.uncertainty_level,
    )


def _clean_penetration(penetration: Optional[float]) -> float:
    try:
        value = float(penetration)
    except (TypeError, ValueError):
        logger.warning("Penetration %r is not a number; using 0.0", penetration)
        return 0.0
    if not math.isfinite(value):
        logger.warning("Penetration %r is not finite; using 0.0", penetration)
        return 0.0
    if value < 0.0 or value > 1.0:
        clamped = max(0.0, min(1.0, value))
        logger.warning("Penetration %.3f out of range; clamped to %.3f", value, clamped)
        return clamped
    return value


def _valid_cards(cards: Sequence[Card]) -> List[Card]:
    valid = []
    for card in cards:
        if card.rank in RANKS and card.suit in SUITS:
            valid.append(card)
        else:
            logger.warning("Ignoring observed burn with unknown identity %r", card)
    return valid


def analyze_burn_scenarios(
    shoe_composition: Optional[Mapping[CardKey, int]],
    hand_history: Optional[Sequence[HandResult]] = None,
    observed_burns: Optional[Sequence[Card]] = None,
    penetration: Optional[float] = 0.0,
    *,
    dealer_tells: Optional[Sequence[DealerTellEvidence]] = None,
    team_reports: Optional[Sequence[TeamPlayData]] = None,
    config: Optional[BurnEngineConfig] = None,
) -> ProfessionalBurnAnalysis:
    """Functional entry point; see BurnAnalysisEngine.analyze."""
    return BurnAnalysisEngine(config).analyze(
        shoe_composition,
        hand_history,
        observed_burns,
        penetration,
        dealer_tells=dealer_tells,
        team_reports=team_reports,
    )
