from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional

from .config import BurnEngineConfig, DEFAULT_CONFIG
from .models import ProfessionalBurnAnalysis, RecommendedAction, clamp

STANDARD_BETTING = "Standard betting recommended"


@dataclass(frozen=True)
class BurnRecommendation:
    kelly_percentage: float  # base Kelly scaled by the burn analysis, clamped
    edge_adjustment: float  # weighted edge impact to add to the caller's edge
    confidence: float  # 1 - width of the edge-impact interval
    action: RecommendedAction
    reasoning: str

    def to_dict(self) -> Dict:
        return {
            "kelly_percentage": self.kelly_percentage,
            "edge_adjustment": self.edge_adjustment,
            "confidence": self.confidence,
            "action": self.action.value,
            "reasoning": self.reasoning,
        }


def decide_action(
    weighted_edge_impact: float,
    kelly_multiplier: float,
    uncertainty: float,
    config: BurnEngineConfig = DEFAULT_CONFIG,
) -> RecommendedAction:
    """
    Bounded action from the aggregate figures.

    Aggressive needs a favourable edge, a Kelly push and low uncertainty.
    Any one warning sign (unfavourable edge, high uncertainty, Kelly cut) is
    enough for conservative.
    """
    if (
        weighted_edge_impact > config.edge_threshold
        and kelly_multiplier > config.kelly_increase_threshold
        and uncertainty < config.low_uncertainty_threshold
    ):
        return RecommendedAction.AGGRESSIVE
    if (
        weighted_edge_impact < -config.edge_threshold
        or uncertainty > config.high_uncertainty_threshold
        or kelly_multiplier < config.kelly_decrease_threshold
    ):
        return RecommendedAction.CONSERVATIVE
    return RecommendedAction.NEUTRAL


def recommendation_reasons(
    analysis: ProfessionalBurnAnalysis, config: BurnEngineConfig = DEFAULT_CONFIG
) -> List[str]:
    """One reason per threshold the analysis crossed."""
    reasons = []
    edge = analysis.weighted_edge_impact
    kelly = analysis.kelly_multiplier
    if edge > config.edge_threshold:
        reasons.append(f"Favorable edge impact: +{edge * 100:.3f}%")
    elif edge < -config.edge_threshold:
        reasons.append(f"Unfavorable edge impact: {edge * 100:.3f}%")

    if kelly > config.kelly_increase_threshold:
        reasons.append(f"Kelly suggests increased betting: +{(kelly - 1) * 100:.1f}%")
    elif kelly < config.kelly_decrease_threshold:
        reasons.append(f"Kelly suggests reduced betting: -{(1 - kelly) * 100:.1f}%")

    if analysis.uncertainty_level > config.high_uncertainty_threshold:
        reasons.append(
            f"High uncertainty detected: {analysis.uncertainty_level * 100:.1f}% "
            f"({(1 - analysis.monte_carlo_adjustment) * 100:.1f}% risk reduction)"
        )
    return reasons


def recommend(
    analysis: ProfessionalBurnAnalysis, config: BurnEngineConfig = DEFAULT_CONFIG
) -> BurnRecommendation:
    low, high = analysis.confidence_interval
    kelly_low, kelly_high = config.kelly_percentage_bounds
    adjusted_kelly = config.base_kelly_fraction * analysis.kelly_multiplier * analysis.monte_carlo_adjustment
    reasons = recommendation_reasons(analysis, config)
    return BurnRecommendation(
        kelly_percentage=clamp(adjusted_kelly, kelly_low, kelly_high),
        edge_adjustment=analysis.weighted_edge_impact,
        confidence=clamp(1.0 - (high - low), 0.0, 1.0),
        action=analysis.recommended_action,
        reasoning="; ".join(reasons) if reasons else STANDARD_BETTING,
    )


class BurnAdjustedBetSizer:
    """Turns a burn analysis into a table stake."""

    def __init__(
        self,
        config: Optional[BurnEngineConfig] = None,
        *,
        table_min: float = 10.0,
        table_max: float = 1000.0,
        bet_increment: float = 5.0,  # bet must be rounded down to this increment
    ):
        self.config = config or DEFAULT_CONFIG
        self.table_min = float(table_min)
        self.table_max = float(table_max)
        self.bet_increment = float(max(0.01, bet_increment))

    def recommend(self, analysis: ProfessionalBurnAnalysis) -> BurnRecommendation:
        return recommend(analysis, self.config)

    def bet_size(self, bankroll: float, analysis: ProfessionalBurnAnalysis) -> float:
        if bankroll <= 0:
            return self.table_min

        recommendation = self.recommend(analysis)
        bet = min(bankroll * recommendation.kelly_percentage, self.table_max)

        # Round down to bet increment
        if self.bet_increment > 0:
            bet = (bet // self.bet_increment) * self.bet_increment

        return max(bet, self.table_min)

    def explain(self, bankroll: float, analysis: ProfessionalBurnAnalysis) -> str:
        recommendation = self.recommend(analysis)
        bet = self.bet_size(bankroll, analysis)
        parts = [
            f"Action {recommendation.action.value}.",
            f"Kelly {recommendation.kelly_percentage:.2%} of bankroll, edge shift {recommendation.edge_adjustment:+.4%}.",
            recommendation.reasoning + ".",
        ]
        if bet >= self.table_max - 1e-9:
            parts.append("Capped at table max.")
        if bet <= self.table_min + 1e-9:
            parts.append("At table min.")
        return " ".join(parts)
