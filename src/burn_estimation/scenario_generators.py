"""
Scenario generators: three independent statistical views of the burn.

- composition: burn count unknown, cards drawn in proportion to the shoe
- bias: the dealer's burns lean towards high or low cards
- pattern: recent hand history suggests which ranks are "running"

Each generator is a pure function of the shoe snapshot (plus its own evidence)
and returns a fixed-size tuple of scenarios. Cards with a zero count go
through the same formula as everything else and come out at zero.
"""

from collections import Counter
from typing import Mapping, Sequence, Tuple

from baccarat_mechanics.cards import Card, CardKey, HIGH_RANKS, LOW_RANKS
from baccarat_mechanics.hand_result import HandResult
from baccarat_mechanics.shoe import category_totals, count_by_key, total_cards
from .config import BurnEngineConfig, DEFAULT_CONFIG
from .hand_history import blended_rank_frequencies
from .impact_aggregator import build_scenario
from .models import BurnEstimate, BurnMethod, BurnScenario, clamp01


def composition_scenarios(
    shoe: Mapping[CardKey, int],
    observed_burns: Sequence[Card] = (),
    config: BurnEngineConfig = DEFAULT_CONFIG,
) -> Tuple[BurnScenario, ...]:
    """One scenario per plausible burn count, weighted by how often houses use it."""
    observed = count_by_key(observed_burns)
    total = total_cards(shoe)

    scenarios = []
    for burn_count, weight in zip(config.burn_counts, config.burn_count_weights):
        estimates = []
        for key, count in shoe.items():
            observed_count = observed.get(key, 0)
            # Observed burns are already accounted for; don't count them twice
            adjusted = max(0, count - observed_count)
            probability = (adjusted / total) * (burn_count / total) if total > 0 else 0.0

            evidence = ["shoe_composition", "burn_count_estimate"]
            if observed_count > 0:
                evidence.append("observed_burn")
            estimates.append(
                BurnEstimate(
                    rank=key.rank,
                    suit=key.suit,
                    probability=probability,
                    confidence=(
                        config.observed_card_confidence
                        if observed_count > 0
                        else config.unobserved_card_confidence
                    ),
                    method=BurnMethod.STATISTICAL,
                    evidence=tuple(evidence),
                )
            )
        scenarios.append(
            build_scenario(
                f"composition_{burn_count}",
                f"Composition method ({burn_count} burns)",
                estimates,
                weight,
                config,
            )
        )
    return tuple(scenarios)


def bias_scenarios(
    shoe: Mapping[CardKey, int],
    penetration: float,
    config: BurnEngineConfig = DEFAULT_CONFIG,
) -> Tuple[BurnScenario, ...]:
    """
    One scenario per high-card bias level.

    Within a scenario a high card's probability is its share of the high
    cards times the bias, a low card's is its share of the low cards times the
    complement. Deeper penetration means more burns behind us, so everything
    scales with it. No single card is allowed above the cap.
    """
    penetration = clamp01(penetration)
    total_high, total_low = category_totals(shoe)
    confidence_scale = 0.4

    scenarios = []
    for bias, weight in zip(config.high_card_biases, config.high_card_bias_weights):
        confidence = 0.5 + abs(bias - 0.5) * confidence_scale
        estimates = []
        for key, count in shoe.items():
            if key.rank in HIGH_RANKS:
                share = count / total_high if total_high > 0 else 0.0
                probability = bias * share
            elif key.rank in LOW_RANKS:
                share = count / total_low if total_low > 0 else 0.0
                probability = (1.0 - bias) * share
            else:
                probability = 0.0
            probability *= penetration * config.bias_penetration_scale

            estimates.append(
                BurnEstimate(
                    rank=key.rank,
                    suit=key.suit,
                    probability=min(probability, config.bias_probability_cap),
                    confidence=confidence,
                    method=BurnMethod.STATISTICAL,
                    evidence=("dealer_bias_pattern", "penetration_analysis", "card_category_analysis"),
                )
            )
        scenarios.append(
            build_scenario(
                f"bias_{round(bias * 100)}",
                f"Bias method ({bias * 100:.0f}% high card bias)",
                estimates,
                weight,
                config,
            )
        )
    return tuple(scenarios)


def pattern_scenarios(
    shoe: Mapping[CardKey, int],
    hand_history: Sequence[HandResult] = (),
    observed_burns: Sequence[Card] = (),
    config: BurnEngineConfig = DEFAULT_CONFIG,
) -> Tuple[BurnScenario, ...]:
    """
    Adaptive estimates from hand history, at three levels of aggressiveness.

    Rank frequencies blend the whole history (stable) with a recency-weighted
    window (responsive to a dealer running hot).
    """
    frequencies = blended_rank_frequencies(
        hand_history,
        history_blend=config.history_blend,
        window=config.recent_hands,
        cards_per_hand=config.cards_per_hand,
    )
    burned_ranks = Counter(card.rank for card in observed_burns)
    observed_confidence = min(len(observed_burns) / config.observed_burns_for_full_confidence, 1.0)
    weight_bonus = config.observed_burn_weight_bonus if observed_burns else 0.0
    total = total_cards(shoe)

    scenarios = []
    for style, multiplier, style_confidence, base_weight in zip(
        config.pattern_styles,
        config.style_multipliers,
        config.style_confidences,
        config.style_weights,
    ):
        confidence = min(style_confidence + observed_confidence * 0.2, config.pattern_confidence_cap)
        estimates = []
        for key, count in shoe.items():
            base_probability = frequencies.get(key.rank) or config.unseen_rank_probability
            burned = burned_ranks.get(key.rank, 0) > 0
            burn_adjustment = config.observed_rank_bonus if burned else 0.0
            availability = count / total if total > 0 else 0.0
            probability = min(
                (base_probability + burn_adjustment) * multiplier * availability * config.availability_scale,
                config.pattern_probability_cap,
            )

            evidence = ["historical_pattern", f"{style}_estimation", "card_availability"]
            if burned:
                evidence.append("observed_burn_pattern")
            estimates.append(
                BurnEstimate(
                    rank=key.rank,
                    suit=key.suit,
                    probability=probability,
                    confidence=confidence,
                    method=BurnMethod.PATTERN,
                    evidence=tuple(evidence),
                )
            )
        scenarios.append(
            build_scenario(
                f"pattern_{style}",
                f"Pattern method ({style} estimation)",
                estimates,
                clamp01(base_weight + weight_bonus),
                config,
            )
        )
    return tuple(scenarios)
