from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class BurnEngineConfig:
    """Tunable constants for burn estimation and stake adjustment.

    The defaults are the documented contract values; changing them changes
    observable behaviour.
    """

    # Composition method: plausible burn counts and how often houses use them
    burn_counts: Tuple[int, ...] = (3, 4, 5, 6, 7)
    burn_count_weights: Tuple[float, ...] = (0.15, 0.25, 0.35, 0.2, 0.05)
    observed_card_confidence: float = 0.8
    unobserved_card_confidence: float = 0.6

    # Bias method: share of burn mass on high cards, bell-shaped prior
    high_card_biases: Tuple[float, ...] = (0.3, 0.4, 0.5, 0.6, 0.7)
    high_card_bias_weights: Tuple[float, ...] = (0.1, 0.2, 0.4, 0.2, 0.1)
    bias_penetration_scale: float = 0.1
    bias_probability_cap: float = 0.8

    # Pattern method
    pattern_styles: Tuple[str, ...] = ("conservative", "moderate", "aggressive")
    style_multipliers: Tuple[float, ...] = (0.7, 1.0, 1.3)
    style_confidences: Tuple[float, ...] = (0.8, 0.6, 0.4)
    style_weights: Tuple[float, ...] = (0.3, 0.5, 0.2)
    observed_burn_weight_bonus: float = 0.1
    history_blend: float = 0.7  # remainder goes to the recency window
    recent_hands: int = 5
    cards_per_hand: int = 6
    unseen_rank_probability: float = 0.1
    observed_rank_bonus: float = 0.2
    observed_burns_for_full_confidence: int = 10
    availability_scale: float = 10.0
    pattern_probability_cap: float = 0.9
    pattern_confidence_cap: float = 0.95

    # Dealer-tell fusion
    tell_scaling: Dict[str, float] = field(
        default_factory=lambda: {
            "hesitation": 0.7,
            "timing": 0.7,
            "positioning": 0.8,
            "hand_movement": 0.6,
            "facial_expression": 0.6,
            "card_handling": 0.6,
        }
    )
    reliability_scores: Dict[str, float] = field(
        default_factory=lambda: {"low": 0.3, "medium": 0.6, "high": 0.9}
    )
    repeated_tell_bonus: float = 0.2
    tell_weight_factor: float = 0.3
    placeholder_suit: str = "spades"

    # Team-play fusion
    observer_positions: int = 4
    consensus_boost: float = 0.5
    team_probability_factor: float = 0.85
    team_position_weight: float = 0.6
    team_agreement_weight: float = 0.4
    team_weight_factor: float = 0.4

    # Learned predictor
    ml_min_hands: int = 10  # strictly more hands than this are required
    ml_full_confidence_hands: int = 50
    ml_recent_outcomes: int = 10
    ml_top_picks: int = 5
    ml_weight_factor: float = 0.25

    # Bayesian updater
    base_likelihood: float = 0.5
    dealer_tell_boost: float = 0.3
    partial_glimpse_boost: float = 0.4
    timing_pattern_boost: float = 0.1
    likelihood_cap: float = 0.95
    bayesian_confidence_step: float = 0.1

    # Impact aggregation
    zero_value_card_weight: float = 0.001
    low_value_card_weight: float = -0.001
    low_value_max: int = 3
    uncertainty_penalty: float = 0.5
    kelly_adjustment_bounds: Tuple[float, float] = (0.1, 2.0)
    kelly_multiplier_bounds: Tuple[float, float] = (0.1, 3.0)
    monte_carlo_uncertainty_factor: float = 0.3
    monte_carlo_bounds: Tuple[float, float] = (0.1, 2.0)
    interval_quantiles: Tuple[float, float] = (0.1, 0.9)

    # Recommendation thresholds
    edge_threshold: float = 0.005
    kelly_increase_threshold: float = 1.1
    kelly_decrease_threshold: float = 0.9
    low_uncertainty_threshold: float = 0.4
    high_uncertainty_threshold: float = 0.6
    base_kelly_fraction: float = 0.02
    kelly_percentage_bounds: Tuple[float, float] = (0.001, 0.25)

    # Optional sampling refinement of the Monte Carlo adjustment (0 = off)
    monte_carlo_trials: int = 0
    monte_carlo_batch_size: int = 1000
    monte_carlo_seed: Optional[int] = None
    monte_carlo_deadline: Optional[float] = None  # seconds


DEFAULT_CONFIG = BurnEngineConfig()
