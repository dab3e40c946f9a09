"""
Lightweight learned burn predictor.

A fixed linear feature model over table state. It re-uses the hand-history
frequency normalisation of the pattern method and tilts the resulting rank
distribution by a handful of features. Its output is advisory: the fusion
layer down-weights it and it never runs on short histories.
"""

import logging
import math
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Sequence, Tuple

from baccarat_mechanics.cards import Card, CardKey, HIGH_RANKS, RANKS, SUITS, card_value
from baccarat_mechanics.hand_result import HandResult
from baccarat_mechanics.shoe import high_card_ratio
from .config import BurnEngineConfig, DEFAULT_CONFIG
from .hand_history import blended_rank_frequencies, normalize_frequencies, outcome_tallies, suit_frequencies
from .models import DealerTellEvidence, MLBurnPrediction, TellType, clamp01

logger = logging.getLogger(__name__)

# High-card share of a complete deck (20 of 52)
NEUTRAL_HIGH_RATIO = len(HIGH_RANKS) / len(RANKS)

FEATURE_IMPORTANCE: Dict[str, float] = {
    "high_card_ratio": 0.35,
    "outcome_balance": 0.25,
    "avg_dealer_hesitation": 0.2,
    "hands_since_last_burn": 0.15,
    "time_of_day": 0.05,
}

# Hands without a seen burn after which that feature saturates
BURN_GAP_SATURATION = 20
BASE_PROPENSITY = 0.5


@dataclass(frozen=True)
class BurnFeatures:
    avg_dealer_hesitation: float
    player_wins: int
    banker_wins: int
    ties: int
    high_card_ratio: float
    time_of_day: float  # fraction of the UTC day, 0.5 when unknown
    hands_since_last_burn: int

    @property
    def outcome_balance(self) -> float:
        """Banker-minus-player share of recent decided and tied hands, in [-1, 1]."""
        played = self.player_wins + self.banker_wins + self.ties
        if played == 0:
            return 0.0
        return (self.banker_wins - self.player_wins) / played

    def as_dict(self) -> Dict[str, float]:
        out = asdict(self)
        out["outcome_balance"] = self.outcome_balance
        return out


def extract_features(
    hand_history: Sequence[HandResult],
    shoe: Mapping[CardKey, int],
    observed_burns: Sequence[Card] = (),
    dealer_tells: Sequence[DealerTellEvidence] = (),
    config: BurnEngineConfig = DEFAULT_CONFIG,
) -> BurnFeatures:
    hesitations = [t.confidence for t in dealer_tells if t.type == TellType.HESITATION]
    avg_hesitation = sum(hesitations) / len(hesitations) if hesitations else 0.0
    tallies = outcome_tallies(hand_history, config.ml_recent_outcomes)
    return BurnFeatures(
        avg_dealer_hesitation=avg_hesitation,
        player_wins=tallies["player"],
        banker_wins=tallies["banker"],
        ties=tallies["tie"],
        high_card_ratio=high_card_ratio(shoe),
        time_of_day=_time_of_day(hand_history),
        hands_since_last_burn=_hands_since_last_burn(hand_history, observed_burns),
    )


def _time_of_day(hand_history: Sequence[HandResult]) -> float:
    timestamps = []
    for hand in hand_history:
        if hand.timestamp is None:
            continue
        try:
            value = float(hand.timestamp)
        except (TypeError, ValueError):
            value = math.nan
        if math.isfinite(value):
            timestamps.append(value)
        else:
            logger.warning("Ignoring hand %s timestamp %r; not a finite number", hand.hand_number, hand.timestamp)
    if not timestamps:
        return 0.5
    try:
        moment = datetime.fromtimestamp(max(timestamps), tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        # e.g. millisecond epochs land far outside the supported year range
        logger.warning("Hand timestamp %r is not epoch seconds; time of day unknown", max(timestamps))
        return 0.5
    seconds = moment.hour * 3600 + moment.minute * 60 + moment.second
    return seconds / 86400.0


def _hands_since_last_burn(hand_history: Sequence[HandResult], observed_burns: Sequence[Card]) -> int:
    burn_hands = [c.hand_number for c in observed_burns if c.hand_number is not None]
    if not hand_history:
        return 0
    if not burn_hands:
        return len(hand_history)
    return max(0, hand_history[-1].hand_number - max(burn_hands))


def burn_propensity(features: BurnFeatures) -> float:
    """How strongly the table state suggests a burn just happened, in [0, 1]."""
    gap = min(features.hands_since_last_burn / BURN_GAP_SATURATION, 1.0)
    late_or_early = abs(features.time_of_day - 0.5) * 2.0
    return clamp01(
        BASE_PROPENSITY
        + FEATURE_IMPORTANCE["avg_dealer_hesitation"] * features.avg_dealer_hesitation
        + FEATURE_IMPORTANCE["hands_since_last_burn"] * gap
        + FEATURE_IMPORTANCE["time_of_day"] * late_or_early
    )


def predict_burns(
    hand_history: Sequence[HandResult],
    features: BurnFeatures,
    config: BurnEngineConfig = DEFAULT_CONFIG,
) -> MLBurnPrediction:
    """
    Rank and suit distributions for the most recent burn.

    A shoe that is rich in high cards suggests the burns were low, and vice
    versa; a banker-heavy run tilts towards zero-value cards having been dealt
    rather than burned.
    """
    frequencies = blended_rank_frequencies(
        hand_history,
        history_blend=config.history_blend,
        window=config.recent_hands,
        cards_per_hand=config.cards_per_hand,
    )
    base = normalize_frequencies({rank: frequencies.get(rank, 0.0) for rank in RANKS})

    richness = (features.high_card_ratio - NEUTRAL_HIGH_RATIO) / NEUTRAL_HIGH_RATIO
    high_tilt = 1.0 - FEATURE_IMPORTANCE["high_card_ratio"] * richness
    zero_value_tilt = 1.0 - FEATURE_IMPORTANCE["outcome_balance"] * features.outcome_balance

    scores = {}
    for rank, share in base.items():
        tilt = high_tilt if rank in HIGH_RANKS else 2.0 - high_tilt
        if card_value(rank) == 0:
            tilt *= zero_value_tilt
        scores[rank] = share * max(tilt, 0.0)
    rank_distribution = normalize_frequencies(scores)

    suits_seen = suit_frequencies(hand_history, config.cards_per_hand)
    suit_distribution = normalize_frequencies({suit: suits_seen.get(suit, 0.0) for suit in SUITS})
    if not suit_distribution:
        suit_distribution = {suit: 1.0 / len(SUITS) for suit in SUITS}

    return MLBurnPrediction(
        predicted_ranks=_ranked(rank_distribution, RANKS),
        predicted_suits=_ranked(suit_distribution, SUITS),
        model_confidence=min(len(hand_history) / config.ml_full_confidence_hands, 1.0),
        training_data_size=len(hand_history),
        feature_importance=dict(FEATURE_IMPORTANCE),
    )


def _ranked(distribution: Mapping[str, float], order: Sequence[str]) -> Tuple[Tuple[str, float], ...]:
    # sorted() is stable, so ties keep the canonical order
    items = [(key, distribution.get(key, 0.0)) for key in order]
    return tuple(sorted(items, key=lambda item: item[1], reverse=True))


def top_picks(prediction: MLBurnPrediction, count: int = 5) -> List[Tuple[CardKey, float]]:
    """Most likely (card, joint probability) pairs, skipping impossible ones."""
    joint = []
    for rank, rank_p in prediction.predicted_ranks:
        for suit, suit_p in prediction.predicted_suits:
            p = rank_p * suit_p
            if p > 0.0:
                joint.append((CardKey(rank, suit), p))
    joint.sort(key=lambda item: item[1], reverse=True)
    return joint[:count]
