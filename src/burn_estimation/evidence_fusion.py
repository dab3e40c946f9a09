"""
Evidence fusion: turn human and model evidence into extra burn scenarios.

Each step scores its evidence independently and yields at most one scenario,
which the engine appends to the generated ones. A step with nothing usable
returns None; that is "insufficient evidence", not an error.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from baccarat_mechanics.cards import Card, CardKey, RANKS, SUITS
from baccarat_mechanics.hand_result import HandResult
from .burn_predictor import burn_propensity, extract_features, predict_burns, top_picks
from .config import BurnEngineConfig, DEFAULT_CONFIG
from .impact_aggregator import build_scenario
from .models import (
    BurnEstimate,
    BurnMethod,
    BurnScenario,
    DealerTellEvidence,
    TeamPlayData,
    TellType,
    clamp01,
)

logger = logging.getLogger(__name__)


def _card_key(tell: DealerTellEvidence, config: BurnEngineConfig) -> Optional[CardKey]:
    """Card a tell points at; unspecified suits fall back to the placeholder."""
    if tell.estimated_rank not in RANKS:
        if tell.estimated_rank is not None:
            logger.warning("Ignoring tell with unknown rank %r", tell.estimated_rank)
        return None
    suit = tell.estimated_suit if tell.estimated_suit in SUITS else config.placeholder_suit
    return CardKey(tell.estimated_rank, suit)


# ---------- dealer tells ----------


def dealer_reliability(tells: Sequence[DealerTellEvidence], config: BurnEngineConfig = DEFAULT_CONFIG) -> float:
    """
    Overall trust in the dealer's tells.

    Mean of the per-tier reliability constants, plus a bonus when the same
    (rank, tell type) shows up more than once. Only tells that name a known
    rank count; the rest never become estimates.
    """
    ranked = [t for t in tells if t.estimated_rank in RANKS]
    if not ranked:
        return 0.0
    score = sum(config.reliability_scores[t.reliability.value] for t in ranked) / len(ranked)
    unique_pairs = {(t.estimated_rank, t.type) for t in ranked}
    if len(unique_pairs) < len(ranked):
        score += config.repeated_tell_bonus
    return clamp01(score)


def dealer_tell_scenario(
    tells: Sequence[DealerTellEvidence], config: BurnEngineConfig = DEFAULT_CONFIG
) -> Optional[BurnScenario]:
    grouped: Dict[TellType, List[DealerTellEvidence]] = defaultdict(list)
    for tell in tells:
        grouped[tell.type].append(tell)

    estimates = []
    for tell_type in TellType:
        scale = config.tell_scaling.get(tell_type.value, 0.0)
        for tell in grouped.get(tell_type, []):
            key = _card_key(tell, config)
            if key is None:
                continue
            estimates.append(
                BurnEstimate(
                    rank=key.rank,
                    suit=key.suit,
                    probability=tell.confidence * scale,
                    confidence=tell.confidence,
                    method=BurnMethod.OBSERVED,
                    evidence=("dealer_tell", f"{tell_type.value}_tell", f"{tell.reliability.value}_reliability"),
                )
            )

    if not estimates:
        logger.debug("No dealer tell names a rank; skipping tell fusion")
        return None

    weight = dealer_reliability(tells, config) * config.tell_weight_factor
    return build_scenario("dealer_tells", "Dealer tell analysis", estimates, weight, config)


# ---------- team play ----------


def _team_reports_by_key(
    reports: Sequence[TeamPlayData], config: BurnEngineConfig
) -> Dict[CardKey, Dict[str, float]]:
    """card -> {observer_id: observer confidence} for every observer reporting it."""
    by_key: Dict[CardKey, Dict[str, float]] = defaultdict(dict)
    for report in reports:
        for observation in report.burn_observations:
            key = _card_key(observation, config)
            if key is not None:
                by_key[key][report.observer_id] = report.confidence
    return by_key


def _team_size(reports: Sequence[TeamPlayData]) -> int:
    return len({r.observer_id for r in reports})


def team_consensus(
    reports: Sequence[TeamPlayData], config: BurnEngineConfig = DEFAULT_CONFIG
) -> Dict[CardKey, float]:
    """
    Team confidence per reported card.

    The mean confidence of the observers who saw the card, boosted by up to
    consensus_boost in proportion to the share of the team that reported it.
    """
    team_size = _team_size(reports)
    consensus = {}
    for key, observers in _team_reports_by_key(reports, config).items():
        mean_confidence = sum(observers.values()) / len(observers)
        agreement = len(observers) / team_size
        consensus[key] = min(mean_confidence * (1.0 + config.consensus_boost * agreement), 1.0)
    return consensus


def team_effectiveness(reports: Sequence[TeamPlayData], config: BurnEngineConfig = DEFAULT_CONFIG) -> float:
    """Position coverage blended with the strongest single-card agreement."""
    if not reports:
        return 0.0
    positions = {r.position for r in reports}
    coverage = min(len(positions) / config.observer_positions, 1.0)
    team_size = _team_size(reports)
    by_key = _team_reports_by_key(reports, config)
    agreement = max((len(observers) / team_size for observers in by_key.values()), default=0.0)
    return clamp01(config.team_position_weight * coverage + config.team_agreement_weight * agreement)


def team_play_scenario(
    reports: Sequence[TeamPlayData], config: BurnEngineConfig = DEFAULT_CONFIG
) -> Optional[BurnScenario]:
    consensus = team_consensus(reports, config)
    if not consensus:
        logger.debug("No team observation names a rank; skipping team fusion")
        return None

    estimates = [
        BurnEstimate(
            rank=key.rank,
            suit=key.suit,
            probability=confidence * config.team_probability_factor,
            confidence=confidence,
            method=BurnMethod.OBSERVED,
            evidence=("team_observation", "cross_referenced"),
        )
        for key, confidence in sorted(consensus.items())
    ]
    weight = team_effectiveness(reports, config) * config.team_weight_factor
    return build_scenario("team_play", "Team play consensus", estimates, weight, config)


# ---------- learned predictor ----------


def ml_scenario(
    hand_history: Sequence[HandResult],
    shoe: Mapping[CardKey, int],
    observed_burns: Sequence[Card] = (),
    dealer_tells: Sequence[DealerTellEvidence] = (),
    config: BurnEngineConfig = DEFAULT_CONFIG,
) -> Optional[BurnScenario]:
    if len(hand_history) <= config.ml_min_hands:
        logger.debug(
            "Hand history has %d hands (need more than %d); skipping predictor",
            len(hand_history),
            config.ml_min_hands,
        )
        return None

    features = extract_features(hand_history, shoe, observed_burns, dealer_tells, config)
    prediction = predict_burns(hand_history, features, config)
    propensity = burn_propensity(features)

    estimates: List[BurnEstimate] = []
    for key, joint in top_picks(prediction, config.ml_top_picks):
        # Relative to a uniform suit split, so a flat suit distribution leaves the rank probability as is
        probability = joint * len(SUITS) * propensity
        estimates.append(
            BurnEstimate(
                rank=key.rank,
                suit=key.suit,
                probability=probability,
                confidence=prediction.model_confidence,
                method=BurnMethod.PATTERN,
                evidence=("ml_prediction", f"training_hands_{prediction.training_data_size}"),
            )
        )

    if not estimates:
        return None
    weight = prediction.model_confidence * config.ml_weight_factor
    return build_scenario("ml_prediction", "Learned burn predictor", estimates, weight, config)


def fused_scenarios(
    shoe: Mapping[CardKey, int],
    hand_history: Sequence[HandResult] = (),
    observed_burns: Sequence[Card] = (),
    dealer_tells: Sequence[DealerTellEvidence] = (),
    team_reports: Sequence[TeamPlayData] = (),
    config: BurnEngineConfig = DEFAULT_CONFIG,
) -> Tuple[BurnScenario, ...]:
    """All fusion steps that had something to say, in a fixed order."""
    candidates = (
        dealer_tell_scenario(dealer_tells, config),
        team_play_scenario(team_reports, config),
        ml_scenario(hand_history, shoe, observed_burns, dealer_tells, config),
    )
    return tuple(s for s in candidates if s is not None)
