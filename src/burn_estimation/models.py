"""
Value objects for burn-card estimation.

Everything here is a frozen dataclass. Probability, confidence and weight
fields are clamped on construction so no produced object can leave [0, 1].
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional, Tuple

import pandas as pd

from baccarat_mechanics.cards import CardKey


def clamp(value: float, low: float, high: float) -> float:
    """Clamp to [low, high]; NaN collapses to low."""
    value = float(value)
    if math.isnan(value):
        return low
    return max(low, min(high, value))


def clamp01(value: float) -> float:
    return clamp(value, 0.0, 1.0)


def _finite(value: float) -> float:
    value = float(value)
    return value if math.isfinite(value) else 0.0


def estimates_uncertainty(estimates) -> float:
    """1 - mean confidence; no estimates at all means full uncertainty."""
    if not estimates:
        return 1.0
    return clamp01(1.0 - sum(e.confidence for e in estimates) / len(estimates))


class BurnMethod(Enum):
    OBSERVED = "observed"
    STATISTICAL = "statistical"
    BAYESIAN = "bayesian"
    PATTERN = "pattern"


class RecommendedAction(Enum):
    CONSERVATIVE = "conservative"
    NEUTRAL = "neutral"
    AGGRESSIVE = "aggressive"


class TellType(Enum):
    HESITATION = "hesitation"
    POSITIONING = "positioning"
    TIMING = "timing"
    FACIAL_EXPRESSION = "facial_expression"
    HAND_MOVEMENT = "hand_movement"
    CARD_HANDLING = "card_handling"


class Reliability(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ObserverPosition(Enum):
    FIRST_BASE = "first_base"
    THIRD_BASE = "third_base"
    BEHIND_DEALER = "behind_dealer"
    SIDE_ANGLE = "side_angle"


class EvidenceType(Enum):
    DEALER_TELL = "dealer_tell"
    PARTIAL_GLIMPSE = "partial_glimpse"
    TIMING_PATTERN = "timing_pattern"
    STATISTICAL = "statistical"
    OBSERVED = "observed"


@dataclass(frozen=True)
class BurnEstimate:
    """Belief that one specific card type was among the burned cards."""

    rank: str
    suit: str
    probability: float
    confidence: float
    method: BurnMethod
    evidence: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "probability", clamp01(self.probability))
        object.__setattr__(self, "confidence", clamp01(self.confidence))
        object.__setattr__(self, "method", BurnMethod(self.method))
        object.__setattr__(self, "evidence", tuple(self.evidence))

    @property
    def key(self) -> CardKey:
        return CardKey(self.rank, self.suit)


@dataclass(frozen=True)
class BurnScenario:
    """One candidate explanation of what was burned, with its prior weight."""

    id: str
    name: str
    estimates: Tuple[BurnEstimate, ...]
    scenario_weight: float
    edge_impact: float
    kelly_adjustment: float

    def __post_init__(self):
        object.__setattr__(self, "estimates", tuple(self.estimates))
        object.__setattr__(self, "scenario_weight", clamp01(self.scenario_weight))
        object.__setattr__(self, "edge_impact", _finite(self.edge_impact))
        object.__setattr__(self, "kelly_adjustment", clamp(self.kelly_adjustment, 0.1, 2.0))

    @property
    def uncertainty(self) -> float:
        return estimates_uncertainty(self.estimates)


@dataclass(frozen=True)
class ProfessionalBurnAnalysis:
    """Aggregate result of one analysis call. The caller owns persistence."""

    scenarios: Tuple[BurnScenario, ...]
    weighted_edge_impact: float
    kelly_multiplier: float
    monte_carlo_adjustment: float
    confidence_interval: Tuple[float, float]
    recommended_action: RecommendedAction
    uncertainty_level: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "scenarios", tuple(self.scenarios))
        object.__setattr__(self, "weighted_edge_impact", _finite(self.weighted_edge_impact))
        object.__setattr__(self, "kelly_multiplier", clamp(self.kelly_multiplier, 0.1, 3.0))
        object.__setattr__(self, "monte_carlo_adjustment", clamp(self.monte_carlo_adjustment, 0.1, 2.0))
        low, high = (_finite(v) for v in self.confidence_interval)
        object.__setattr__(self, "confidence_interval", (min(low, high), max(low, high)))
        object.__setattr__(self, "recommended_action", RecommendedAction(self.recommended_action))
        object.__setattr__(self, "uncertainty_level", clamp01(self.uncertainty_level))

    @classmethod
    def neutral(cls) -> "ProfessionalBurnAnalysis":
        """The safe default returned for unusable input."""
        return cls(
            scenarios=(),
            weighted_edge_impact=0.0,
            kelly_multiplier=1.0,
            monte_carlo_adjustment=1.0,
            confidence_interval=(0.0, 0.0),
            recommended_action=RecommendedAction.NEUTRAL,
            uncertainty_level=0.0,
        )

    @property
    def is_neutral_default(self) -> bool:
        return not self.scenarios and self == self.neutral()

    def scenario_frame(self) -> pd.DataFrame:
        """One row per scenario, for display or summarised storage by the caller."""
        columns = ["id", "name", "estimates", "scenario_weight", "edge_impact", "kelly_adjustment", "uncertainty"]
        rows = [
            {
                "id": s.id,
                "name": s.name,
                "estimates": len(s.estimates),
                "scenario_weight": s.scenario_weight,
                "edge_impact": s.edge_impact,
                "kelly_adjustment": s.kelly_adjustment,
                "uncertainty": s.uncertainty,
            }
            for s in self.scenarios
        ]
        return pd.DataFrame(rows, columns=columns)


@dataclass(frozen=True)
class DealerTellEvidence:
    """A pre-classified behavioural cue from the observation collaborator."""

    type: TellType
    confidence: float
    timestamp: float = 0.0
    estimated_rank: Optional[str] = None
    estimated_suit: Optional[str] = None
    reliability: Reliability = Reliability.MEDIUM

    def __post_init__(self):
        object.__setattr__(self, "type", TellType(self.type))
        object.__setattr__(self, "confidence", clamp01(self.confidence))
        object.__setattr__(self, "reliability", Reliability(self.reliability))


@dataclass(frozen=True)
class TeamPlayData:
    """Report from one member of an observation team."""

    observer_id: str
    position: ObserverPosition
    burn_observations: Tuple[DealerTellEvidence, ...]
    confidence: float
    timestamp: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "position", ObserverPosition(self.position))
        object.__setattr__(self, "burn_observations", tuple(self.burn_observations))
        object.__setattr__(self, "confidence", clamp01(self.confidence))


@dataclass(frozen=True)
class MLBurnPrediction:
    predicted_ranks: Tuple[Tuple[str, float], ...]
    predicted_suits: Tuple[Tuple[str, float], ...]
    model_confidence: float
    training_data_size: int
    feature_importance: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "predicted_ranks", tuple((r, clamp01(p)) for r, p in self.predicted_ranks))
        object.__setattr__(self, "predicted_suits", tuple((s, clamp01(p)) for s, p in self.predicted_suits))
        object.__setattr__(self, "model_confidence", clamp01(self.model_confidence))


@dataclass(frozen=True)
class Evidence:
    """Qualitative evidence consumed by the Bayesian updater."""

    type: EvidenceType
    rank: Optional[str] = None
    confidence: Optional[float] = None
    timestamp: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "type", EvidenceType(self.type))

