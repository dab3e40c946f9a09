"""
Burn-card estimation for multi-deck baccarat.

Estimates which cards the dealer burned from the remaining shoe, hand history
and whatever was observed at the table, then turns that into an edge shift,
a Kelly multiplier and a bounded betting action.

Key components:
- scenario_generators: composition, bias and pattern scenarios
- evidence_fusion: dealer tells, team play and the learned predictor
- bayesian_updater: one-way refinement of estimates with new evidence
- impact_aggregator: per-scenario and weighted aggregate impact
- monte_carlo: optional sampled refinement of the variance adjustment
- recommendation: action, Kelly percentage and reasoning
- engine: BurnAnalysisEngine, the stateless entry point
- integration: metadata summaries and adapters for other subsystems

Usage:
    from baccarat_mechanics import full_shoe
    from burn_estimation import BurnAnalysisEngine

    engine = BurnAnalysisEngine()
    analysis = engine.analyze(full_shoe(8), hand_history=[], observed_burns=[], penetration=0.0)
    print(engine.recommend(analysis).reasoning)
"""

from .config import BurnEngineConfig, DEFAULT_CONFIG
from .models import (
    BurnEstimate,
    BurnMethod,
    BurnScenario,
    DealerTellEvidence,
    Evidence,
    EvidenceType,
    MLBurnPrediction,
    ObserverPosition,
    ProfessionalBurnAnalysis,
    RecommendedAction,
    Reliability,
    TeamPlayData,
    TellType,
)
from .engine import BurnAnalysisEngine, analyze_burn_scenarios
from .recommendation import BurnAdjustedBetSizer, BurnRecommendation, recommend
from .integration import BurnAnalysisMetadata, default_metadata, validate_metadata

__version__ = "0.1.0"

__all__ = [
    "BurnEngineConfig",
    "DEFAULT_CONFIG",
    "BurnEstimate",
    "BurnMethod",
    "BurnScenario",
    "DealerTellEvidence",
    "Evidence",
    "EvidenceType",
    "MLBurnPrediction",
    "ObserverPosition",
    "ProfessionalBurnAnalysis",
    "RecommendedAction",
    "Reliability",
    "TeamPlayData",
    "TellType",
    "BurnAnalysisEngine",
    "analyze_burn_scenarios",
    "BurnAdjustedBetSizer",
    "BurnRecommendation",
    "recommend",
    "BurnAnalysisMetadata",
    "default_metadata",
    "validate_metadata",
]
