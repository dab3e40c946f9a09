"""
End-to-end checks for BurnAnalysisEngine on realistic table snapshots.
"""

import math
import unittest
from dataclasses import replace

from baccarat_mechanics.cards import SUITS, Card, CardKey
from baccarat_mechanics.hand_result import HandResult
from baccarat_mechanics.shoe import full_shoe, remove_cards

from burn_estimation import (
    DEFAULT_CONFIG,
    BurnAnalysisEngine,
    BurnMethod,
    DealerTellEvidence,
    Evidence,
    EvidenceType,
    ObserverPosition,
    ProfessionalBurnAnalysis,
    RecommendedAction,
    TeamPlayData,
    TellType,
    analyze_burn_scenarios,
)
from burn_estimation.impact_aggregator import aggregate_scenarios
from burn_estimation.monte_carlo import refine_adjustment
from burn_estimation.recommendation import decide_action

# ---------- Helpers ----------

PLAYER_RANKS = ("8", "J")
BANKER_RANKS = ("4", "2", "K")


def play_hands(n: int, num_decks: int = 8):
    """Deal n hands of the same ranks, cycling the suit; returns (history, remaining shoe)."""
    shoe = full_shoe(num_decks)
    history = []
    for i in range(n):
        suit = SUITS[i % len(SUITS)]
        player = tuple(Card(r, suit, hand_number=i + 1) for r in PLAYER_RANKS)
        banker = tuple(Card(r, suit, hand_number=i + 1) for r in BANKER_RANKS)
        shoe = remove_cards(shoe, player + banker)
        history.append(HandResult(player, banker, "banker" if i % 3 else "player", hand_number=i + 1))
    return history, shoe


def assert_bounded(case: unittest.TestCase, analysis: ProfessionalBurnAnalysis):
    case.assertTrue(math.isfinite(analysis.weighted_edge_impact))
    case.assertGreaterEqual(analysis.kelly_multiplier, 0.1)
    case.assertLessEqual(analysis.kelly_multiplier, 3.0)
    case.assertGreaterEqual(analysis.monte_carlo_adjustment, 0.1)
    case.assertLessEqual(analysis.monte_carlo_adjustment, 2.0)
    low, high = analysis.confidence_interval
    case.assertLessEqual(low, high)
    for scenario in analysis.scenarios:
        case.assertGreaterEqual(scenario.kelly_adjustment, 0.1)
        case.assertLessEqual(scenario.kelly_adjustment, 2.0)
        for estimate in scenario.estimates:
            case.assertTrue(0.0 <= estimate.probability <= 1.0)
            case.assertTrue(0.0 <= estimate.confidence <= 1.0)


# ---------- Tests ----------


class TestEngineInputs(unittest.TestCase):
    """Unusable input degrades to the neutral analysis."""

    def setUp(self):
        self.engine = BurnAnalysisEngine()

    def test_empty_and_missing_shoe(self):
        for shoe in (None, {}, {CardKey("A", "hearts"): 0}):
            analysis = self.engine.analyze(shoe, [], [], 0.0)
            self.assertTrue(analysis.is_neutral_default, shoe)
            self.assertEqual(analysis.recommended_action, RecommendedAction.NEUTRAL)
            self.assertEqual(analysis.kelly_multiplier, 1.0)
            self.assertEqual(analysis.monte_carlo_adjustment, 1.0)
            self.assertEqual(analysis.confidence_interval, (0.0, 0.0))

    def test_negative_count_is_rejected(self):
        shoe = dict(full_shoe(8))
        shoe[CardKey("5", "clubs")] = -1
        with self.assertLogs("baccarat_mechanics.shoe", level="WARNING"):
            analysis = self.engine.analyze(shoe)
        self.assertTrue(analysis.is_neutral_default)

    def test_tuple_keys_accepted(self):
        shoe = {(k.rank, k.suit): c for k, c in full_shoe(8).items()}
        analysis = self.engine.analyze(shoe)
        self.assertEqual(len(analysis.scenarios), 13)

    def test_penetration_out_of_range_is_clamped(self):
        shoe = full_shoe(8)
        with self.assertLogs("burn_estimation.engine", level="WARNING"):
            over = self.engine.analyze(shoe, penetration=1.5)
        full = self.engine.analyze(shoe, penetration=1.0)
        self.assertEqual(over, full)

    def test_unknown_observed_burn_is_dropped(self):
        shoe = full_shoe(8)
        with self.assertLogs("burn_estimation.engine", level="WARNING"):
            analysis = self.engine.analyze(shoe, observed_burns=[Card("Z", "hearts")])
        self.assertEqual(analysis, self.engine.analyze(shoe))

    def test_bad_hand_timestamps_do_not_raise(self):
        """Millisecond or NaN timestamps on a long history still give a full analysis."""
        history, shoe = play_hands(12)
        for stamp in (1.7e12, float("nan")):
            stamped = [replace(h, timestamp=stamp) for h in history]
            analysis = self.engine.analyze(shoe, stamped, [], 0.3)
            self.assertIn("ml_prediction", [s.id for s in analysis.scenarios])
            assert_bounded(self, analysis)

    def test_caller_shoe_untouched(self):
        shoe = dict(full_shoe(8))
        before = dict(shoe)
        self.engine.analyze(shoe, observed_burns=[Card("K", "hearts")], penetration=0.4)
        self.assertEqual(shoe, before)


class TestEngineScenarios(unittest.TestCase):
    """Full analyses over realistic snapshots."""

    def setUp(self):
        self.engine = BurnAnalysisEngine()

    def test_fresh_eight_deck_shoe(self):
        """No evidence at all: thirteen generated scenarios and a neutral action."""
        analysis = self.engine.analyze(full_shoe(8), [], [], 0.0)
        self.assertEqual(len(analysis.scenarios), 13)
        self.assertEqual(analysis.recommended_action, RecommendedAction.NEUTRAL)
        self.assertTrue(math.isfinite(analysis.weighted_edge_impact))
        self.assertAlmostEqual(analysis.uncertainty_level, (0.4 + 0.468 + 0.38) / 3)
        assert_bounded(self, analysis)

    def test_observed_high_burns_shift_edge_down(self):
        """Fifty exposed high burns pull the edge below the no-evidence baseline and rule out an aggressive action."""
        history, shoe = play_hands(20)
        burns = [Card(rank, suit) for rank in ("10", "J", "Q", "K") for suit in SUITS for _ in range(3)]
        burns += [Card("A", "hearts"), Card("A", "spades")]
        self.assertEqual(len(burns), 50)
        shoe_after = remove_cards(shoe, burns)

        baseline = self.engine.analyze(shoe, history, [], 0.5)
        analysis = self.engine.analyze(shoe_after, history, burns, 0.5)
        assert_bounded(self, analysis)
        self.assertLess(analysis.weighted_edge_impact, baseline.weighted_edge_impact)

        def bias_impact(result):
            return aggregate_scenarios([s for s in result.scenarios if s.id.startswith("bias_")]).weighted_edge_impact

        self.assertLess(bias_impact(analysis), 0.0)
        self.assertLess(bias_impact(analysis), bias_impact(baseline))
        self.assertLess(analysis.weighted_edge_impact, DEFAULT_CONFIG.edge_threshold)
        self.assertNotEqual(analysis.recommended_action, RecommendedAction.AGGRESSIVE)

    def test_history_enables_predictor(self):
        history, shoe = play_hands(12)
        ids = [s.id for s in self.engine.analyze(shoe, history).scenarios]
        self.assertIn("ml_prediction", ids)
        short_history, short_shoe = play_hands(10)
        ids = [s.id for s in self.engine.analyze(short_shoe, short_history).scenarios]
        self.assertNotIn("ml_prediction", ids)

    def test_tells_and_team_add_scenarios(self):
        tells = [DealerTellEvidence(TellType.HESITATION, 0.8, estimated_rank="K", estimated_suit="hearts")]
        team = [
            TeamPlayData("a", ObserverPosition.FIRST_BASE, tells, 0.7),
            TeamPlayData("b", ObserverPosition.BEHIND_DEALER, tells, 0.9),
        ]
        analysis = self.engine.analyze(full_shoe(8), dealer_tells=tells, team_reports=team)
        ids = [s.id for s in analysis.scenarios]
        self.assertEqual(ids[-2:], ["dealer_tells", "team_play"])
        assert_bounded(self, analysis)

    def test_engine_is_stateless(self):
        history, shoe = play_hands(15)
        first = self.engine.analyze(shoe, history, [], 0.3)
        self.engine.analyze(full_shoe(6), [], [Card("2", "hearts")], 0.9)
        second = self.engine.analyze(shoe, history, [], 0.3)
        self.assertEqual(first, second)
        self.assertEqual(first, analyze_burn_scenarios(shoe, history, [], 0.3))

    def test_scenario_frame(self):
        frame = self.engine.analyze(full_shoe(8)).scenario_frame()
        self.assertEqual(len(frame), 13)
        self.assertAlmostEqual(frame.loc[frame["id"] == "composition_5", "scenario_weight"].iloc[0], 0.35)


class TestEngineRefinement(unittest.TestCase):
    """Bayesian refinement and the sampled adjustment, through the engine."""

    def test_refine(self):
        engine = BurnAnalysisEngine()
        analysis = engine.analyze(full_shoe(8), penetration=0.5)
        refined = engine.refine(analysis, [Evidence(EvidenceType.DEALER_TELL, rank="K", confidence=0.9)])
        self.assertEqual(len(refined.scenarios), len(analysis.scenarios))
        self.assertTrue(all(e.method == BurnMethod.BAYESIAN for s in refined.scenarios for e in s.estimates))
        self.assertLess(refined.uncertainty_level, analysis.uncertainty_level)
        self.assertGreater(refined.weighted_edge_impact, analysis.weighted_edge_impact)
        self.assertEqual(analysis.scenarios[0].estimates[0].method, BurnMethod.STATISTICAL)
        neutral = ProfessionalBurnAnalysis.neutral()
        self.assertIs(engine.refine(neutral, []), neutral)

    def test_sampled_adjustment_is_repeatable(self):
        config = replace(DEFAULT_CONFIG, monte_carlo_trials=2000, monte_carlo_seed=11)
        history, shoe = play_hands(20)
        a = BurnAnalysisEngine(config).analyze(shoe, history, [], 0.4)
        b = BurnAnalysisEngine(config).analyze(shoe, history, [], 0.4)
        self.assertEqual(a.monte_carlo_adjustment, b.monte_carlo_adjustment)
        assert_bounded(self, a)

    def test_sampled_uncertainty_drives_action(self):
        """With sampling on, the reported uncertainty is the one behind the sampled adjustment."""
        config = replace(DEFAULT_CONFIG, monte_carlo_trials=2000, monte_carlo_seed=5)
        analysis = BurnAnalysisEngine(config).analyze(full_shoe(8))
        sampled = refine_adjustment(analysis.scenarios, 2000, config, seed=5)
        self.assertAlmostEqual(analysis.uncertainty_level, sampled.realised_uncertainty)
        self.assertAlmostEqual(analysis.monte_carlo_adjustment, sampled.adjustment)
        self.assertEqual(
            analysis.recommended_action,
            decide_action(analysis.weighted_edge_impact, analysis.kelly_multiplier, sampled.realised_uncertainty),
        )

    def test_recommend(self):
        engine = BurnAnalysisEngine()
        analysis = engine.analyze(full_shoe(8))
        rec = engine.recommend(analysis)
        self.assertEqual(rec.action, analysis.recommended_action)
        self.assertTrue(0.001 <= rec.kelly_percentage <= 0.25)
        self.assertTrue(rec.reasoning)


if __name__ == "__main__":
    unittest.main()
