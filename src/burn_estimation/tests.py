"""
Test suite for the burn estimation components.

Tests include:
- Scenario generators: weights, bounds, monotonicity, penetration clamping, caps
- Evidence fusion: tell reliability, team effectiveness, predictor gating
- Bayesian updater: posterior math, confidence step, compounding
- Impact aggregation: clamps, percentile interval, neutral fallbacks
- Recommendation: action thresholds, Kelly percentage, reasoning
- Monte Carlo refinement: repeatability, trial budget, deadline
- Integration helpers: metadata validation and adapters
"""

import math
import unittest
from dataclasses import replace

import numpy as np

from baccarat_mechanics.cards import Card, CardKey, HIGH_RANKS
from baccarat_mechanics.hand_result import HandResult
from baccarat_mechanics.shoe import full_shoe

from burn_estimation.config import BurnEngineConfig, DEFAULT_CONFIG
from burn_estimation.models import (
    BurnEstimate,
    BurnMethod,
    BurnScenario,
    DealerTellEvidence,
    Evidence,
    EvidenceType,
    ObserverPosition,
    ProfessionalBurnAnalysis,
    RecommendedAction,
    Reliability,
    TeamPlayData,
    TellType,
)
from burn_estimation.scenario_generators import bias_scenarios, composition_scenarios, pattern_scenarios
from burn_estimation.evidence_fusion import (
    dealer_reliability,
    dealer_tell_scenario,
    ml_scenario,
    team_effectiveness,
    team_play_scenario,
)
from burn_estimation.burn_predictor import extract_features, predict_burns, top_picks
from burn_estimation.bayesian_updater import bayesian_update, likelihood, posterior, refine_scenario
from burn_estimation.impact_aggregator import aggregate_scenarios, build_scenario, confidence_interval
from burn_estimation.hand_history import (
    outcome_tallies,
    rank_frequencies,
    recency_weighted_rank_frequencies,
)
from burn_estimation.monte_carlo import refine_adjustment
from burn_estimation.recommendation import (
    STANDARD_BETTING,
    BurnAdjustedBetSizer,
    decide_action,
    recommend,
)
from burn_estimation.integration import (
    BurnAnalysisMetadata,
    EdgeCalculation,
    MonteCarloParams,
    apply_to_edges,
    apply_to_kelly,
    apply_to_monte_carlo,
    default_metadata,
    overall_confidence,
    validate_metadata,
)


def make_hands(n: int):
    """n identical four-card hands, alternating banker and player wins."""
    hands = []
    for i in range(n):
        hands.append(
            HandResult(
                player=(Card("K", "hearts"), Card("5", "clubs")),
                banker=(Card("9", "spades"), Card("A", "diamonds")),
                winner="banker" if i % 2 == 0 else "player",
                hand_number=i + 1,
            )
        )
    return hands


def estimates_for(scenario: BurnScenario, key: CardKey):
    return [e for e in scenario.estimates if e.key == key]


def analysis_with(edge=0.0, kelly=1.0, mc=1.0, uncertainty=0.0, interval=(0.0, 0.0), scenarios=()):
    return ProfessionalBurnAnalysis(
        scenarios=scenarios,
        weighted_edge_impact=edge,
        kelly_multiplier=kelly,
        monte_carlo_adjustment=mc,
        confidence_interval=interval,
        recommended_action=decide_action(edge, kelly, uncertainty),
        uncertainty_level=uncertainty,
    )


class TestScenarioGenerators(unittest.TestCase):
    """Test the composition, bias and pattern generators."""

    def setUp(self):
        self.shoe = dict(full_shoe(8))

    def test_composition_weights(self):
        """Composition scenarios carry the burn-count prior."""
        scenarios = composition_scenarios(self.shoe)
        self.assertEqual([s.id for s in scenarios], [f"composition_{n}" for n in (3, 4, 5, 6, 7)])
        for scenario, expected in zip(scenarios, (0.15, 0.25, 0.35, 0.2, 0.05)):
            self.assertAlmostEqual(scenario.scenario_weight, expected)

    def test_composition_probability_formula(self):
        """Probability is (count/total) * (burn_count/total)."""
        scenario = composition_scenarios(self.shoe)[0]
        estimate = estimates_for(scenario, CardKey("7", "clubs"))[0]
        self.assertAlmostEqual(estimate.probability, (8 / 416) * (3 / 416))
        self.assertAlmostEqual(estimate.confidence, 0.6)
        self.assertEqual(estimate.method, BurnMethod.STATISTICAL)

    def test_composition_monotone_in_observed_burns(self):
        """Observing more burns of a card never raises its composition probability."""
        key = CardKey("Q", "diamonds")
        previous = None
        for seen in range(0, 10):
            burns = [Card("Q", "diamonds")] * seen
            scenario = composition_scenarios(self.shoe, burns)[2]
            probability = estimates_for(scenario, key)[0].probability
            if previous is not None:
                self.assertLessEqual(probability, previous)
            previous = probability
        self.assertEqual(previous, 0.0)

    def test_observed_card_confidence(self):
        """Observed cards get the higher confidence and an extra evidence tag."""
        scenario = composition_scenarios(self.shoe, [Card("2", "hearts")])[0]
        estimate = estimates_for(scenario, CardKey("2", "hearts"))[0]
        self.assertAlmostEqual(estimate.confidence, 0.8)
        self.assertIn("observed_burn", estimate.evidence)

    def test_zero_count_cards_have_zero_probability(self):
        """A card with no copies left cannot have been burned in any generator."""
        key = CardKey("K", "hearts")
        self.shoe[key] = 0
        scenarios = (
            composition_scenarios(self.shoe)
            + bias_scenarios(self.shoe, 0.5)
            + pattern_scenarios(self.shoe, make_hands(3))
        )
        for scenario in scenarios:
            for estimate in estimates_for(scenario, key):
                self.assertEqual(estimate.probability, 0.0, scenario.id)

    def test_all_estimates_bounded(self):
        """Every probability and confidence stays inside [0, 1]."""
        burns = [Card("A", "spades"), Card("K", "hearts")]
        scenarios = (
            composition_scenarios(self.shoe, burns)
            + bias_scenarios(self.shoe, 0.9)
            + pattern_scenarios(self.shoe, make_hands(20), burns)
        )
        for scenario in scenarios:
            self.assertGreaterEqual(scenario.scenario_weight, 0.0)
            self.assertLessEqual(scenario.scenario_weight, 1.0)
            for estimate in scenario.estimates:
                self.assertGreaterEqual(estimate.probability, 0.0)
                self.assertLessEqual(estimate.probability, 1.0)
                self.assertGreaterEqual(estimate.confidence, 0.0)
                self.assertLessEqual(estimate.confidence, 1.0)

    def test_bias_penetration_clamped(self):
        """Penetration above 1 behaves exactly like 1."""
        over = bias_scenarios(self.shoe, 1.5)
        full = bias_scenarios(self.shoe, 1.0)
        for a, b in zip(over, full):
            self.assertEqual([e.probability for e in a.estimates], [e.probability for e in b.estimates])

    def test_bias_zero_penetration(self):
        """Nothing has been burned at the start of the shoe."""
        for scenario in bias_scenarios(self.shoe, 0.0):
            self.assertTrue(all(e.probability == 0.0 for e in scenario.estimates))

    def test_bias_probability_cap(self):
        """No single bias estimate exceeds 0.8."""
        config = replace(DEFAULT_CONFIG, bias_penetration_scale=100.0)
        shoe = {CardKey("K", "hearts"): 1, CardKey("2", "hearts"): 1}
        for scenario in bias_scenarios(shoe, 1.0, config):
            for estimate in scenario.estimates:
                self.assertLessEqual(estimate.probability, 0.8)
        self.assertAlmostEqual(max(e.probability for e in bias_scenarios(shoe, 1.0, config)[-1].estimates), 0.8)

    def test_bias_confidence_grows_with_bias_strength(self):
        """Extreme bias levels are held with more confidence than the even split."""
        scenarios = bias_scenarios(self.shoe, 0.5)
        confidences = [s.estimates[0].confidence for s in scenarios]
        self.assertAlmostEqual(confidences[0], 0.58)
        self.assertAlmostEqual(confidences[2], 0.5)
        self.assertAlmostEqual(confidences[4], 0.58)

    def test_bias_shift_after_high_cards_leave(self):
        """Depleting tens and faces pushes the bias-method impact down."""
        depleted = {k: (0 if k.rank in ("10", "J", "Q", "K") else c) for k, c in self.shoe.items()}
        before = aggregate_scenarios(bias_scenarios(self.shoe, 0.5)).weighted_edge_impact
        after = aggregate_scenarios(bias_scenarios(depleted, 0.5)).weighted_edge_impact
        self.assertLess(after, before)

    def test_pattern_weights_and_confidence(self):
        """Observed burns raise every pattern weight and confidence, up to the cap."""
        plain = pattern_scenarios(self.shoe)
        burns = [Card("5", "clubs")] * 10
        boosted = pattern_scenarios(self.shoe, make_hands(5), burns)
        self.assertEqual([s.id for s in plain], ["pattern_conservative", "pattern_moderate", "pattern_aggressive"])
        for a, b in zip(plain, boosted):
            self.assertAlmostEqual(b.scenario_weight, a.scenario_weight + 0.1)
        self.assertAlmostEqual(boosted[0].estimates[0].confidence, 0.95)
        self.assertAlmostEqual(boosted[1].estimates[0].confidence, 0.8)

    def test_pattern_unseen_rank_default(self):
        """Without history every rank starts from the same base probability."""
        scenario = pattern_scenarios(self.shoe)[1]
        expected = 0.1 * 1.0 * (8 / 416) * 10
        for estimate in scenario.estimates:
            self.assertAlmostEqual(estimate.probability, expected)


class TestEvidenceFusion(unittest.TestCase):
    """Test dealer tell, team play and predictor fusion."""

    def setUp(self):
        self.shoe = dict(full_shoe(8))

    def test_tell_probability_and_placeholder_suit(self):
        """Tell probability is confidence times the type scale; unknown suits use the placeholder."""
        tell = DealerTellEvidence(TellType.HESITATION, 0.8, estimated_rank="K")
        scenario = dealer_tell_scenario([tell])
        self.assertEqual(scenario.id, "dealer_tells")
        estimate = scenario.estimates[0]
        self.assertEqual(estimate.key, CardKey("K", "spades"))
        self.assertAlmostEqual(estimate.probability, 0.56)
        self.assertEqual(estimate.method, BurnMethod.OBSERVED)
        self.assertAlmostEqual(scenario.scenario_weight, 0.6 * 0.3)

    def test_repeated_tells_raise_reliability(self):
        """The same rank and tell type twice earns the repetition bonus."""
        tell = DealerTellEvidence(TellType.TIMING, 0.5, estimated_rank="9", reliability=Reliability.LOW)
        self.assertAlmostEqual(dealer_reliability([tell]), 0.3)
        self.assertAlmostEqual(dealer_reliability([tell, tell]), 0.5)
        high = replace(tell, reliability=Reliability.HIGH)
        self.assertEqual(dealer_reliability([high, high]), 1.0)

    def test_rankless_tells_do_not_count_as_agreement(self):
        """Tells that name no card neither earn the repetition bonus nor move the mean."""
        named = DealerTellEvidence(TellType.HESITATION, 0.6, estimated_rank="K", reliability=Reliability.LOW)
        rankless = DealerTellEvidence(TellType.HESITATION, 0.9, reliability=Reliability.HIGH)
        self.assertAlmostEqual(dealer_reliability([named, rankless, rankless]), 0.3)
        self.assertEqual(dealer_reliability([rankless, rankless]), 0.0)
        scenario = dealer_tell_scenario([named, rankless, rankless])
        self.assertAlmostEqual(scenario.scenario_weight, 0.3 * 0.3)

    def test_tells_without_rank_are_skipped(self):
        """Tells that name no usable rank produce no scenario."""
        tells = [
            DealerTellEvidence(TellType.POSITIONING, 0.9),
            DealerTellEvidence(TellType.POSITIONING, 0.9, estimated_rank="Z"),
        ]
        self.assertIsNone(dealer_tell_scenario(tells))

    def test_full_team_beats_single_observer(self):
        """Four observers at four positions agreeing score higher than one."""
        observation = DealerTellEvidence(TellType.CARD_HANDLING, 0.7, estimated_rank="A", estimated_suit="hearts")
        team = [
            TeamPlayData(f"obs{i}", position, (observation,), 0.8)
            for i, position in enumerate(ObserverPosition)
        ]
        self.assertAlmostEqual(team_effectiveness(team), 1.0)
        self.assertAlmostEqual(team_effectiveness(team[:1]), 0.55)
        self.assertGreater(team_play_scenario(team).scenario_weight, team_play_scenario(team[:1]).scenario_weight)

    def test_team_consensus_probability(self):
        """Consensus confidence is capped at 1 and scaled into a probability."""
        observation = DealerTellEvidence(TellType.HAND_MOVEMENT, 0.7, estimated_rank="3", estimated_suit="clubs")
        team = [
            TeamPlayData("a", ObserverPosition.FIRST_BASE, (observation,), 0.8),
            TeamPlayData("b", ObserverPosition.THIRD_BASE, (observation,), 0.8),
        ]
        scenario = team_play_scenario(team)
        self.assertEqual(scenario.id, "team_play")
        self.assertAlmostEqual(scenario.estimates[0].confidence, 1.0)
        self.assertAlmostEqual(scenario.estimates[0].probability, 0.85)

    def test_no_team_reports(self):
        self.assertIsNone(team_play_scenario([]))
        self.assertEqual(team_effectiveness([]), 0.0)

    def test_unusable_timestamps_fall_back_to_midday(self):
        """Millisecond epochs and non-finite timestamps leave time of day unknown."""
        for stamp in (1.7e12, float("nan"), float("inf")):
            hands = [replace(h, timestamp=stamp) for h in make_hands(12)]
            with self.assertLogs("burn_estimation.burn_predictor", level="WARNING"):
                features = extract_features(hands, self.shoe)
            self.assertEqual(features.time_of_day, 0.5, stamp)
        hands = [replace(h, timestamp=6 * 3600.0) for h in make_hands(12)]
        self.assertAlmostEqual(extract_features(hands, self.shoe).time_of_day, 0.25)

    def test_predictor_needs_more_than_ten_hands(self):
        """The learned predictor stays silent on short histories."""
        self.assertIsNone(ml_scenario(make_hands(10), self.shoe))
        scenario = ml_scenario(make_hands(11), self.shoe)
        self.assertIsNotNone(scenario)
        self.assertEqual(scenario.id, "ml_prediction")
        self.assertLessEqual(len(scenario.estimates), 5)
        self.assertAlmostEqual(scenario.scenario_weight, (11 / 50) * 0.25)
        for estimate in scenario.estimates:
            self.assertEqual(estimate.method, BurnMethod.PATTERN)
            self.assertAlmostEqual(estimate.confidence, 11 / 50)

    def test_prediction_distributions(self):
        """Predicted rank and suit distributions are normalised and sorted."""
        hands = make_hands(30)
        features = extract_features(hands, self.shoe)
        self.assertEqual(features.as_dict()["outcome_balance"], features.outcome_balance)
        self.assertEqual(features.as_dict()["hands_since_last_burn"], 30)
        prediction = predict_burns(hands, features)
        rank_probabilities = [p for _, p in prediction.predicted_ranks]
        self.assertAlmostEqual(sum(rank_probabilities), 1.0)
        self.assertEqual(rank_probabilities, sorted(rank_probabilities, reverse=True))
        self.assertAlmostEqual(sum(p for _, p in prediction.predicted_suits), 1.0)
        picks = top_picks(prediction, 5)
        self.assertEqual(len(picks), 5)
        self.assertTrue(all(p > 0 for _, p in picks))


class TestBayesianUpdater(unittest.TestCase):
    """Test the one-way Bayesian refinement."""

    def setUp(self):
        self.estimate = BurnEstimate("K", "hearts", 0.2, 0.6, BurnMethod.STATISTICAL, ("shoe_composition",))

    def test_posterior(self):
        self.assertAlmostEqual(posterior(0.2, 0.8), 0.5)
        self.assertAlmostEqual(posterior(0.3, 0.5), 0.3)

    def test_likelihood_boosts(self):
        """Rank-matched tells and glimpses boost, timing always boosts, capped at 0.95."""
        tell = Evidence(EvidenceType.DEALER_TELL, rank="K")
        glimpse = Evidence(EvidenceType.PARTIAL_GLIMPSE, rank="K")
        timing = Evidence(EvidenceType.TIMING_PATTERN)
        other = Evidence(EvidenceType.DEALER_TELL, rank="2")
        self.assertAlmostEqual(likelihood(self.estimate, [tell]), 0.8)
        self.assertAlmostEqual(likelihood(self.estimate, [timing]), 0.6)
        self.assertAlmostEqual(likelihood(self.estimate, [other]), 0.5)
        self.assertAlmostEqual(likelihood(self.estimate, [tell, glimpse]), 0.95)

    def test_update_returns_new_estimates(self):
        """Updated estimates are new objects with the bookkeeping applied."""
        (updated,) = bayesian_update([self.estimate], [Evidence(EvidenceType.DEALER_TELL, rank="K")])
        self.assertAlmostEqual(updated.probability, 0.5)
        self.assertAlmostEqual(updated.confidence, 0.7)
        self.assertEqual(updated.method, BurnMethod.BAYESIAN)
        self.assertEqual(updated.evidence, ("shoe_composition", "bayesian_update"))
        self.assertAlmostEqual(self.estimate.probability, 0.2)
        self.assertEqual(self.estimate.method, BurnMethod.STATISTICAL)

    def test_repeated_updates_compound(self):
        """Applying the same evidence twice moves further than once."""
        evidence = [Evidence(EvidenceType.PARTIAL_GLIMPSE, rank="K")]
        once = bayesian_update([self.estimate], evidence)
        twice = bayesian_update(once, evidence)
        self.assertGreater(twice[0].probability, once[0].probability)
        self.assertAlmostEqual(twice[0].confidence, 0.8)
        self.assertEqual(twice[0].evidence.count("bayesian_update"), 2)

    def test_confidence_capped(self):
        sure = replace(self.estimate, confidence=0.95)
        (updated,) = bayesian_update([sure], [])
        self.assertEqual(updated.confidence, 1.0)

    def test_refine_scenario_recomputes_impact(self):
        scenario = build_scenario("s", "S", [self.estimate], 0.5)
        refined = refine_scenario(scenario, [Evidence(EvidenceType.DEALER_TELL, rank="K")])
        self.assertEqual(refined.id, "s")
        self.assertEqual(refined.scenario_weight, 0.5)
        self.assertGreater(refined.edge_impact, scenario.edge_impact)
        self.assertLess(refined.uncertainty, scenario.uncertainty)


class TestImpactAggregation(unittest.TestCase):
    """Test per-scenario and aggregate impact figures."""

    def test_scenario_clamps(self):
        scenario = BurnScenario("x", "X", (), 1.7, float("nan"), 5.0)
        self.assertEqual(scenario.scenario_weight, 1.0)
        self.assertEqual(scenario.edge_impact, 0.0)
        self.assertEqual(scenario.kelly_adjustment, 2.0)
        self.assertEqual(scenario.uncertainty, 1.0)

    def test_confidence_interval_percentiles(self):
        self.assertEqual(confidence_interval([5.0, 1.0, 3.0, 2.0, 4.0]), (1.0, 5.0))
        self.assertEqual(confidence_interval([float(i) for i in range(10)]), (1.0, 9.0))
        self.assertEqual(confidence_interval([0.3]), (0.3, 0.3))
        self.assertEqual(confidence_interval([]), (0.0, 0.0))

    def test_zero_weight_is_neutral(self):
        estimate = BurnEstimate("K", "hearts", 0.5, 0.5, BurnMethod.STATISTICAL)
        scenarios = [build_scenario("a", "A", [estimate], 0.0)]
        impact = aggregate_scenarios(scenarios)
        self.assertEqual(impact.kelly_multiplier, 1.0)
        self.assertEqual(impact.monte_carlo_adjustment, 1.0)
        self.assertEqual(aggregate_scenarios([]).weighted_edge_impact, 0.0)

    def test_weighted_figures(self):
        """A single fully weighted scenario passes its figures straight through."""
        estimate = BurnEstimate("K", "hearts", 1.0, 0.6, BurnMethod.STATISTICAL)
        scenario = build_scenario("a", "A", [estimate], 1.0)
        impact = aggregate_scenarios([scenario])
        self.assertAlmostEqual(scenario.edge_impact, 0.0006)
        self.assertAlmostEqual(impact.weighted_edge_impact, 0.0006)
        self.assertAlmostEqual(impact.kelly_multiplier, 1.0 + (1.0 + 0.0006 - 0.2))
        self.assertAlmostEqual(impact.uncertainty_level, 0.4)
        self.assertAlmostEqual(impact.monte_carlo_adjustment, 1.0 - 0.4 * 0.3)

    def test_kelly_multiplier_upper_bound(self):
        scenario = BurnScenario("a", "A", (), 1.0, 0.0, 2.0)
        self.assertEqual(aggregate_scenarios([scenario]).kelly_multiplier, 3.0)

    def test_card_weights_by_value(self):
        """Zero-value burns favour the banker, 1-3 favour the player, the rest are neutral."""
        cases = {"K": 0.001, "10": 0.001, "A": -0.001, "3": -0.001, "7": 0.0}
        for rank, expected in cases.items():
            scenario = build_scenario("a", "A", [BurnEstimate(rank, "clubs", 1.0, 1.0, BurnMethod.OBSERVED)], 1.0)
            self.assertAlmostEqual(scenario.edge_impact, expected, msg=rank)


class TestHandHistory(unittest.TestCase):
    """Test frequency tables derived from hand history."""

    def test_rank_frequencies(self):
        freqs = rank_frequencies(make_hands(2))
        self.assertAlmostEqual(freqs["K"], 2 / 12)
        self.assertNotIn("7", freqs)
        self.assertEqual(rank_frequencies([]), {})

    def test_recency_weights(self):
        """Newer hands in the window weigh more."""
        hands = [
            HandResult((Card("2", "clubs"),), (), "player", 1),
            HandResult((Card("9", "clubs"),), (), "banker", 2),
        ]
        freqs = recency_weighted_rank_frequencies(hands, window=5, cards_per_hand=1)
        self.assertAlmostEqual(freqs["2"], 1 / 3)
        self.assertAlmostEqual(freqs["9"], 2 / 3)

    def test_outcome_tallies(self):
        tallies = outcome_tallies(make_hands(12), last=10)
        self.assertEqual(tallies, {"player": 5, "banker": 5, "tie": 0})


class TestRecommendation(unittest.TestCase):
    """Test the action thresholds and recommendation text."""

    def test_actions(self):
        self.assertEqual(decide_action(0.01, 1.5, 0.2), RecommendedAction.AGGRESSIVE)
        self.assertEqual(decide_action(0.01, 1.5, 0.5), RecommendedAction.NEUTRAL)
        self.assertEqual(decide_action(-0.01, 1.5, 0.2), RecommendedAction.CONSERVATIVE)
        self.assertEqual(decide_action(0.0, 0.8, 0.2), RecommendedAction.CONSERVATIVE)
        self.assertEqual(decide_action(0.0, 1.0, 0.7), RecommendedAction.CONSERVATIVE)
        self.assertEqual(decide_action(0.0, 1.0, 0.5), RecommendedAction.NEUTRAL)

    def test_neutral_recommendation(self):
        rec = recommend(ProfessionalBurnAnalysis.neutral())
        self.assertAlmostEqual(rec.kelly_percentage, 0.02)
        self.assertEqual(rec.edge_adjustment, 0.0)
        self.assertEqual(rec.confidence, 1.0)
        self.assertEqual(rec.action, RecommendedAction.NEUTRAL)
        self.assertEqual(rec.reasoning, STANDARD_BETTING)

    def test_reasons_and_confidence(self):
        analysis = analysis_with(edge=0.01, kelly=1.5, mc=0.79, uncertainty=0.7, interval=(-0.1, 0.2))
        rec = recommend(analysis)
        reasons = rec.reasoning.split("; ")
        self.assertEqual(len(reasons), 3)
        self.assertEqual(reasons[0], "Favorable edge impact: +1.000%")
        self.assertEqual(reasons[1], "Kelly suggests increased betting: +50.0%")
        self.assertTrue(reasons[2].startswith("High uncertainty detected: 70.0%"))
        self.assertAlmostEqual(rec.confidence, 0.7)
        self.assertEqual(rec.to_dict()["action"], "conservative")

    def test_kelly_percentage_clamped(self):
        config = replace(DEFAULT_CONFIG, base_kelly_fraction=0.1)
        rec = recommend(analysis_with(kelly=3.0, mc=2.0), config)
        self.assertEqual(rec.kelly_percentage, 0.25)
        low = recommend(analysis_with(kelly=0.1, mc=0.1))
        self.assertEqual(low.kelly_percentage, 0.001)

    def test_bet_sizer(self):
        sizer = BurnAdjustedBetSizer(table_min=10, table_max=1000, bet_increment=5)
        neutral = ProfessionalBurnAnalysis.neutral()
        self.assertEqual(sizer.bet_size(10_000, neutral), 200)
        self.assertEqual(sizer.bet_size(0, neutral), 10)
        self.assertEqual(sizer.bet_size(1_000_000, neutral), 1000)
        self.assertIn("Capped at table max.", sizer.explain(1_000_000, neutral))


class TestMonteCarloRefinement(unittest.TestCase):
    """Test the sampled variance adjustment."""

    def setUp(self):
        shoe = dict(full_shoe(8))
        self.scenarios = composition_scenarios(shoe) + pattern_scenarios(shoe)

    def test_seeded_runs_repeat(self):
        a = refine_adjustment(self.scenarios, 2000, seed=7)
        b = refine_adjustment(self.scenarios, 2000, seed=7)
        self.assertEqual(a.adjustment, b.adjustment)
        self.assertEqual(a.edge_interval, b.edge_interval)

    def test_budget_and_bounds(self):
        result = refine_adjustment(self.scenarios, 1500, seed=1, batch_size=400)
        self.assertEqual(result.trials_run, 1500)
        self.assertTrue(result.completed)
        self.assertGreaterEqual(result.adjustment, 0.1)
        self.assertLessEqual(result.adjustment, 2.0)
        self.assertLessEqual(result.edge_interval[0], result.edge_interval[1])

    def test_deadline_stops_early(self):
        result = refine_adjustment(self.scenarios, 1000, seed=1, deadline=0.0, batch_size=10)
        self.assertEqual(result.trials_run, 10)
        self.assertFalse(result.completed)

    def test_nothing_to_sample(self):
        self.assertIsNone(refine_adjustment(self.scenarios, 0))
        self.assertIsNone(refine_adjustment((), 100))
        zero = [replace(s, scenario_weight=0.0) for s in self.scenarios]
        self.assertIsNone(refine_adjustment(zero, 100))


class TestIntegration(unittest.TestCase):
    """Test metadata validation and the downstream adapters."""

    def setUp(self):
        self.metadata = BurnAnalysisMetadata(0.01, 0.5, 1.5, 0.85, last_updated=0.0)

    def test_validate_metadata(self):
        self.assertTrue(validate_metadata(default_metadata().to_dict()))
        self.assertTrue(
            validate_metadata(
                {
                    "weighted_edge_impact": -0.002,
                    "uncertainty_level": 0.3,
                    "kelly_multiplier": 1.2,
                    "monte_carlo_adjustment": 0.9,
                }
            )
        )
        good = default_metadata().to_dict()
        self.assertFalse(validate_metadata(None))
        self.assertFalse(validate_metadata({}))
        self.assertFalse(validate_metadata({**good, "uncertaintyLevel": 1.5}))
        self.assertFalse(validate_metadata({**good, "kellyMultiplier": 3.5}))
        self.assertFalse(validate_metadata({**good, "kellyMultiplier": True}))
        self.assertFalse(validate_metadata({**good, "weightedEdgeImpact": float("nan")}))
        self.assertFalse(validate_metadata({**good, "monteCarloAdjustment": "1.0"}))
        missing = dict(good)
        del missing["monteCarloAdjustment"]
        self.assertFalse(validate_metadata(missing))

    def test_metadata_from_analysis(self):
        analysis = analysis_with(edge=0.001, kelly=1.8, mc=0.88, uncertainty=0.4)
        metadata = BurnAnalysisMetadata.from_analysis(analysis, now=123.0)
        self.assertEqual(metadata.last_updated, 123.0)
        self.assertTrue(validate_metadata(metadata.to_dict()))

    def test_apply_to_kelly(self):
        self.assertEqual(apply_to_kelly(0.1, None), 0.1)
        self.assertAlmostEqual(apply_to_kelly(0.1, self.metadata), 0.1 * 1.5 * 0.85)
        self.assertEqual(apply_to_kelly(1.0, replace(self.metadata, kelly_multiplier=3.0)), 0.5)
        self.assertEqual(apply_to_kelly(0.0, self.metadata), 0.001)

    def test_apply_to_edges(self):
        edges = EdgeCalculation(-0.0124, -0.0106, -0.1436, -0.1036, -0.1036, 0.9)
        adjusted = apply_to_edges(edges, self.metadata)
        self.assertAlmostEqual(adjusted.player_edge, -0.0024)
        self.assertAlmostEqual(adjusted.banker_edge, -0.0006)
        self.assertAlmostEqual(adjusted.tie_edge, -0.1436)
        self.assertAlmostEqual(adjusted.player_pair_edge, -0.0986)
        self.assertAlmostEqual(adjusted.confidence, 0.75)
        self.assertIsNone(adjusted.edge_sorting_advantage)
        sorted_edges = replace(edges, edge_sorting_advantage=0.02)
        self.assertAlmostEqual(apply_to_edges(sorted_edges, self.metadata).edge_sorting_advantage, 0.023)
        shaky = replace(edges, confidence=0.2)
        self.assertEqual(apply_to_edges(shaky, replace(self.metadata, uncertainty_level=1.0)).confidence, 0.1)

    def test_apply_to_monte_carlo(self):
        params = MonteCarloParams(0.5, 100.0, 95.0, 100.0, 1000, 500)
        adjusted = apply_to_monte_carlo(params, self.metadata, np.random.default_rng(3))
        self.assertAlmostEqual(adjusted.win_rate, 0.425)
        spread = 0.1 * (1 + 0.5 * 0.5)
        self.assertLessEqual(abs(adjusted.avg_win / 95.0 - 1.0), spread)
        self.assertLessEqual(abs(adjusted.avg_loss / 100.0 - 1.0), spread)
        self.assertEqual(adjusted.simulations, 1000)
        hot = apply_to_monte_carlo(replace(params, win_rate=0.8), replace(self.metadata, monte_carlo_adjustment=2.0))
        self.assertEqual(hot.win_rate, 0.9)
        self.assertIs(apply_to_monte_carlo(params, None), params)

    def test_overall_confidence(self):
        self.assertEqual(overall_confidence(None), 1.0)
        self.assertAlmostEqual(overall_confidence(self.metadata), 0.7)
        self.assertAlmostEqual(overall_confidence(replace(self.metadata, uncertainty_level=1.0)), 0.5)


class TestConfig(unittest.TestCase):
    def test_prior_weights_sum_to_one(self):
        config = BurnEngineConfig()
        for weights in (config.burn_count_weights, config.high_card_bias_weights, config.style_weights):
            self.assertTrue(math.isclose(sum(weights), 1.0))
        self.assertEqual(len(config.burn_counts), len(config.burn_count_weights))
        self.assertEqual(set(HIGH_RANKS), {"10", "J", "Q", "K", "A"})


if __name__ == "__main__":
    unittest.main()
