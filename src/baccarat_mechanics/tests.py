"""
Tests for cards, hand records and shoe snapshots.
"""

import unittest
from collections import Counter

from baccarat_mechanics.cards import ALL_CARD_KEYS, CARDS_PER_DECK, Card, CardKey, card_value
from baccarat_mechanics.hand_result import HandResult
from baccarat_mechanics.shoe import (
    category_totals,
    full_shoe,
    high_card_ratio,
    remove_cards,
    sanitize_composition,
    total_cards,
)


class TestCards(unittest.TestCase):
    def test_card_key_validation(self):
        """Unknown ranks and suits are rejected."""
        with self.assertRaises(ValueError):
            CardKey("1", "hearts")
        with self.assertRaises(ValueError):
            CardKey("A", "stars")
        self.assertEqual(str(CardKey("Q", "clubs")), "Q of clubs")

    def test_values(self):
        self.assertEqual(card_value("K"), 0)
        self.assertEqual(card_value("10"), 0)
        self.assertEqual(card_value("A"), 1)
        self.assertEqual(Card("9", "spades").value, 9)
        self.assertEqual(len(ALL_CARD_KEYS), CARDS_PER_DECK)

    def test_hand_result(self):
        hand = HandResult.from_cards([Card("K", "hearts"), Card("7", "clubs")], [Card("9", "spades")], "player", 3)
        self.assertEqual(hand.card_count, 3)
        self.assertEqual(str(hand), "#3 P[K 7] B[9] -> player")
        with self.assertRaises(ValueError):
            HandResult((), (), "dealer")


class TestShoe(unittest.TestCase):
    def test_full_shoe(self):
        shoe = full_shoe(8)
        self.assertEqual(total_cards(shoe), 416)
        self.assertEqual(category_totals(shoe), (160, 256))
        self.assertAlmostEqual(high_card_ratio(shoe), 5 / 13)

    def test_remove_cards(self):
        """Removal returns a new Counter and refuses cards that are gone."""
        shoe = full_shoe(1)
        after = remove_cards(shoe, [Card("A", "hearts")])
        self.assertEqual(after[CardKey("A", "hearts")], 0)
        self.assertEqual(shoe[CardKey("A", "hearts")], 1)
        with self.assertRaises(ValueError):
            remove_cards(after, [Card("A", "hearts")])

    def test_sanitize_accepts_tuple_keys(self):
        clean = sanitize_composition({("K", "hearts"): 3, CardKey("K", "hearts"): 1, ("2", "clubs"): 0})
        self.assertEqual(clean, {CardKey("K", "hearts"): 4, CardKey("2", "clubs"): 0})

    def test_sanitize_rejects_bad_snapshots(self):
        bad = [
            None,
            {},
            {CardKey("K", "hearts"): 0},
            {CardKey("K", "hearts"): -2},
            {CardKey("K", "hearts"): True},
            {CardKey("K", "hearts"): float("inf")},
            {CardKey("K", "hearts"): "3"},
            {CardKey("K", "hearts"): 2.7},
            {CardKey("K", "hearts"): 0.4},
            {("Z", "hearts"): 3},
            {"K": 3},
        ]
        for counts in bad:
            with self.assertLogs("baccarat_mechanics.shoe", level="WARNING"):
                self.assertIsNone(sanitize_composition(counts), counts)

    def test_sanitize_accepts_whole_floats(self):
        self.assertEqual(sanitize_composition({CardKey("K", "hearts"): 3.0}), {CardKey("K", "hearts"): 3})

    def test_sanitize_does_not_mutate(self):
        counts = Counter({CardKey("5", "diamonds"): 2})
        sanitize_composition(counts)
        self.assertEqual(counts, Counter({CardKey("5", "diamonds"): 2}))


if __name__ == "__main__":
    unittest.main()
