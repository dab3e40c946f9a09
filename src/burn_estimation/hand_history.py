"""
Hand-history frequency tables.

Hand history arrives read-only from the game-state collaborator. It is
flattened into a pandas frame (one row per dealt card) from which rank and suit
frequencies, recency-weighted frequencies and outcome tallies are derived. The
pattern method and the learned predictor share these tables.
"""

from typing import Dict, Mapping, Sequence

import numpy as np
import pandas as pd

from baccarat_mechanics.hand_result import WINNERS, HandResult

FRAME_COLUMNS = ["hand_index", "hand_number", "side", "rank", "suit", "winner"]


def hand_history_frame(hands: Sequence[HandResult]) -> pd.DataFrame:
    """Flatten hands into one row per dealt card, oldest hand first."""
    rows = []
    for index, hand in enumerate(hands):
        for side, cards in (("player", hand.player), ("banker", hand.banker)):
            for card in cards:
                rows.append(
                    {
                        "hand_index": index,
                        "hand_number": hand.hand_number,
                        "side": side,
                        "rank": card.rank,
                        "suit": card.suit,
                        "winner": hand.winner,
                    }
                )
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def rank_frequencies(hands: Sequence[HandResult], cards_per_hand: int = 6) -> Dict[str, float]:
    """
    Per-rank appearance rate relative to a nominal cards_per_hand per hand.

    Only ranks that were actually dealt appear in the result.
    """
    if not hands:
        return {}
    frame = hand_history_frame(hands)
    counts = frame.groupby("rank").size()
    denominator = len(hands) * cards_per_hand
    return {rank: float(count) / denominator for rank, count in counts.items()}


def recency_weighted_rank_frequencies(
    hands: Sequence[HandResult], window: int = 5, cards_per_hand: int = 6
) -> Dict[str, float]:
    """
    Rank frequencies over the last `window` hands with linear recency weights.

    The oldest hand in the window weighs 1, the newest weighs len(window).
    """
    recent = list(hands)[-window:] if window > 0 else []
    if not recent:
        return {}
    frame = hand_history_frame(recent)
    weights = np.arange(1, len(recent) + 1, dtype=float)
    if frame.empty:
        return {}
    frame = frame.assign(weight=weights[frame["hand_index"].to_numpy()])
    weighted = frame.groupby("rank")["weight"].sum()
    denominator = float(weights.sum()) * cards_per_hand
    return {rank: float(total) / denominator for rank, total in weighted.items()}


def blended_rank_frequencies(
    hands: Sequence[HandResult],
    history_blend: float = 0.7,
    window: int = 5,
    cards_per_hand: int = 6,
) -> Dict[str, float]:
    """Stable whole-history frequencies blended with the recent window."""
    full = rank_frequencies(hands, cards_per_hand)
    recent = recency_weighted_rank_frequencies(hands, window, cards_per_hand)
    ranks = set(full) | set(recent)
    return {
        rank: history_blend * full.get(rank, 0.0) + (1.0 - history_blend) * recent.get(rank, 0.0)
        for rank in ranks
    }


def suit_frequencies(hands: Sequence[HandResult], cards_per_hand: int = 6) -> Dict[str, float]:
    if not hands:
        return {}
    frame = hand_history_frame(hands)
    counts = frame.groupby("suit").size()
    denominator = len(hands) * cards_per_hand
    return {suit: float(count) / denominator for suit, count in counts.items()}


def normalize_frequencies(frequencies: Mapping[str, float]) -> Dict[str, float]:
    """Rescale non-negative frequencies to sum to one; all-zero input stays empty."""
    clean = {key: max(0.0, float(value)) for key, value in frequencies.items()}
    total = sum(clean.values())
    if total <= 0.0:
        return {}
    return {key: value / total for key, value in clean.items()}


def outcome_tallies(hands: Sequence[HandResult], last: int = 10) -> Dict[str, int]:
    """Wins per side over the last `last` hands."""
    tallies = {winner: 0 for winner in WINNERS}
    for hand in list(hands)[-last:] if last > 0 else []:
        tallies[hand.winner] += 1
    return tallies
