"""
Shoe composition snapshots.

A snapshot maps every CardKey to the number of copies still in the shoe. It is
supplied by the game-state collaborator; the helpers here build, reduce and
sanity-check snapshots without ever mutating the caller's mapping.
"""

import logging
import math
from collections import Counter
from numbers import Real
from typing import Dict, Iterable, Mapping, Optional, Tuple

from .cards import ALL_CARD_KEYS, HIGH_RANKS, LOW_RANKS, Card, CardKey

logger = logging.getLogger(__name__)

ShoeComposition = Mapping[CardKey, int]


def full_shoe(num_decks: int = 8) -> Counter:
    """
    Build a fresh shoe with num_decks, one count per (rank, suit) per deck.
    """
    return Counter({key: num_decks for key in ALL_CARD_KEYS})


def remove_cards(counts: ShoeComposition, cards: Iterable[Card]) -> Counter:
    """
    Remove seen cards from the shoe counts, returning a new Counter.
    """
    out = Counter(counts)
    for card in cards:
        key = card.key
        if out[key] <= 0:
            raise ValueError(f"Attempting to remove unavailable card: {key}")
        out[key] -= 1
    return out


def total_cards(counts: ShoeComposition) -> int:
    return sum(counts.values())


def category_totals(counts: ShoeComposition) -> Tuple[int, int]:
    """Return (high, low) card totals for the burn-bias categories."""
    high = 0
    low = 0
    for key, count in counts.items():
        if key.rank in HIGH_RANKS:
            high += count
        elif key.rank in LOW_RANKS:
            low += count
    return high, low


def high_card_ratio(counts: ShoeComposition) -> float:
    high, low = category_totals(counts)
    total = high + low
    if total <= 0:
        return 0.0
    return high / total


def count_by_key(cards: Iterable[Card]) -> Counter:
    return Counter(card.key for card in cards)


def sanitize_composition(counts: Optional[Mapping]) -> Optional[Dict[CardKey, int]]:
    """
    Validate a snapshot from the collaborator.

    Returns a plain dict keyed by CardKey, or None when the snapshot cannot be
    used (missing, empty, negative or non-numeric counts, unknown keys, or no
    cards left). Problems are logged as warnings, never raised.
    """
    if not counts:
        logger.warning("Shoe composition is empty or missing; using neutral analysis")
        return None

    clean: Dict[CardKey, int] = {}
    for raw_key, raw_count in counts.items():
        key = _coerce_key(raw_key)
        if key is None:
            logger.warning("Shoe composition has unknown card key %r; using neutral analysis", raw_key)
            return None
        if isinstance(raw_count, bool) or not isinstance(raw_count, Real) or not math.isfinite(raw_count):
            logger.warning("Shoe composition count for %s is not a number (%r)", key, raw_count)
            return None
        if raw_count < 0:
            logger.warning("Shoe composition count for %s is negative (%r)", key, raw_count)
            return None
        if raw_count != int(raw_count):
            logger.warning("Shoe composition count for %s is not a whole number (%r)", key, raw_count)
            return None
        clean[key] = clean.get(key, 0) + int(raw_count)

    if sum(clean.values()) <= 0:
        logger.warning("Shoe composition has no cards remaining; using neutral analysis")
        return None
    return clean


def _coerce_key(raw_key) -> Optional[CardKey]:
    if isinstance(raw_key, CardKey):
        return raw_key
    if isinstance(raw_key, tuple) and len(raw_key) == 2:
        try:
            return CardKey(*raw_key)
        except ValueError:
            return None
    return None
