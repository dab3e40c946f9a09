from .cards import (
    ALL_CARD_KEYS,
    HIGH_RANKS,
    LOW_RANKS,
    RANKS,
    SUITS,
    Card,
    CardKey,
    card_value,
)
from .hand_result import HandResult
from .shoe import ShoeComposition, full_shoe, remove_cards, sanitize_composition

__all__ = [
    "ALL_CARD_KEYS",
    "HIGH_RANKS",
    "LOW_RANKS",
    "RANKS",
    "SUITS",
    "Card",
    "CardKey",
    "HandResult",
    "ShoeComposition",
    "card_value",
    "full_shoe",
    "remove_cards",
    "sanitize_composition",
]
