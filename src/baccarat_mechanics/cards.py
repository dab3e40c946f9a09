from typing import Dict, Optional, Tuple
from dataclasses import dataclass


RANKS: Tuple[str, ...] = ("A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K")
SUITS: Tuple[str, ...] = ("hearts", "diamonds", "clubs", "spades")

# Burn-bias categories: tens/faces and aces are "high", pips 2-9 are "low"
HIGH_RANKS: Tuple[str, ...] = ("10", "J", "Q", "K", "A")
LOW_RANKS: Tuple[str, ...] = ("2", "3", "4", "5", "6", "7", "8", "9")

CARDS_PER_DECK = len(RANKS) * len(SUITS)

CARD_VALUES: Dict[str, int] = {
    "A": 1,
    "2": 2,
    "3": 3,
    "4": 4,
    "5": 5,
    "6": 6,
    "7": 7,
    "8": 8,
    "9": 9,
    "10": 0,
    "J": 0,
    "Q": 0,
    "K": 0,
}


def card_value(rank: str) -> int:
    """Baccarat point value of a rank (tens and faces count zero)."""
    return CARD_VALUES.get(rank, 0)


@dataclass(frozen=True, order=True)
class CardKey:
    """Identity of one card type in a multi-deck shoe."""

    rank: str
    suit: str

    def __post_init__(self):
        if self.rank not in RANKS:
            raise ValueError(f"Invalid rank: {self.rank!r}. Valid: {list(RANKS)}")
        if self.suit not in SUITS:
            raise ValueError(f"Invalid suit: {self.suit!r}. Valid: {list(SUITS)}")

    @property
    def value(self) -> int:
        return card_value(self.rank)

    def __str__(self) -> str:
        return f"{self.rank} of {self.suit}"


@dataclass(frozen=True)
class Card:
    """A physical card seen at the table, e.g. a burn card that was exposed."""

    rank: str
    suit: str
    hand_number: Optional[int] = None  # hand in which the card left the shoe

    @property
    def key(self) -> CardKey:
        return CardKey(self.rank, self.suit)

    @property
    def value(self) -> int:
        return card_value(self.rank)


ALL_CARD_KEYS: Tuple[CardKey, ...] = tuple(
    CardKey(rank, suit) for rank in RANKS for suit in SUITS
)
