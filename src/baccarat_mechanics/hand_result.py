from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from .cards import Card

WINNERS: Tuple[str, ...] = ("player", "banker", "tie")


@dataclass(frozen=True)
class HandResult:
    """Immutable record of a completed baccarat hand.

    Winner resolution is done upstream by the game-state collaborator; this
    object only carries its output.
    """

    player: Tuple[Card, ...]
    banker: Tuple[Card, ...]
    winner: str
    hand_number: int = 0
    timestamp: Optional[float] = None  # epoch seconds

    def __post_init__(self):
        if self.winner not in WINNERS:
            raise ValueError(f"Invalid winner: {self.winner!r}. Valid: {list(WINNERS)}")

    @property
    def card_count(self) -> int:
        return len(self.player) + len(self.banker)

    @classmethod
    def from_cards(
        cls,
        player: Iterable[Card],
        banker: Iterable[Card],
        winner: str,
        hand_number: int = 0,
        timestamp: Optional[float] = None,
    ) -> "HandResult":
        """Create HandResult from any iterables of cards"""
        return cls(
            player=tuple(player),
            banker=tuple(banker),
            winner=winner,
            hand_number=hand_number,
            timestamp=timestamp,
        )

    def __str__(self) -> str:
        player = " ".join(c.rank for c in self.player)
        banker = " ".join(c.rank for c in self.banker)
        return f"#{self.hand_number} P[{player}] B[{banker}] -> {self.winner}"
