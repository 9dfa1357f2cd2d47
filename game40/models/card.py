"""Card model."""

from dataclasses import dataclass
from typing import Any

from game40.errors import InvalidInputError
from game40.models.enums import Rank, Suit

FACE_RANKS = frozenset({Rank.JACK, Rank.QUEEN, Rank.KING})


def rank_value(rank: Rank) -> int:
    """Return the points a rank adds to the running total.

    Aces count 1, face cards and wild cards count 0, numbered cards count
    their number.
    """
    if rank is Rank.ACE:
        return 1
    if rank in FACE_RANKS or rank is Rank.WILD:
        return 0
    return int(rank.value)


@dataclass(frozen=True)
class Card:
    """A single playing card.

    Attributes:
        suit: One of the four suits, or WILD for the wild cards
        rank: A, 2-10, J, Q, K, or WILD

    """

    suit: Suit
    rank: Rank

    def __post_init__(self) -> None:
        if (self.suit is Suit.WILD) != (self.rank is Rank.WILD):
            raise InvalidInputError(f"Invalid card: {self.rank.value} of {self.suit.value}")

    @property
    def value(self) -> int:
        return rank_value(self.rank)

    @property
    def is_wild(self) -> bool:
        return self.rank is Rank.WILD

    def matches(self, other: "Card") -> bool:
        """Check if two cards share rank and suit."""
        return self.rank is other.rank and self.suit is other.suit

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for storage/transmission."""
        return {
            "suit": self.suit.value,
            "rank": self.rank.value,
            "value": self.value,
            "isWild": self.is_wild,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Card":
        """Create from dictionary.

        Only suit and rank are read; value and isWild are derived from them.
        """
        try:
            return cls(suit=Suit(data["suit"]), rank=Rank(str(data["rank"])))
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidInputError("Invalid card") from e

    @classmethod
    def wild(cls) -> "Card":
        return cls(suit=Suit.WILD, rank=Rank.WILD)

    def __str__(self) -> str:
        if self.is_wild:
            return "WILD"
        return f"{self.rank.value} of {self.suit.value}"
