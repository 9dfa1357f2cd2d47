"""Player model."""

from dataclasses import dataclass, field

from game40.models.card import Card


@dataclass
class Player:
    """Represents a player in the game.

    Attributes:
        id: Unique player identifier
        name: Player's display name
        join_order: Seat assigned at join time (0 is the host), never changes
        eliminated: Whether the player has busted out of the game
        hand: Current cards in hand

    """

    id: str
    name: str
    join_order: int = 0
    eliminated: bool = False
    hand: list[Card] = field(default_factory=list)

    @property
    def is_host(self) -> bool:
        return self.join_order == 0

    def find_card(self, card: Card) -> int | None:
        """Return the index of the first card in hand matching rank and suit."""
        for index, held in enumerate(self.hand):
            if held.matches(card):
                return index
        return None

    def remove_card(self, card: Card) -> Card | None:
        """Remove the first matching card from the hand and return it."""
        index = self.find_card(card)
        if index is None:
            return None
        return self.hand.pop(index)

    def clear_hand(self) -> None:
        self.hand = []

    def eliminate(self) -> None:
        """Knock the player out of the game. The hand is emptied, not discarded."""
        self.eliminated = True
        self.hand = []

    def __str__(self) -> str:
        """Return string representation."""
        out_str = " (out)" if self.eliminated else ""
        return f"{self.name}{out_str} - {len(self.hand)} cards"
