"""Deck model for building, shuffling and dealing cards."""

import random
from collections.abc import Iterable

from game40.constants import HAND_SIZE
from game40.errors import InsufficientCardsError
from game40.models.card import Card
from game40.models.enums import STANDARD_RANKS, STANDARD_SUITS

WILD_CARD_COUNT = 2


def build_cards() -> list[Card]:
    """Return the 54 cards in canonical order: suit by suit, then the wild cards."""
    cards = [Card(suit=suit, rank=rank) for suit in STANDARD_SUITS for rank in STANDARD_RANKS]
    cards.extend(Card.wild() for _ in range(WILD_CARD_COUNT))
    return cards


class Deck:
    """
    Represents a deck of Game 40 cards.

    The full deck contains 54 cards:
    - 52 standard cards (hearts, diamonds, clubs, spades; A-K)
    - 2 wild cards

    Dealing draws from the end of the card list, so the "top" of the deck is
    its last element.
    """

    def __init__(self, cards: Iterable[Card] | None = None) -> None:
        """Initialize a deck holding the given cards (empty by default)."""
        self.cards: list[Card] = list(cards) if cards is not None else []

    @classmethod
    def build(cls) -> "Deck":
        """Create an unshuffled full deck."""
        return cls(build_cards())

    def shuffled(self, rng: random.Random | None = None) -> "Deck":
        """Return a new deck with the same cards in uniformly random order.

        This deck is left untouched.
        """
        cards = list(self.cards)
        (rng or random).shuffle(cards)
        return Deck(cards)

    def deal(self, num_players: int, cards_per_player: int = HAND_SIZE) -> list[list[Card]]:
        """
        Deal cards round-robin, one card to each player per pass.

        Args:
            num_players: Number of players to deal to
            cards_per_player: Number of cards per player

        Returns:
            List of hands, where hands[i] belongs to the i-th player

        Raises:
            InsufficientCardsError: if the deck cannot fill every hand

        """
        needed = num_players * cards_per_player
        if len(self.cards) < needed:
            raise InsufficientCardsError(
                f"Cannot deal {cards_per_player} cards to {num_players} players "
                f"from {len(self.cards)} cards"
            )

        hands: list[list[Card]] = [[] for _ in range(num_players)]
        for _ in range(cards_per_player):
            for hand in hands:
                hand.append(self.cards.pop())

        return hands

    def __len__(self) -> int:
        return len(self.cards)
