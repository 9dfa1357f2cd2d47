"""Tests for Card model and card values."""

import pytest

from game40.errors import InvalidInputError
from game40.models.card import Card, rank_value
from game40.models.enums import Rank, Suit


class TestCard:
    """Test Card model."""

    def test_card_creation(self):
        """Test creating cards."""
        card = Card(suit=Suit.HEARTS, rank=Rank.SEVEN)
        assert card.suit == Suit.HEARTS
        assert card.rank == Rank.SEVEN
        assert card.value == 7
        assert not card.is_wild

    def test_values(self):
        """Aces count 1, faces 0, numbers their number."""
        assert rank_value(Rank.ACE) == 1
        assert rank_value(Rank.TEN) == 10
        assert rank_value(Rank.TWO) == 2
        for face in (Rank.JACK, Rank.QUEEN, Rank.KING):
            assert rank_value(face) == 0

    def test_wild_card(self):
        """Wild cards are worth nothing."""
        wild = Card.wild()
        assert wild.is_wild
        assert wild.value == 0
        assert wild.suit == Suit.WILD
        assert str(wild) == "WILD"

    def test_wild_suit_requires_wild_rank(self):
        """A wild suit with a standard rank is not a real card."""
        with pytest.raises(InvalidInputError):
            Card(suit=Suit.WILD, rank=Rank.ACE)
        with pytest.raises(InvalidInputError):
            Card(suit=Suit.SPADES, rank=Rank.WILD)

    def test_cards_are_immutable(self):
        card = Card(suit=Suit.CLUBS, rank=Rank.KING)
        with pytest.raises(AttributeError):
            card.rank = Rank.ACE  # type: ignore[misc]

    def test_matches_on_rank_and_suit(self):
        five_hearts = Card(suit=Suit.HEARTS, rank=Rank.FIVE)
        assert five_hearts.matches(Card(suit=Suit.HEARTS, rank=Rank.FIVE))
        assert not five_hearts.matches(Card(suit=Suit.SPADES, rank=Rank.FIVE))
        assert not five_hearts.matches(Card(suit=Suit.HEARTS, rank=Rank.SIX))


class TestCardSerialization:
    """Test card dictionaries as exchanged with clients."""

    def test_to_dict(self):
        assert Card(suit=Suit.DIAMONDS, rank=Rank.ACE).to_dict() == {
            "suit": "diamonds",
            "rank": "A",
            "value": 1,
            "isWild": False,
        }

    def test_from_dict_recomputes_value(self):
        """A client cannot inflate or deflate a card's value."""
        card = Card.from_dict({"suit": "spades", "rank": "9", "value": 0, "isWild": True})
        assert card.value == 9
        assert not card.is_wild

    def test_from_dict_accepts_numeric_rank(self):
        assert Card.from_dict({"suit": "clubs", "rank": 10}).rank == Rank.TEN

    @pytest.mark.parametrize(
        "data",
        [
            {},
            {"suit": "hearts"},
            {"suit": "stars", "rank": "A"},
            {"suit": "hearts", "rank": "11"},
            {"suit": "wild", "rank": "K"},
        ],
    )
    def test_from_dict_rejects_bad_cards(self, data):
        with pytest.raises(InvalidInputError):
            Card.from_dict(data)

    def test_from_dict_rejects_non_mapping(self):
        with pytest.raises(InvalidInputError):
            Card.from_dict(None)  # type: ignore[arg-type]
