"""Tests for game persistence documents."""

from datetime import UTC, datetime

from game40.models.card import Card
from game40.models.enums import GameStatus, Rank, Suit
from game40.models.game import Game
from game40.models.play_log import PlayLogEntry
from game40.models.player import Player
from game40.services.game_serializer import (
    deserialize_game,
    deserialize_log_entry,
    serialize_game,
    serialize_log_entry,
    serialize_player,
)


def sample_game() -> Game:
    return Game(
        id="g1",
        code="XY23ZW",
        status=GameStatus.PLAYING,
        current_total=17,
        current_player_id="p1",
        round_number=2,
        created_at="2026-01-01T00:00:00+00:00",
        players=[
            Player(id="p1", name="Bob", join_order=1, hand=[Card(Suit.HEARTS, Rank.TEN), Card.wild()]),
            Player(id="p0", name="Alice", join_order=0, eliminated=True),
        ],
    )


class TestGameDocument:
    """Test game documents."""

    def test_document_shape(self):
        doc = serialize_game(sample_game())

        assert doc["_id"] == "g1"
        assert doc["code"] == "XY23ZW"
        assert doc["status"] == "playing"
        assert doc["current_total"] == 17
        assert doc["current_player_id"] == "p1"
        assert doc["round_number"] == 2
        assert doc["created_at"] == "2026-01-01T00:00:00+00:00"
        assert "updated_at" in doc

    def test_players_stored_in_seat_order(self):
        doc = serialize_game(sample_game())
        assert [p["id"] for p in doc["players"]] == ["p0", "p1"]

    def test_hand_stored_as_card_documents(self):
        doc = serialize_player(sample_game().players[0])
        assert doc["hand"][0] == {"suit": "hearts", "rank": "10", "value": 10, "isWild": False}
        assert doc["hand"][1]["isWild"] is True

    def test_restore(self):
        game = sample_game()
        restored = deserialize_game(serialize_game(game))

        assert restored.status == GameStatus.PLAYING
        assert restored.created_at == game.created_at
        assert [p.id for p in restored.players] == ["p0", "p1"]
        assert restored.get_player("p0").eliminated
        assert restored.get_player("p1").hand == game.get_player("p1").hand

    def test_restore_sorts_players(self):
        doc = serialize_game(sample_game())
        doc["players"].reverse()
        assert [p.join_order for p in deserialize_game(doc).players] == [0, 1]

    def test_restore_with_defaults(self):
        game = deserialize_game({"_id": "g2", "code": "AAAAAA", "status": "lobby"})
        assert game.players == []
        assert game.current_total == 0
        assert game.current_player_id is None
        assert game.round_number == 1


class TestLogDocument:
    """Test play log documents."""

    def test_log_entry_document(self):
        entry = PlayLogEntry(
            game_id="g1",
            player_id="p1",
            card=Card(Suit.CLUBS, Rank.SEVEN),
            total_after=24,
            round_number=3,
            timestamp=datetime(2026, 1, 1, 12, 0, tzinfo=UTC),
        )
        doc = serialize_log_entry(entry)

        assert doc["total_after"] == 24
        assert doc["timestamp"] == "2026-01-01T12:00:00+00:00"

        # Stores add their own _id
        doc["_id"] = "ignored"
        assert deserialize_log_entry(doc) == entry
