"""Game serialization for persistence.

Handles conversion between Game objects and MongoDB documents. Hands are
stored as lists of card documents so the store can index and validate them.
"""

from datetime import UTC, datetime
from typing import Any

from game40.models.card import Card
from game40.models.enums import GameStatus
from game40.models.game import Game
from game40.models.play_log import PlayLogEntry
from game40.models.player import Player


def serialize_card(card: Card) -> dict[str, Any]:
    """Serialize a Card to a dictionary."""
    return card.to_dict()


def deserialize_card(data: dict[str, Any]) -> Card:
    """Deserialize a Card from a dictionary."""
    return Card.from_dict(data)


def serialize_player(player: Player) -> dict[str, Any]:
    """Serialize a Player to a dictionary."""
    return {
        "id": player.id,
        "name": player.name,
        "join_order": player.join_order,
        "eliminated": player.eliminated,
        "hand": [serialize_card(card) for card in player.hand],
    }


def deserialize_player(data: dict[str, Any]) -> Player:
    """Deserialize a Player from a dictionary."""
    return Player(
        id=data["id"],
        name=data["name"],
        join_order=data.get("join_order", 0),
        eliminated=data.get("eliminated", False),
        hand=[deserialize_card(card) for card in data.get("hand", [])],
    )


def serialize_game(game: Game) -> dict[str, Any]:
    """Serialize a complete Game to a MongoDB document.

    Args:
        game: Game instance to serialize

    Returns:
        Dictionary suitable for MongoDB storage
    """
    return {
        "_id": game.id,
        "code": game.code,
        "status": game.status.value,
        "players": [serialize_player(p) for p in game.seated_players()],
        "current_total": game.current_total,
        "current_player_id": game.current_player_id,
        "round_number": game.round_number,
        "created_at": game.created_at,
        "updated_at": datetime.now(UTC).isoformat(),
    }


def deserialize_game(data: dict[str, Any]) -> Game:
    """Deserialize a Game from a MongoDB document.

    Args:
        data: MongoDB document

    Returns:
        Game instance with full state restored
    """
    game = Game(
        id=data["_id"],
        code=data["code"],
        status=GameStatus(data["status"]),
        current_total=data.get("current_total", 0),
        current_player_id=data.get("current_player_id"),
        round_number=data.get("round_number", 1),
    )
    if data.get("created_at"):
        game.created_at = data["created_at"]

    game.players = sorted(
        (deserialize_player(p) for p in data.get("players", [])),
        key=lambda p: p.join_order,
    )

    return game


def serialize_log_entry(entry: PlayLogEntry) -> dict[str, Any]:
    """Serialize a PlayLogEntry to a MongoDB document."""
    return entry.to_dict()


def deserialize_log_entry(data: dict[str, Any]) -> PlayLogEntry:
    """Deserialize a PlayLogEntry, ignoring storage-only keys such as _id."""
    return PlayLogEntry.from_dict({k: v for k, v in data.items() if k != "_id"})
