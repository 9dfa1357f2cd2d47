"""Request/response models and the WebSocket message envelope."""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from game40.errors import ErrorCode
from game40.models.enums import EventType

__all__ = [
    "CardPayload",
    "CreateGameRequest",
    "ErrorCode",
    "EventType",
    "JoinGameRequest",
    "NextRoundRequest",
    "PlayCardRequest",
    "ServerMessage",
    "StartGameRequest",
]


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys, like the web client sends them."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CardPayload(CamelModel):
    """Card as sent by a client. Value and wildness are recomputed server-side."""

    suit: str
    rank: str | int
    value: int | None = None
    is_wild: bool | None = None


class CreateGameRequest(CamelModel):
    """Request to create a new game."""

    player_name: str = ""


class JoinGameRequest(CamelModel):
    """Request to join a game by its code."""

    game_code: str = ""
    player_name: str = ""


class StartGameRequest(CamelModel):
    """Request from the host to deal the first round."""

    player_id: str


class PlayCardRequest(CamelModel):
    """Request to play a card, optionally redirecting the turn with a wild card."""

    player_id: str
    card: CardPayload
    target_player_id: str | None = None


class NextRoundRequest(CamelModel):
    """Request to start the next round. The player is informational only."""

    player_id: str | None = None


@dataclass
class ServerMessage:
    """Message sent from server to clients via WebSocket.

    Attributes:
        event: Event type
        game_id: Game identifier
        payload: Message payload (varies by event)
        receiver_id: Specific player to receive (empty = broadcast)

    """

    event: EventType
    game_id: str
    payload: Any
    receiver_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "type": self.event.value,
            "payload": self.payload,
        }

    def to_relay(self) -> dict[str, Any]:
        """Convert to a dictionary that another server instance can rebuild."""
        return {
            "event": self.event.value,
            "game_id": self.game_id,
            "payload": self.payload,
            "receiver_id": self.receiver_id,
        }

    @classmethod
    def from_relay(cls, data: dict[str, Any]) -> "ServerMessage":
        return cls(
            event=EventType(data["event"]),
            game_id=data["game_id"],
            payload=data.get("payload", {}),
            receiver_id=data.get("receiver_id", ""),
        )
