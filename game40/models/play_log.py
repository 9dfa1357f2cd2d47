"""Play log entry model.

Captures every accepted card play as an append-only audit record.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from game40.models.card import Card


def _utc_now() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


@dataclass(frozen=True)
class PlayLogEntry:
    """A single accepted play."""

    game_id: str
    player_id: str
    card: Card
    total_after: int
    round_number: int = 1
    timestamp: datetime = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for storage/transmission."""
        return {
            "game_id": self.game_id,
            "player_id": self.player_id,
            "card": self.card.to_dict(),
            "total_after": self.total_after,
            "round_number": self.round_number,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlayLogEntry":
        """Create from dictionary."""
        return cls(
            game_id=data["game_id"],
            player_id=data["player_id"],
            card=Card.from_dict(data["card"]),
            total_after=data["total_after"],
            round_number=data.get("round_number", 1),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )
