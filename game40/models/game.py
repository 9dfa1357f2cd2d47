"""Game model for holding a game's state snapshot."""

import random
from dataclasses import dataclass, field
from datetime import UTC, datetime

from game40.constants import GAME_CODE_ALPHABET, GAME_CODE_LENGTH
from game40.models.enums import GameStatus
from game40.models.player import Player


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()


def generate_game_code(rng: random.Random | None = None) -> str:
    """Generate a human-friendly join code.

    Codes are not checked for collisions here; the store holds a unique index.
    """
    chooser = rng or random
    return "".join(chooser.choice(GAME_CODE_ALPHABET) for _ in range(GAME_CODE_LENGTH))


def normalize_game_code(code: str) -> str:
    """Normalize a user-entered join code for lookup."""
    return code.strip().upper()


@dataclass
class Game:
    """Represents one Game 40 table.

    Attributes:
        id: Unique game identifier
        code: Six-character join code
        status: Current lifecycle state
        players: Players ordered by join_order
        current_total: Running total of the current round
        current_player_id: Whose turn it is (None outside of play)
        round_number: Current round, starting at 1
        created_at: ISO timestamp when the game was created

    """

    id: str
    code: str
    status: GameStatus = GameStatus.LOBBY
    players: list[Player] = field(default_factory=list)
    current_total: int = 0
    current_player_id: str | None = None
    round_number: int = 1
    created_at: str = field(default_factory=_utc_now)

    def get_player(self, player_id: str | None) -> Player | None:
        """Get a player by ID."""
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    @property
    def host(self) -> Player | None:
        """The player with join order 0."""
        for player in self.players:
            if player.is_host:
                return player
        return None

    def seated_players(self) -> list[Player]:
        """Players sorted by their seat."""
        return sorted(self.players, key=lambda p: p.join_order)

    def active_players(self) -> list[Player]:
        """Non-eliminated players in seat order."""
        return [p for p in self.seated_players() if not p.eliminated]

    def next_active_player_after(self, player_id: str) -> Player | None:
        """Find the next non-eliminated player after player_id, wrapping around.

        The reference player itself may be eliminated; seating still starts
        from its seat.
        """
        seated = self.seated_players()
        start = next((i for i, p in enumerate(seated) if p.id == player_id), None)
        if start is None:
            return None

        for offset in range(1, len(seated) + 1):
            candidate = seated[(start + offset) % len(seated)]
            if not candidate.eliminated:
                return candidate
        return None

    def get_winner(self) -> Player | None:
        """Get the last player standing once the game is finished."""
        if self.status != GameStatus.FINISHED:
            return None
        active = self.active_players()
        return active[0] if len(active) == 1 else None

    def __str__(self) -> str:
        """Return string representation."""
        return (
            f"Game {self.code}: {len(self.players)} players, "
            f"Round {self.round_number}, Total {self.current_total}, State: {self.status.value}"
        )
