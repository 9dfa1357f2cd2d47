"""Logging service."""

import logging
from typing import Any

logger = logging.getLogger(__name__)


def _format(data: dict[str, Any]) -> str:
    return " | ".join(f"{k}={v}" for k, v in data.items() if v is not None)


class LogService:
    """Service for structured game logging.

    Every line is a ``key=value | key=value`` record so game actions can be
    grepped by game, player or action.
    """

    def action(self, action: str, game_id: str, **fields: Any) -> None:
        """Log an accepted game action.

        Args:
            action: Action verb (e.g. "play_card")
            game_id: Game identifier
            fields: Extra key-value pairs

        """
        logger.info(_format({"action": action, "game": game_id, **fields}))

    def rejected(self, action: str, game_id: str | None, reason: str, **fields: Any) -> None:
        """Log an action refused by the rules."""
        logger.info(_format({"action": action, "game": game_id, "rejected": reason, **fields}))

