"""WebSocket session directory."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any

from fastapi import WebSocket, WebSocketDisconnect

from game40.config import settings

if TYPE_CHECKING:
    from game40.api.game_handler import GameHandler
    from game40.api.responses import ServerMessage

logger = logging.getLogger(__name__)

SEND_ERRORS = (WebSocketDisconnect, RuntimeError, ConnectionError, OSError, TimeoutError)


class ConnectionManager:
    """Maps game id -> player id -> WebSocket for the players connected here.

    Handles:
    - Channel registration per game and player
    - Best-effort delivery: a dead or slow channel is dropped and never
      holds up delivery to the others
    - The receive loop for commands sent over a player's socket

    The registry is only touched under ``_lock``; sends happen outside it on
    a snapshot of the channels.
    """

    def __init__(self, send_timeout: float | None = None) -> None:
        """Initialize the connection manager."""
        # game_id -> player_id -> WebSocket
        self.active_connections: dict[str, dict[str, WebSocket]] = {}
        self._lock = asyncio.Lock()
        self.send_timeout = send_timeout if send_timeout is not None else settings.ws_send_timeout
        self.game_handler: GameHandler | None = None

    def set_game_handler(self, game_handler: GameHandler) -> None:
        """Set the game handler after initialization to avoid circular imports.

        Args:
            game_handler: The game handler instance

        """
        self.game_handler = game_handler

    async def register(self, game_id: str, player_id: str, websocket: WebSocket) -> None:
        """Attach a player's channel, replacing any previous one."""
        async with self._lock:
            self.active_connections.setdefault(game_id, {})[player_id] = websocket
        logger.info("Player %s connected to game %s", player_id, game_id)

    async def unregister(
        self, game_id: str, player_id: str, websocket: WebSocket | None = None
    ) -> bool:
        """Detach a player's channel.

        When ``websocket`` is given, the entry is only removed if it is still
        that socket, so a stale socket closing cannot evict a newer one.

        Returns:
            True if a channel was removed
        """
        async with self._lock:
            channels = self.active_connections.get(game_id)
            if not channels or player_id not in channels:
                return False
            if websocket is not None and channels[player_id] is not websocket:
                return False

            del channels[player_id]
            if not channels:
                del self.active_connections[game_id]

        logger.info("Player %s disconnected from game %s", player_id, game_id)
        return True

    def is_connected(self, game_id: str, player_id: str) -> bool:
        return player_id in self.active_connections.get(game_id, {})

    def connection_count(self, game_id: str) -> int:
        return len(self.active_connections.get(game_id, {}))

    async def _snapshot(self, game_id: str) -> list[tuple[str, WebSocket]]:
        async with self._lock:
            return list(self.active_connections.get(game_id, {}).items())

    async def _send(
        self, game_id: str, player_id: str, websocket: WebSocket, data: dict[str, Any]
    ) -> bool:
        try:
            await asyncio.wait_for(websocket.send_json(data), timeout=self.send_timeout)
        except SEND_ERRORS:
            logger.warning("Connection lost to player %s in game %s", player_id, game_id)
            await self.unregister(game_id, player_id, websocket)
            return False
        return True

    async def send_to(self, message: ServerMessage, game_id: str, player_id: str) -> bool:
        """Send message to specific player.

        Args:
            message: Message to send
            game_id: Game identifier
            player_id: Player identifier

        Returns:
            True if the message was handed to the player's socket
        """
        async with self._lock:
            websocket = self.active_connections.get(game_id, {}).get(player_id)
        if websocket is None:
            return False
        return await self._send(game_id, player_id, websocket, message.to_dict())

    async def broadcast(self, message: ServerMessage, game_id: str) -> int:
        """Broadcast message to every player connected to a game.

        Args:
            message: Message to broadcast
            game_id: Game identifier

        Returns:
            Number of channels that accepted the message
        """
        channels = await self._snapshot(game_id)
        if not channels:
            return 0

        data = message.to_dict()
        results = await asyncio.gather(
            *(self._send(game_id, player_id, ws, data) for player_id, ws in channels)
        )
        return sum(results)

    async def deliver(self, message: ServerMessage) -> None:
        """Route a message to its addressee, or to the whole game."""
        if message.receiver_id:
            await self.send_to(message, message.game_id, message.receiver_id)
        else:
            await self.broadcast(message, message.game_id)

    async def handle_player_message(
        self, websocket: WebSocket, game_id: str, player_id: str
    ) -> None:
        """Handle incoming messages from a player until the socket closes.

        Args:
            websocket: WebSocket connection
            game_id: Game identifier
            player_id: Player identifier

        """
        try:
            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    logger.warning("Invalid JSON from player %s in game %s", player_id, game_id)
                    message = {}
                if not isinstance(message, dict):
                    message = {}

                command = message.get("command", "")
                content = message.get("content", {})

                logger.info("Received %s from player %s in game %s", command, player_id, game_id)

                if self.game_handler is not None:
                    await self.game_handler.handle_command(game_id, player_id, command, content)

        except WebSocketDisconnect:
            await self.unregister(game_id, player_id, websocket)

        except (RuntimeError, ConnectionError, OSError) as e:
            logger.warning("Error handling message from %s: %s", player_id, e)
            await self.unregister(game_id, player_id, websocket)


# Global WebSocket manager instance
websocket_manager = ConnectionManager()
