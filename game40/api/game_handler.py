"""Request dispatcher: runs player actions against stored games.

Each action loads the game snapshot under that game's lock, runs the pure
state machine, commits the result, and delivers the projected messages. A
rejected action returns ``{"success": False, "error": ...}`` and changes
nothing.
"""

import asyncio
import logging
import random
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from game40.api.responses import ServerMessage
from game40.api.websocket import websocket_manager
from game40.config import settings
from game40.errors import (
    ErrorCode,
    GameError,
    GameNotFoundError,
    InvalidInputError,
    PersistenceError,
)
from game40.models.card import Card
from game40.models.enums import Command, EventType
from game40.models.game import Game
from game40.repositories.game_repository import BaseGameRepository, InMemoryGameRepository
from game40.services import state_machine
from game40.services.log_service import LogService
from game40.services.projector import (
    error_message,
    project,
    public_game_view,
    public_players_view,
    state_snapshot,
)
from game40.services.state_machine import GameRules, SaveGame, Transition

if TYPE_CHECKING:
    from game40.api.websocket import ConnectionManager
    from game40.services.publisher_service import PublisherService

logger = logging.getLogger(__name__)

Result = dict[str, Any]

# Wording of the "Failed to ..." reply when storage fails
ACTION_LABELS = {
    "create_game": "create game",
    "join_game": "join game",
    "start_game": "start game",
    "play_card": "play card",
    "next_round": "start next round",
    "sync_state": "load game",
}


class GameHandler:
    """Dispatches player actions to the state machine.

    Actions on the same game are serialized by a per-game ``asyncio.Lock``;
    actions on different games run independently.
    """

    def __init__(
        self,
        manager: "ConnectionManager",
        repository: BaseGameRepository | None = None,
        publisher: "PublisherService | None" = None,
        rules: GameRules | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize handler with connection manager and storage."""
        self.manager = manager
        self.repository: BaseGameRepository = repository or InMemoryGameRepository()
        self.publisher = publisher
        self.rules = rules or GameRules.from_settings(settings)
        self.rng = rng
        self.log_service = LogService()
        # Per-game locks, kept only while some action holds or awaits them
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    def set_services(
        self,
        repository: BaseGameRepository,
        publisher: "PublisherService | None",
    ) -> None:
        """Set external services for persistence and pub/sub.

        Game locks are left alone, so actions already running keep excluding
        new ones on the same game.

        Args:
            repository: Game repository
            publisher: Redis pub/sub service
        """
        self.repository = repository
        self.publisher = publisher

    @asynccontextmanager
    async def _game_lock(self, game_id: str) -> AsyncIterator[None]:
        """Hold a game's lock. The entry is dropped once nobody uses it."""
        lock = self._locks.setdefault(game_id, asyncio.Lock())
        self._lock_users[game_id] = self._lock_users.get(game_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[game_id] -= 1
            if not self._lock_users[game_id]:
                del self._lock_users[game_id]
                del self._locks[game_id]

    async def _guard(
        self, action: str, game_id: str | None, run: Callable[[], Awaitable[Result]]
    ) -> Result:
        """Run an action and turn its failures into rejected responses."""
        try:
            return await run()
        except GameError as e:
            self.log_service.rejected(action, game_id, e.code.value)
            return {"success": False, "error": e.message, "code": e.code.value}
        except PersistenceError:
            logger.exception("Storage failure during %s in game %s", action, game_id)
            return {
                "success": False,
                "error": f"Failed to {ACTION_LABELS[action]}",
                "code": ErrorCode.PERSISTENCE.value,
            }

    async def _load(self, game_id: str) -> Game:
        game = await self.repository.load_game(game_id)
        if game is None:
            raise GameNotFoundError()
        return game

    async def _execute(self, transition: Transition) -> None:
        """Carry out a transition's effects: one commit, then notifications."""
        saves = [effect.game for effect in transition.effects if isinstance(effect, SaveGame)]
        if saves:
            await self.repository.commit(saves[-1], transition.log_entries)

        for message in project(transition):
            await self.dispatch(message)

    async def _apply(self, game_id: str, operation: Callable[[Game], Transition]) -> Transition:
        async with self._game_lock(game_id):
            game = await self._load(game_id)
            transition = operation(game)
            await self._execute(transition)
        return transition

    async def dispatch(self, message: ServerMessage) -> None:
        """Deliver a message locally and relay it to other instances."""
        await self.manager.deliver(message)
        if self.publisher is not None and self.publisher.is_connected:
            await self.publisher.publish(message.game_id, message.to_relay())

    async def relay_message(self, game_id: str, data: dict[str, Any]) -> None:
        """Deliver a message published by another instance to local channels."""
        message = ServerMessage.from_relay({**data, "game_id": game_id})
        await self.manager.deliver(message)

    # ------------------------------------------------------------------
    # Action verbs
    # ------------------------------------------------------------------

    async def create_game(self, player_name: str) -> Result:
        """Open a new game with the caller as host."""

        async def run() -> Result:
            transition = state_machine.create_game(player_name, rng=self.rng)
            await self._execute(transition)
            game = transition.game
            self.log_service.action(
                "create_game", game.id, code=game.code, player=transition.player_id
            )
            return {
                "success": True,
                "gameId": game.id,
                "playerId": transition.player_id,
                "gameCode": game.code,
                "players": public_players_view(game),
            }

        return await self._guard("create_game", None, run)

    async def join_game(self, game_code: str, player_name: str) -> Result:
        """Seat a player in the lobby of the game with this code."""

        async def run() -> Result:
            if not game_code or not game_code.strip() or not player_name:
                raise InvalidInputError("Game code and name required")

            found = await self.repository.find_by_code(game_code)
            if found is None:
                raise GameNotFoundError()

            transition = await self._apply(
                found.id,
                lambda game: state_machine.join_game(game, player_name, rules=self.rules),
            )
            self.log_service.action("join_game", found.id, player=transition.player_id)
            return {
                "success": True,
                "gameId": found.id,
                "playerId": transition.player_id,
                "players": public_players_view(transition.game),
            }

        return await self._guard("join_game", None, run)

    async def start_game(self, game_id: str, player_id: str) -> Result:
        """Deal the first round (host only)."""

        async def run() -> Result:
            await self._apply(
                game_id,
                lambda game: state_machine.start_game(
                    game, player_id, rules=self.rules, rng=self.rng
                ),
            )
            self.log_service.action("start_game", game_id, player=player_id)
            return {"success": True}

        return await self._guard("start_game", game_id, run)

    async def play_card(
        self,
        game_id: str,
        player_id: str,
        card: Card | dict[str, Any] | None,
        target_player_id: str | None = None,
    ) -> Result:
        """Play a card for the current player."""

        async def run() -> Result:
            parsed = card if isinstance(card, Card) else Card.from_dict(card)  # type: ignore[arg-type]
            transition = await self._apply(
                game_id,
                lambda game: state_machine.play_card(
                    game, player_id, parsed, target_player_id, rules=self.rules
                ),
            )
            game = transition.game
            self.log_service.action(
                "play_card",
                game_id,
                player=player_id,
                card=str(parsed),
                total=game.current_total,
                status=game.status.value,
            )
            next_player = game.get_player(game.current_player_id)
            if next_player is not None and not next_player.hand:
                logger.warning(
                    "Game %s stalled at total %s: player %s has no cards left",
                    game_id,
                    game.current_total,
                    next_player.id,
                )
            return {
                "success": True,
                "status": game.status.value,
                "currentTotal": game.current_total,
                "nextPlayerId": game.current_player_id,
            }

        return await self._guard("play_card", game_id, run)

    async def next_round(self, game_id: str) -> Result:
        """Redeal to the remaining players."""

        async def run() -> Result:
            transition = await self._apply(
                game_id,
                lambda game: state_machine.next_round(game, rules=self.rules, rng=self.rng),
            )
            round_number = transition.game.round_number
            self.log_service.action("next_round", game_id, round=round_number)
            return {"success": True, "roundNumber": round_number}

        return await self._guard("next_round", game_id, run)

    async def sync_state(self, game_id: str, player_id: str) -> Result:
        """Send a player the current state with their own hand."""

        async def run() -> Result:
            async with self._game_lock(game_id):
                game = await self._load(game_id)
                await self.manager.deliver(state_snapshot(game, player_id))
            return {"success": True}

        return await self._guard("sync_state", game_id, run)

    async def get_game_view(self, game_id: str) -> dict[str, Any] | None:
        """Public view of a game, or None if it does not exist."""
        game = await self.repository.load_game(game_id)
        return public_game_view(game) if game else None

    async def handle_command(
        self, game_id: str, player_id: str, command: str, content: Any
    ) -> Result:
        """Route a command received over a player's socket.

        Rejections are sent back to that player only.
        """
        if not isinstance(content, dict):
            content = {}

        try:
            parsed = Command(command)
        except ValueError:
            logger.warning("Unknown command: %s", command)
            result: Result = {
                "success": False,
                "error": f"Unknown command: {command}",
                "code": ErrorCode.INVALID_INPUT.value,
            }
        else:
            if parsed == Command.PING:
                await self.manager.deliver(
                    ServerMessage(EventType.PONG, game_id, {}, receiver_id=player_id)
                )
                return {"success": True}
            if parsed == Command.START_GAME:
                result = await self.start_game(game_id, player_id)
            elif parsed == Command.PLAY_CARD:
                result = await self.play_card(
                    game_id, player_id, content.get("card"), content.get("targetPlayerId")
                )
            elif parsed == Command.NEXT_ROUND:
                result = await self.next_round(game_id)
            else:
                result = await self.sync_state(game_id, player_id)

        if not result["success"]:
            await self.manager.deliver(
                error_message(game_id, player_id, result["error"], result.get("code"))
            )
        return result


# Global dispatcher, wired to the global connection manager
game_handler = GameHandler(websocket_manager)
websocket_manager.set_game_handler(game_handler)
