"""Game repositories.

``InMemoryGameRepository`` keeps games in process memory and is used for
local play, tests, and as a fallback when MongoDB is unavailable.
``MongoGameRepository`` persists games with the async Motor driver.

Both store serialized documents rather than live objects, so callers never
share mutable state with storage.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from game40.config import settings
from game40.errors import PersistenceError
from game40.models.game import Game, normalize_game_code
from game40.models.play_log import PlayLogEntry
from game40.models.player import Player
from game40.services.game_serializer import (
    deserialize_game,
    deserialize_log_entry,
    serialize_game,
    serialize_log_entry,
    serialize_player,
)

logger = logging.getLogger(__name__)


class BaseGameRepository(ABC):
    """Storage contract consumed by the dispatcher."""

    async def connect(self) -> None:
        """Open connections to the backing store."""

    async def disconnect(self) -> None:
        """Close connections to the backing store."""

    @abstractmethod
    async def load_game(self, game_id: str) -> Game | None:
        """Load a game and its players, ordered by join order."""

    @abstractmethod
    async def find_by_code(self, code: str) -> Game | None:
        """Load a game by its join code (case-insensitive)."""

    @abstractmethod
    async def save_game(self, game: Game) -> None:
        """Insert or replace a game together with its players."""

    @abstractmethod
    async def save_player(self, game_id: str, player: Player) -> None:
        """Update a single player's hand and elimination flag."""

    @abstractmethod
    async def append_log_entry(self, entry: PlayLogEntry) -> None:
        """Append an entry to the play log."""

    @abstractmethod
    async def count_players(self, game_id: str) -> int:
        """Count players seated in a game."""

    @abstractmethod
    async def list_log_entries(self, game_id: str) -> list[PlayLogEntry]:
        """Return a game's play log, oldest first."""

    async def commit(self, game: Game, log_entries: Sequence[PlayLogEntry] = ()) -> None:
        """Persist the result of one operation.

        The default writes the log entries, then the game.
        """
        for entry in log_entries:
            await self.append_log_entry(entry)
        await self.save_game(game)


class InMemoryGameRepository(BaseGameRepository):
    """Process-local storage guarded by a single asyncio lock."""

    def __init__(self) -> None:
        """Initialize repository."""
        self._games: dict[str, dict[str, Any]] = {}
        self._codes: dict[str, str] = {}  # code -> game_id
        self._log: dict[str, list[dict[str, Any]]] = {}
        self._lock = asyncio.Lock()

    async def load_game(self, game_id: str) -> Game | None:
        async with self._lock:
            doc = self._games.get(game_id)
            return deserialize_game(doc) if doc else None

    async def find_by_code(self, code: str) -> Game | None:
        async with self._lock:
            game_id = self._codes.get(normalize_game_code(code))
            doc = self._games.get(game_id) if game_id else None
            return deserialize_game(doc) if doc else None

    def _store(self, game: Game) -> None:
        owner = self._codes.get(game.code)
        if owner is not None and owner != game.id:
            raise PersistenceError(f"Game code {game.code} is already in use")
        self._games[game.id] = serialize_game(game)
        self._codes[game.code] = game.id

    async def save_game(self, game: Game) -> None:
        async with self._lock:
            self._store(game)

    async def save_player(self, game_id: str, player: Player) -> None:
        async with self._lock:
            doc = self._games.get(game_id)
            if doc is None:
                raise PersistenceError(f"Game {game_id} not found")
            for index, stored in enumerate(doc["players"]):
                if stored["id"] == player.id:
                    doc["players"][index] = serialize_player(player)
                    return
            raise PersistenceError(f"Player {player.id} not found in game {game_id}")

    async def append_log_entry(self, entry: PlayLogEntry) -> None:
        async with self._lock:
            self._log.setdefault(entry.game_id, []).append(serialize_log_entry(entry))

    async def count_players(self, game_id: str) -> int:
        async with self._lock:
            doc = self._games.get(game_id)
            return len(doc["players"]) if doc else 0

    async def list_log_entries(self, game_id: str) -> list[PlayLogEntry]:
        async with self._lock:
            return [deserialize_log_entry(doc) for doc in self._log.get(game_id, [])]

    async def commit(self, game: Game, log_entries: Sequence[PlayLogEntry] = ()) -> None:
        """Apply the game and its log entries together, or not at all."""
        async with self._lock:
            self._store(game)
            for entry in log_entries:
                self._log.setdefault(entry.game_id, []).append(serialize_log_entry(entry))


class MongoGameRepository(BaseGameRepository):
    """Repository for game persistence using MongoDB.

    Games are single documents with their players embedded, so a game and its
    hands are always written atomically. Plays go to the ``play_log``
    collection.
    """

    def __init__(self) -> None:
        """Initialize repository."""
        self.client: AsyncIOMotorClient[dict[str, Any]] | None = None
        self.db: AsyncIOMotorDatabase[dict[str, Any]] | None = None

    async def connect(self) -> None:
        """Connect to MongoDB and create indexes."""
        try:
            self.client = AsyncIOMotorClient(
                settings.mongodb_uri,
                serverSelectionTimeoutMS=2000,  # 2 second timeout
            )
            self.db = self.client[settings.mongodb_database]

            # Verify connection
            await self.client.admin.command("ping")
            logger.info("Connected to MongoDB: %s", settings.mongodb_database)

            await self._create_indexes()

        except PyMongoError:
            logger.warning("MongoDB not available")
            raise

    async def _create_indexes(self) -> None:
        """Create indexes for efficient queries."""
        if self.db is None:
            return

        try:
            # Join codes must be unique; collisions surface as a failed create
            await self.db.games.create_index("code", unique=True)
            await self.db.games.create_index("status")
            await self.db.play_log.create_index(
                [("game_id", ASCENDING), ("timestamp", ASCENDING)]
            )
            await self.db.games.create_index([("created_at", DESCENDING)])

            logger.info("MongoDB indexes created successfully")
        except PyMongoError:
            logger.exception("Error creating indexes")

    async def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    def _database(self) -> AsyncIOMotorDatabase[dict[str, Any]]:
        if self.db is None:
            raise PersistenceError("MongoDB repository is not connected")
        return self.db

    async def load_game(self, game_id: str) -> Game | None:
        try:
            result = await self._database().games.find_one({"_id": game_id})
        except PyMongoError as e:
            raise PersistenceError(f"Error finding game {game_id}") from e
        return deserialize_game(result) if result else None

    async def find_by_code(self, code: str) -> Game | None:
        try:
            result = await self._database().games.find_one({"code": normalize_game_code(code)})
        except PyMongoError as e:
            raise PersistenceError(f"Error finding game by code {code}") from e
        return deserialize_game(result) if result else None

    async def save_game(self, game: Game) -> None:
        try:
            result = await self._database().games.replace_one(
                {"_id": game.id},
                serialize_game(game),
                upsert=True,
            )
        except PyMongoError as e:
            raise PersistenceError(f"Error saving game {game.id}") from e
        if not result.acknowledged:
            raise PersistenceError(f"Save of game {game.id} was not acknowledged")
        logger.debug("Game %s saved to database", game.id)

    async def save_player(self, game_id: str, player: Player) -> None:
        try:
            result = await self._database().games.update_one(
                {"_id": game_id, "players.id": player.id},
                {"$set": {"players.$": serialize_player(player)}},
            )
        except PyMongoError as e:
            raise PersistenceError(f"Error saving player {player.id}") from e
        if result.matched_count == 0:
            raise PersistenceError(f"Player {player.id} not found in game {game_id}")

    async def append_log_entry(self, entry: PlayLogEntry) -> None:
        try:
            await self._database().play_log.insert_one(serialize_log_entry(entry))
        except PyMongoError as e:
            raise PersistenceError(f"Error logging play in game {entry.game_id}") from e

    async def count_players(self, game_id: str) -> int:
        try:
            doc = await self._database().games.find_one({"_id": game_id}, {"players.id": 1})
        except PyMongoError as e:
            raise PersistenceError(f"Error counting players in game {game_id}") from e
        return len(doc.get("players", [])) if doc else 0

    async def list_log_entries(self, game_id: str) -> list[PlayLogEntry]:
        try:
            cursor = self._database().play_log.find({"game_id": game_id}).sort(
                "timestamp", ASCENDING
            )
            return [deserialize_log_entry(doc) async for doc in cursor]
        except PyMongoError as e:
            raise PersistenceError(f"Error reading play log of game {game_id}") from e

    async def commit(self, game: Game, log_entries: Sequence[PlayLogEntry] = ()) -> None:
        """Persist one operation, inside a transaction when the server supports it."""
        if not settings.mongodb_transactions or self.client is None:
            await super().commit(game, log_entries)
            return

        db = self._database()
        try:
            async with await self.client.start_session() as session:
                async with session.start_transaction():
                    if log_entries:
                        await db.play_log.insert_many(
                            [serialize_log_entry(e) for e in log_entries], session=session
                        )
                    await db.games.replace_one(
                        {"_id": game.id}, serialize_game(game), upsert=True, session=session
                    )
        except PyMongoError as e:
            raise PersistenceError(f"Error committing game {game.id}") from e
