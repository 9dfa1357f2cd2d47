"""Redis publisher service for game messages.

Provides pub/sub functionality for multi-instance scaling. When several
backend instances serve the same game, each outbound message is published to
Redis so the instances holding the other players' sockets can deliver it too.
"""

import asyncio
import contextlib
import json
import logging
import uuid
from collections.abc import Callable, Coroutine
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from game40.config import settings
from game40.constants import REDIS_CHANNEL_PREFIX

logger = logging.getLogger(__name__)

# Type for relay handlers: async def handler(game_id, message)
RelayHandler = Callable[[str, dict[str, Any]], Coroutine[Any, Any, None]]


def channel_for(game_id: str) -> str:
    return f"{REDIS_CHANNEL_PREFIX}:{game_id}"


class PublisherService:
    """Publishes and subscribes to game messages via Redis pub/sub."""

    def __init__(self) -> None:
        """Initialize publisher service."""
        self.redis_client: redis.Redis | None = None
        self.pubsub: redis.client.PubSub | None = None
        self._handler: RelayHandler | None = None
        self._subscriber_task: asyncio.Task[None] | None = None
        self._running = False
        self.instance_id = f"instance_{uuid.uuid4().hex[:12]}"

    async def connect(self) -> None:
        """Connect to Redis and verify connection."""
        try:
            self.redis_client = redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
            )
            await self.redis_client.ping()
            logger.info("Connected to Redis (instance: %s)", self.instance_id)
        except (RedisError, TimeoutError, OSError):
            logger.warning("Redis not available, running without pub/sub")
            self.redis_client = None

    async def publish(self, game_id: str, message: dict[str, Any]) -> bool:
        """Publish a message for a game.

        Args:
            game_id: Game identifier
            message: Relay payload

        Returns:
            True if successful

        """
        if not self.redis_client:
            return False

        try:
            envelope = {"_instance_id": self.instance_id, "message": message}
            await self.redis_client.publish(channel_for(game_id), json.dumps(envelope))
            logger.debug("Published message to channel %s", channel_for(game_id))
        except (RedisError, TypeError):
            logger.exception("Error publishing message")
            return False
        else:
            return True

    async def start_subscriber(self, handler: RelayHandler) -> None:
        """Start the background subscriber task.

        Args:
            handler: Called with (game_id, message) for messages published by
                     other instances
        """
        if not self.redis_client or self._running:
            return

        self._handler = handler
        self._running = True
        self.pubsub = self.redis_client.pubsub()
        await self.pubsub.psubscribe(f"{REDIS_CHANNEL_PREFIX}:*")

        self._subscriber_task = asyncio.create_task(self._subscriber_loop())
        logger.info("Redis subscriber started")

    async def _subscriber_loop(self) -> None:
        """Background loop processing incoming messages."""
        while self._running and self.pubsub:
            try:
                message = await self.pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=1.0,
                )
                if message and message["type"] == "pmessage":
                    await self.handle_message(message)

            except asyncio.CancelledError:
                break
            except (RedisError, ConnectionError):
                logger.warning("Redis connection lost, retrying in 5s")
                await asyncio.sleep(5)

    async def handle_message(self, message: dict[str, Any]) -> None:
        """Process an incoming pub/sub message.

        Args:
            message: Redis pub/sub message
        """
        try:
            data = json.loads(message.get("data", "{}"))
        except json.JSONDecodeError:
            logger.warning("Invalid JSON in pub/sub message")
            return

        # Skip messages from our own instance
        if data.get("_instance_id") == self.instance_id:
            return

        channel = message.get("channel", "")
        game_id = channel.split(":", 1)[1] if ":" in channel else ""
        if not game_id or self._handler is None:
            return

        try:
            await self._handler(game_id, data.get("message", {}))
        except (KeyError, ValueError):
            logger.warning("Malformed relay message for game %s", game_id)

    async def stop_subscriber(self) -> None:
        """Stop the background subscriber task."""
        self._running = False

        if self._subscriber_task:
            self._subscriber_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._subscriber_task

        if self.pubsub:
            await self.pubsub.close()
            self.pubsub = None

        logger.info("Redis subscriber stopped")

    async def close(self) -> None:
        """Close Redis connection."""
        await self.stop_subscriber()

        if self.redis_client:
            await self.redis_client.close()
            logger.info("Redis connection closed")

    @property
    def is_connected(self) -> bool:
        """Check if Redis is connected."""
        return self.redis_client is not None
