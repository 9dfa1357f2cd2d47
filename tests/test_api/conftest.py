"""Pytest configuration for API tests."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import pytest

from game40.api.game_handler import game_handler
from game40.api.websocket import websocket_manager
from game40.models.game import Game
from game40.repositories.game_repository import InMemoryGameRepository


class FakeSocket:
    """Stands in for a WebSocket and records what was sent to it."""

    def __init__(self, fail: bool = False, delay: float = 0.0) -> None:
        self.sent: list[dict[str, Any]] = []
        self.fail = fail
        self.delay = delay

    async def send_json(self, data: dict[str, Any]) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)

    def types(self) -> list[str]:
        return [message["type"] for message in self.sent]

    def last(self, message_type: str) -> dict[str, Any]:
        for message in reversed(self.sent):
            if message["type"] == message_type:
                return message["payload"]
        raise AssertionError(f"No {message_type} message in {self.types()}")


class InterleavingRepository(InMemoryGameRepository):
    """Runs a one-shot callback right after the next load, before the caller resumes."""

    def __init__(self) -> None:
        super().__init__()
        self.after_next_load: Callable[[], Awaitable[Any]] | None = None

    async def load_game(self, game_id: str) -> Game | None:
        game = await super().load_game(game_id)
        hook, self.after_next_load = self.after_next_load, None
        if hook is not None:
            await hook()
        return game


@pytest.fixture
def fake_socket_factory():
    return FakeSocket


@pytest.fixture
def interleaving_repository():
    return InterleavingRepository()


@pytest.fixture(autouse=True)
def reset_global_services():
    """Give the global dispatcher fresh storage and no connections per test."""
    game_handler.set_services(repository=InMemoryGameRepository(), publisher=None)
    websocket_manager.active_connections.clear()
    websocket_manager._lock = asyncio.Lock()

    yield

    websocket_manager.active_connections.clear()
