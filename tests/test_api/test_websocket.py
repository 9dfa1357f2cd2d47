"""Tests for the WebSocket connection manager."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import WebSocketDisconnect

from game40.api.responses import ServerMessage
from game40.api.websocket import ConnectionManager
from game40.models.enums import EventType

pytestmark = pytest.mark.anyio


@pytest.fixture
def manager():
    return ConnectionManager(send_timeout=0.05)


def broadcast_message(game_id="g1"):
    return ServerMessage(EventType.CARD_PLAYED, game_id, {"currentTotal": 3})


class TestRegistry:
    """Tests for registering and removing channels."""

    async def test_register(self, manager, fake_socket_factory):
        await manager.register("g1", "p1", fake_socket_factory())
        assert manager.is_connected("g1", "p1")
        assert manager.connection_count("g1") == 1

    async def test_unregister_removes_empty_game(self, manager, fake_socket_factory):
        await manager.register("g1", "p1", fake_socket_factory())

        assert await manager.unregister("g1", "p1")

        assert "g1" not in manager.active_connections
        assert not await manager.unregister("g1", "p1")

    async def test_reconnect_replaces_channel(self, manager, fake_socket_factory):
        old, new = fake_socket_factory(), fake_socket_factory()
        await manager.register("g1", "p1", old)
        await manager.register("g1", "p1", new)

        await manager.deliver(broadcast_message())

        assert old.sent == []
        assert len(new.sent) == 1

    async def test_stale_socket_cannot_evict_newer_one(self, manager, fake_socket_factory):
        old, new = fake_socket_factory(), fake_socket_factory()
        await manager.register("g1", "p1", old)
        await manager.register("g1", "p1", new)

        assert not await manager.unregister("g1", "p1", old)
        assert manager.is_connected("g1", "p1")


class TestDelivery:
    """Tests for best-effort delivery."""

    async def test_broadcast_reaches_only_that_game(self, manager, fake_socket_factory):
        a, b, other = fake_socket_factory(), fake_socket_factory(), fake_socket_factory()
        await manager.register("g1", "p1", a)
        await manager.register("g1", "p2", b)
        await manager.register("g2", "p3", other)

        assert await manager.broadcast(broadcast_message(), "g1") == 2

        assert a.sent == b.sent == [{"type": "cardPlayed", "payload": {"currentTotal": 3}}]
        assert other.sent == []

    async def test_addressed_message(self, manager, fake_socket_factory):
        a, b = fake_socket_factory(), fake_socket_factory()
        await manager.register("g1", "p1", a)
        await manager.register("g1", "p2", b)

        await manager.deliver(ServerMessage(EventType.PONG, "g1", {}, receiver_id="p2"))

        assert a.sent == []
        assert b.types() == ["pong"]

    async def test_send_to_absent_player(self, manager):
        assert not await manager.send_to(broadcast_message(), "g1", "nobody")

    async def test_broadcast_to_empty_game(self, manager):
        assert await manager.broadcast(broadcast_message(), "g1") == 0

    async def test_failing_socket_dropped(self, manager, fake_socket_factory):
        good, bad = fake_socket_factory(), fake_socket_factory(fail=True)
        await manager.register("g1", "good", good)
        await manager.register("g1", "bad", bad)

        assert await manager.broadcast(broadcast_message(), "g1") == 1

        assert len(good.sent) == 1
        assert not manager.is_connected("g1", "bad")
        assert manager.is_connected("g1", "good")

    async def test_slow_socket_does_not_block_others(self, manager, fake_socket_factory):
        fast, slow = fake_socket_factory(), fake_socket_factory(delay=1.0)
        await manager.register("g1", "fast", fast)
        await manager.register("g1", "slow", slow)

        assert await manager.broadcast(broadcast_message(), "g1") == 1

        assert len(fast.sent) == 1
        assert slow.sent == []
        assert not manager.is_connected("g1", "slow")


class TestReceiveLoop:
    """Tests for commands read from a player's socket."""

    async def test_commands_forwarded_until_disconnect(self, manager):
        handler = MagicMock()
        handler.handle_command = AsyncMock()
        manager.set_game_handler(handler)

        websocket = MagicMock()
        websocket.receive_text = AsyncMock(
            side_effect=[
                '{"command": "playCard", "content": {"card": {"suit": "clubs", "rank": "4"}}}',
                "[1, 2]",
                WebSocketDisconnect(code=1000),
            ]
        )
        await manager.register("g1", "p1", websocket)

        await manager.handle_player_message(websocket, "g1", "p1")

        calls = handler.handle_command.await_args_list
        assert calls[0].args == (
            "g1",
            "p1",
            "playCard",
            {"card": {"suit": "clubs", "rank": "4"}},
        )
        assert calls[1].args == ("g1", "p1", "", {})
        assert not manager.is_connected("g1", "p1")
