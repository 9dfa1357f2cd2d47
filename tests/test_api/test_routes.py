"""Tests for API routes."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from game40.api.game_handler import game_handler
from game40.api.routes import router
from game40.api.websocket import websocket_manager


@pytest.fixture
def test_app():
    """Create a test FastAPI app without lifespan dependencies."""
    app = FastAPI()
    app.include_router(router)
    return app


@pytest.fixture
def client(test_app):
    """Create a test client."""
    with TestClient(test_app, raise_server_exceptions=False) as client:
        yield client


def create(client, name="Alice"):
    return client.post("/api/games/create", json={"playerName": name}).json()


def join(client, code, name="Bob"):
    return client.post("/api/games/join", json={"gameCode": code, "playerName": name}).json()


class TestLobby:
    """Tests for creating and joining games."""

    def test_create_game(self, client):
        response = client.post("/api/games/create", json={"playerName": "Alice"})
        assert response.status_code == 200

        data = response.json()
        assert data["success"]
        assert len(data["gameCode"]) == 6
        assert data["players"][0]["name"] == "Alice"
        assert "hand" not in data["players"][0]

    def test_create_game_without_name(self, client):
        data = client.post("/api/games/create", json={}).json()
        assert data == {
            "success": False,
            "error": "Player name is required",
            "code": "error.invalidInput",
        }

    def test_join_game(self, client):
        created = create(client)
        joined = join(client, created["gameCode"].lower())

        assert joined["success"]
        assert joined["gameId"] == created["gameId"]
        assert len(joined["players"]) == 2

    def test_join_unknown_game(self, client):
        data = join(client, "QQQQQQ")
        assert data["error"] == "Game not found"

    def test_snake_case_fields_accepted(self, client):
        data = client.post("/api/games/create", json={"player_name": "Alice"}).json()
        assert data["success"]


class TestPlay:
    """Tests for starting and playing through HTTP."""

    def test_start_requires_player_id(self, client):
        created = create(client)
        response = client.post(f"/api/games/{created['gameId']}/start", json={})
        assert response.status_code == 422

    def test_full_flow(self, client):
        created = create(client)
        game_id = created["gameId"]
        bob = join(client, created["gameCode"])["playerId"]

        start = client.post(f"/api/games/{game_id}/start", json={"playerId": created["playerId"]})
        assert start.json() == {"success": True}

        state = client.get(f"/api/games/{game_id}").json()
        assert state["status"] == "playing"
        assert state["currentPlayerId"] == created["playerId"]
        assert all(p["cardCount"] == 4 for p in state["players"])

        # Bob may not play out of turn
        rejected = client.post(
            f"/api/games/{game_id}/play",
            json={"playerId": bob, "card": {"suit": "hearts", "rank": 10}},
        ).json()
        assert rejected["error"] == "Not your turn"

    def test_play_requires_card(self, client):
        created = create(client)
        response = client.post(
            f"/api/games/{created['gameId']}/play", json={"playerId": created["playerId"]}
        )
        assert response.status_code == 422

    def test_next_round_in_lobby(self, client):
        created = create(client)
        data = client.post(f"/api/games/{created['gameId']}/next-round").json()
        assert data["code"] == "error.invalidGameState"

    def test_get_unknown_game(self, client):
        response = client.get("/api/games/missing")
        assert response.status_code == 404
        assert response.json()["detail"] == "Game not found"


class TestWebSocket:
    """Tests for the player WebSocket channel."""

    @pytest.mark.parametrize(
        ("query", "code"),
        [
            ("", 4000),
            ("?gameId=missing", 4000),
            ("?gameId=missing&playerId=p1", 4004),
        ],
    )
    def test_refused_connections(self, client, query, code):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(f"/ws{query}") as websocket:
                websocket.receive_json()
        assert exc_info.value.code == code

    def test_unknown_player(self, client):
        created = create(client)
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(
                f"/ws?gameId={created['gameId']}&playerId=stranger"
            ) as websocket:
                websocket.receive_json()
        assert exc_info.value.code == 4003

    def test_state_on_connect_then_events(self, client):
        created = create(client)
        game_id, alice = created["gameId"], created["playerId"]

        with client.websocket_connect(f"/ws?gameId={game_id}&playerId={alice}") as websocket:
            state = websocket.receive_json()
            assert state["type"] == "gameState"
            assert state["payload"]["game"]["status"] == "lobby"
            assert state["payload"]["hand"] == []
            assert websocket_manager.is_connected(game_id, alice)

            join(client, created["gameCode"])
            joined = websocket.receive_json()
            assert joined["type"] == "playerJoined"
            assert len(joined["payload"]["players"]) == 2

            client.post(f"/api/games/{game_id}/start", json={"playerId": alice})
            started = websocket.receive_json()
            assert started["type"] == "gameStarted"
            assert len(started["payload"]["hand"]) == 4

            websocket.send_json({"command": "PING"})
            assert websocket.receive_json()["type"] == "pong"

    def test_attach_while_game_starts(self, client, interleaving_repository):
        """A game started while a socket attaches still reaches that socket."""
        game_handler.set_services(repository=interleaving_repository, publisher=None)
        created = create(client)
        game_id, alice = created["gameId"], created["playerId"]
        bob = join(client, created["gameCode"])["playerId"]

        # The host starts right after the attach looks the game up
        interleaving_repository.after_next_load = lambda: game_handler.start_game(game_id, alice)

        with client.websocket_connect(f"/ws?gameId={game_id}&playerId={bob}") as websocket:
            state = websocket.receive_json()

        assert state["type"] == "gameState"
        assert state["payload"]["game"]["status"] == "playing"
        assert len(state["payload"]["hand"]) == 4

    def test_commands_over_socket(self, client):
        created = create(client)
        game_id, alice = created["gameId"], created["playerId"]
        join(client, created["gameCode"])

        with client.websocket_connect(f"/ws?gameId={game_id}&playerId={alice}") as websocket:
            websocket.receive_json()

            websocket.send_text("not json")
            error = websocket.receive_json()
            assert error["type"] == "error"
            assert error["payload"]["error"] == "Unknown command: "

            websocket.send_json({"command": "startGame"})
            assert websocket.receive_json()["type"] == "gameStarted"


def test_health():
    from game40.main import app

    with TestClient(app) as client:
        response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
