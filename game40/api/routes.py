"""API routes."""

from typing import Any

from fastapi import APIRouter, HTTPException, Query, WebSocket

from game40.api.game_handler import game_handler
from game40.api.responses import (
    CreateGameRequest,
    JoinGameRequest,
    NextRoundRequest,
    PlayCardRequest,
    StartGameRequest,
)
from game40.api.websocket import websocket_manager
from game40.errors import PersistenceError

router = APIRouter()

# Close codes for refused WebSocket connections
WS_MISSING_PARAMS = 4000
WS_UNKNOWN_PLAYER = 4003
WS_UNKNOWN_GAME = 4004


@router.post("/api/games/create")
async def create_game(request: CreateGameRequest) -> dict[str, Any]:
    """Create a new game with the caller as host."""
    return await game_handler.create_game(request.player_name)


@router.post("/api/games/join")
async def join_game(request: JoinGameRequest) -> dict[str, Any]:
    """Join a game in its lobby using the 6-character code."""
    return await game_handler.join_game(request.game_code, request.player_name)


@router.post("/api/games/{game_id}/start")
async def start_game(game_id: str, request: StartGameRequest) -> dict[str, Any]:
    """Deal the first round. Only the host may start the game."""
    return await game_handler.start_game(game_id, request.player_id)


@router.post("/api/games/{game_id}/play")
async def play_card(game_id: str, request: PlayCardRequest) -> dict[str, Any]:
    """Play a card from the current player's hand."""
    return await game_handler.play_card(
        game_id,
        request.player_id,
        request.card.model_dump(),
        request.target_player_id,
    )


@router.post("/api/games/{game_id}/next-round")
async def next_round(game_id: str, _request: NextRoundRequest | None = None) -> dict[str, Any]:
    """Start the next round after a bust."""
    return await game_handler.next_round(game_id)


@router.get("/api/games/{game_id}")
async def get_game(game_id: str) -> dict[str, Any]:
    """Get the public state of a game (no hands).

    Args:
        game_id: Game identifier

    """
    try:
        view = await game_handler.get_game_view(game_id)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail="Game storage unavailable") from e

    if view is None:
        raise HTTPException(status_code=404, detail="Game not found")
    return view


@router.websocket("/ws")
async def game_socket(
    websocket: WebSocket,
    game_id: str = Query(default="", alias="gameId"),
    player_id: str = Query(default="", alias="playerId"),
) -> None:
    """WebSocket channel for a seated player.

    The player receives their private state on connect, then every event of
    the game. Commands may also be sent over the socket.
    """
    # Must accept before closing to avoid HTTP 403
    await websocket.accept()

    if not game_id or not player_id:
        await websocket.close(code=WS_MISSING_PARAMS, reason="gameId and playerId required")
        return

    try:
        game = await game_handler.repository.load_game(game_id)
    except PersistenceError:
        game = None
    if game is None:
        await websocket.close(code=WS_UNKNOWN_GAME, reason="Game not found")
        return
    if game.get_player(player_id) is None:
        await websocket.close(code=WS_UNKNOWN_PLAYER, reason="Player not in game")
        return

    # Register before snapshotting so no event can fall between the two;
    # sync_state reloads the game under its lock
    await websocket_manager.register(game_id, player_id, websocket)
    await game_handler.sync_state(game_id, player_id)

    await websocket_manager.handle_player_message(websocket, game_id, player_id)
