"""Projects state machine results into player-facing messages.

Public events are broadcast with every hand reduced to a card count. Only
``gameStarted``, ``newRound`` and ``gameState`` carry cards, and each of those
messages is addressed to a single player and holds that player's own hand.
"""

from typing import Any

from game40.api.responses import ServerMessage
from game40.models.enums import EventType
from game40.models.game import Game
from game40.models.player import Player
from game40.services.state_machine import Transition

# Events whose messages are addressed per player and include that player's hand
PRIVATE_EVENTS = frozenset({EventType.GAME_STARTED, EventType.NEW_ROUND})


def public_player_view(player: Player) -> dict[str, Any]:
    """Player as every seat may see it."""
    return {
        "id": player.id,
        "name": player.name,
        "eliminated": player.eliminated,
        "joinOrder": player.join_order,
        "cardCount": len(player.hand),
    }


def public_players_view(game: Game) -> list[dict[str, Any]]:
    return [public_player_view(p) for p in game.seated_players()]


def public_game_view(game: Game) -> dict[str, Any]:
    """Game as every seat may see it."""
    return {
        "id": game.id,
        "code": game.code,
        "status": game.status.value,
        "currentTotal": game.current_total,
        "currentPlayerId": game.current_player_id,
        "roundNumber": game.round_number,
        "players": public_players_view(game),
    }


def hand_view(player: Player) -> list[dict[str, Any]]:
    return [card.to_dict() for card in player.hand]


def project(transition: Transition) -> list[ServerMessage]:
    """Build the messages for a transition's notification, if it has one."""
    notice = transition.notification
    if notice is None:
        return []

    game = transition.game
    players = public_players_view(game)

    if notice.event in PRIVATE_EVENTS:
        messages = []
        for player in game.seated_players():
            payload: dict[str, Any] = {
                "players": players,
                "hand": hand_view(player),
                "currentPlayerId": game.current_player_id,
            }
            if notice.event == EventType.NEW_ROUND:
                payload["roundNumber"] = game.round_number
            messages.append(
                ServerMessage(
                    event=notice.event,
                    game_id=game.id,
                    payload=payload,
                    receiver_id=player.id,
                )
            )
        return messages

    if notice.event == EventType.PLAYER_JOINED:
        payload = {"players": players}
    elif notice.event == EventType.CARD_PLAYED:
        payload = {
            "playerId": notice.actor_id,
            "card": notice.card.to_dict() if notice.card else None,
            "currentTotal": game.current_total,
            "nextPlayerId": game.current_player_id,
            "players": players,
        }
    elif notice.event == EventType.ROUND_END:
        eliminated = game.get_player(notice.eliminated_player_id)
        payload = {
            "players": players,
            "eliminatedPlayer": public_player_view(eliminated) if eliminated else None,
        }
    elif notice.event == EventType.GAME_OVER:
        winner = game.get_winner()
        payload = {
            "players": players,
            "winnerId": winner.id if winner else None,
        }
    else:
        payload = {"players": players}

    return [ServerMessage(event=notice.event, game_id=game.id, payload=payload)]


def state_snapshot(game: Game, player_id: str) -> ServerMessage:
    """Full state for one player: the public view plus their own hand."""
    player = game.get_player(player_id)
    return ServerMessage(
        event=EventType.GAME_STATE,
        game_id=game.id,
        payload={
            "game": public_game_view(game),
            "hand": hand_view(player) if player else [],
        },
        receiver_id=player_id,
    )


def error_message(game_id: str, player_id: str, error: str, code: str | None) -> ServerMessage:
    """Rejection notice for a command sent over a player's socket."""
    return ServerMessage(
        event=EventType.ERROR,
        game_id=game_id,
        payload={"error": error, "code": code},
        receiver_id=player_id,
    )
