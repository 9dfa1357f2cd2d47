"""Game 40 rules as a pure state machine.

Every operation takes a ``Game`` snapshot and returns a ``Transition``: a
deep copy of the snapshot with the operation applied, plus the effects the
caller has to carry out (persist the game, append log entries, notify
players). The input snapshot is never mutated and nothing here performs I/O,
so a rejected operation simply raises a ``GameError`` and leaves no trace.
"""

import copy
import random
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

from game40.constants import BUST_LIMIT, HAND_SIZE, MAX_NAME_LENGTH, MAX_PLAYERS, MIN_PLAYERS
from game40.errors import (
    CardNotInHandError,
    GameAlreadyStartedError,
    GameFullError,
    GameNotFoundError,
    InsufficientPlayersError,
    InvalidGameStateError,
    InvalidInputError,
    NotHostError,
    NotYourTurnError,
)
from game40.models.card import Card
from game40.models.deck import Deck
from game40.models.enums import EventType, GameStatus
from game40.models.game import Game, generate_game_code
from game40.models.play_log import PlayLogEntry
from game40.models.player import Player

if TYPE_CHECKING:
    from game40.config import Settings


@dataclass(frozen=True)
class GameRules:
    """Tunable limits of the game."""

    bust_limit: int = BUST_LIMIT
    hand_size: int = HAND_SIZE
    max_players: int = MAX_PLAYERS
    min_players: int = MIN_PLAYERS

    @classmethod
    def from_settings(cls, settings: "Settings") -> "GameRules":
        return cls(
            bust_limit=settings.bust_limit,
            hand_size=settings.hand_size,
            max_players=settings.max_players,
            min_players=settings.min_players,
        )


DEFAULT_RULES = GameRules()


@dataclass(frozen=True)
class SaveGame:
    """Persist the game snapshot, players included."""

    game: Game


@dataclass(frozen=True)
class AppendLog:
    """Append an entry to the play log."""

    entry: PlayLogEntry


@dataclass(frozen=True)
class Notify:
    """Tell players what happened.

    Attributes:
        event: Notification type
        actor_id: Player who caused the event
        card: Card played, for play events
        eliminated_player_id: Player knocked out by a bust

    """

    event: EventType
    actor_id: str | None = None
    card: Card | None = None
    eliminated_player_id: str | None = None


Effect = Union[SaveGame, AppendLog, Notify]


@dataclass
class Transition:
    """Result of a successful operation."""

    game: Game
    effects: list[Effect] = field(default_factory=list)
    player_id: str | None = None  # Player created by create_game / join_game

    @property
    def notification(self) -> Notify | None:
        for effect in self.effects:
            if isinstance(effect, Notify):
                return effect
        return None

    @property
    def log_entries(self) -> list[PlayLogEntry]:
        return [effect.entry for effect in self.effects if isinstance(effect, AppendLog)]


def _new_id() -> str:
    return str(uuid.uuid4())


def _clean_name(name: str | None) -> str:
    if not isinstance(name, str) or not name.strip():
        raise InvalidInputError("Player name is required")
    cleaned = name.strip()
    if len(cleaned) > MAX_NAME_LENGTH:
        raise InvalidInputError(f"Player name must be at most {MAX_NAME_LENGTH} characters")
    return cleaned


def _deal(players: list[Player], rules: GameRules, rng: random.Random | None) -> None:
    """Shuffle a fresh deck and deal hands to players in the given order."""
    deck = Deck.build().shuffled(rng)
    hands = deck.deal(len(players), rules.hand_size)
    for player, hand in zip(players, hands, strict=True):
        player.hand = hand


def create_game(
    host_name: str,
    *,
    rng: random.Random | None = None,
) -> Transition:
    """Open a new game in the lobby with its host seated at join order 0."""
    name = _clean_name(host_name)

    host = Player(id=_new_id(), name=name, join_order=0)
    game = Game(id=_new_id(), code=generate_game_code(rng), players=[host])

    return Transition(game=game, effects=[SaveGame(game)], player_id=host.id)


def join_game(
    game: Game | None,
    player_name: str,
    *,
    rules: GameRules = DEFAULT_RULES,
) -> Transition:
    """Seat a new player at the end of the table."""
    name = _clean_name(player_name)

    if game is None:
        raise GameNotFoundError()
    if game.status != GameStatus.LOBBY:
        raise GameAlreadyStartedError()
    if len(game.players) >= rules.max_players:
        raise GameFullError()

    next_game = copy.deepcopy(game)
    player = Player(id=_new_id(), name=name, join_order=len(next_game.players))
    next_game.players.append(player)

    return Transition(
        game=next_game,
        effects=[SaveGame(next_game), Notify(EventType.PLAYER_JOINED, actor_id=player.id)],
        player_id=player.id,
    )


def start_game(
    game: Game,
    requesting_player_id: str,
    *,
    rules: GameRules = DEFAULT_RULES,
    rng: random.Random | None = None,
) -> Transition:
    """Deal the first round. Only the host may start, and only from the lobby."""
    host = game.host
    if host is None or host.id != requesting_player_id:
        raise NotHostError()
    if game.status != GameStatus.LOBBY:
        raise GameAlreadyStartedError()
    if len(game.players) < rules.min_players:
        raise InsufficientPlayersError(f"Need at least {rules.min_players} players")

    next_game = copy.deepcopy(game)
    _deal(next_game.seated_players(), rules, rng)

    next_game.status = GameStatus.PLAYING
    next_game.current_total = 0
    next_game.current_player_id = host.id

    return Transition(
        game=next_game,
        effects=[SaveGame(next_game), Notify(EventType.GAME_STARTED, actor_id=host.id)],
    )


def _wild_target(game: Game, actor_id: str, target_player_id: str | None) -> Player | None:
    """Return the redirect target of a wild card, or None if it cannot take the turn."""
    if not target_player_id or target_player_id == actor_id:
        return None
    target = game.get_player(target_player_id)
    if target is None or target.eliminated:
        return None
    return target


def play_card(
    game: Game,
    player_id: str,
    card: Card,
    target_player_id: str | None = None,
    *,
    rules: GameRules = DEFAULT_RULES,
) -> Transition:
    """Play a card from the current player's hand.

    A total above the bust limit eliminates the player and ends the round
    (or the game, when only one player is left). Otherwise the turn passes
    to the wild card's target when one is valid, else to the next player
    still in the game.
    """
    if game.status != GameStatus.PLAYING:
        raise InvalidGameStateError()
    if player_id != game.current_player_id:
        raise NotYourTurnError()

    current = game.get_player(player_id)
    if current is None or current.find_card(card) is None:
        raise CardNotInHandError()

    next_game = copy.deepcopy(game)
    player = next_game.get_player(player_id)
    played = player.remove_card(card)
    new_total = next_game.current_total + played.value

    entry = PlayLogEntry(
        game_id=next_game.id,
        player_id=player_id,
        card=played,
        total_after=new_total,
        round_number=next_game.round_number,
    )
    effects: list[Effect] = [AppendLog(entry), SaveGame(next_game)]

    if new_total > rules.bust_limit:
        player.eliminate()
        # Nobody keeps cards once the round is over
        for other in next_game.players:
            other.clear_hand()

        next_game.current_total = 0
        next_game.current_player_id = None
        next_game.status = GameStatus.ROUND_END
        event = EventType.ROUND_END
        if len(next_game.active_players()) == 1:
            next_game.status = GameStatus.FINISHED
            event = EventType.GAME_OVER

        effects.append(
            Notify(event, actor_id=player_id, card=played, eliminated_player_id=player_id)
        )
        return Transition(game=next_game, effects=effects)

    next_player = None
    if played.is_wild:
        next_player = _wild_target(next_game, player_id, target_player_id)
    if next_player is None:
        next_player = next_game.next_active_player_after(player_id)

    next_game.current_total = new_total
    next_game.current_player_id = next_player.id if next_player else player_id

    effects.append(Notify(EventType.CARD_PLAYED, actor_id=player_id, card=played))
    return Transition(game=next_game, effects=effects)


def next_round(
    game: Game,
    *,
    rules: GameRules = DEFAULT_RULES,
    rng: random.Random | None = None,
) -> Transition:
    """Redeal to the players still in the game and start the next round."""
    if game.status != GameStatus.ROUND_END:
        raise InvalidGameStateError()

    active_count = len(game.active_players())
    if active_count < rules.min_players:
        raise InsufficientPlayersError("Not enough players")

    next_game = copy.deepcopy(game)
    for player in next_game.players:
        player.clear_hand()
    active = next_game.active_players()
    _deal(active, rules, rng)

    next_game.current_total = 0
    next_game.current_player_id = active[0].id
    next_game.round_number += 1
    next_game.status = GameStatus.PLAYING

    return Transition(
        game=next_game,
        effects=[SaveGame(next_game), Notify(EventType.NEW_ROUND)],
    )
