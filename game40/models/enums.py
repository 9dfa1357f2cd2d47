"""Enums for the game."""

from enum import Enum


class GameStatus(str, Enum):
    """Game states during the lifecycle."""

    LOBBY = "lobby"
    PLAYING = "playing"
    ROUND_END = "roundEnd"
    FINISHED = "finished"


class Suit(str, Enum):
    """Card suits. WILD only appears on the two wild cards."""

    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"
    WILD = "wild"


class Rank(str, Enum):
    """Card ranks in canonical deck order."""

    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"
    WILD = "WILD"


class EventType(str, Enum):
    """Notification types sent to players."""

    PLAYER_JOINED = "playerJoined"
    GAME_STARTED = "gameStarted"
    CARD_PLAYED = "cardPlayed"
    ROUND_END = "roundEnd"
    GAME_OVER = "gameOver"
    NEW_ROUND = "newRound"
    GAME_STATE = "gameState"  # Private snapshot on (re)attach
    ERROR = "error"
    PONG = "pong"


class Command(str, Enum):
    """WebSocket commands from clients."""

    START_GAME = "startGame"
    PLAY_CARD = "playCard"
    NEXT_ROUND = "nextRound"
    SYNC_STATE = "syncState"
    PING = "PING"


STANDARD_SUITS = (Suit.HEARTS, Suit.DIAMONDS, Suit.CLUBS, Suit.SPADES)
STANDARD_RANKS = tuple(rank for rank in Rank if rank is not Rank.WILD)
