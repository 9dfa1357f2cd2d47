"""Game domain models."""

from game40.models.card import Card
from game40.models.deck import Deck
from game40.models.enums import Command, EventType, GameStatus, Rank, Suit
from game40.models.game import Game
from game40.models.play_log import PlayLogEntry
from game40.models.player import Player

__all__ = [
    "Card",
    "Command",
    "Deck",
    "EventType",
    "Game",
    "GameStatus",
    "PlayLogEntry",
    "Player",
    "Rank",
    "Suit",
]
