"""Game errors raised by the state machine and the dispatcher.

Every error is recoverable: the request that triggered it is rejected and the
game carries on unchanged.
"""

from enum import StrEnum


class ErrorCode(StrEnum):
    """Error codes for i18n translation on the frontend."""

    INVALID_INPUT = "error.invalidInput"
    GAME_NOT_FOUND = "error.gameNotFound"
    GAME_ALREADY_STARTED = "error.gameAlreadyStarted"
    GAME_IS_FULL = "error.gameIsFull"
    NOT_HOST = "error.notHost"
    NOT_ENOUGH_PLAYERS = "error.notEnoughPlayers"
    INVALID_GAME_STATE = "error.invalidGameState"
    NOT_YOUR_TURN = "error.notYourTurn"
    CARD_NOT_IN_HAND = "error.cardNotInHand"
    INSUFFICIENT_CARDS = "error.insufficientCards"
    PERSISTENCE = "error.persistence"


class GameError(Exception):
    """Base exception for game-related errors."""

    code: ErrorCode = ErrorCode.INVALID_INPUT
    default_message = "Invalid request"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(f"[{self.code.value}] {self.message}")


class InvalidInputError(GameError):
    code = ErrorCode.INVALID_INPUT
    default_message = "Invalid input"


class GameNotFoundError(GameError):
    code = ErrorCode.GAME_NOT_FOUND
    default_message = "Game not found"


class GameAlreadyStartedError(GameError):
    code = ErrorCode.GAME_ALREADY_STARTED
    default_message = "Game already started"


class GameFullError(GameError):
    code = ErrorCode.GAME_IS_FULL
    default_message = "Game is full"


class NotHostError(GameError):
    code = ErrorCode.NOT_HOST
    default_message = "Only host can start"


class InsufficientPlayersError(GameError):
    code = ErrorCode.NOT_ENOUGH_PLAYERS
    default_message = "Need at least 2 players"


class InvalidGameStateError(GameError):
    code = ErrorCode.INVALID_GAME_STATE
    default_message = "Invalid game state"


class NotYourTurnError(GameError):
    code = ErrorCode.NOT_YOUR_TURN
    default_message = "Not your turn"


class CardNotInHandError(GameError):
    code = ErrorCode.CARD_NOT_IN_HAND
    default_message = "Card not in hand"


class InsufficientCardsError(GameError):
    code = ErrorCode.INSUFFICIENT_CARDS
    default_message = "Not enough cards in the deck"


class PersistenceError(Exception):
    """Raised by repositories when the backing store rejects an operation."""
