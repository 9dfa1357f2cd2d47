"""Game constants for Game 40."""

# Game limits
MAX_PLAYERS = 13  # 13 * HAND_SIZE cards is the most one deck can deal
MIN_PLAYERS = 2
MAX_NAME_LENGTH = 50

# Card mechanics
BUST_LIMIT = 40  # A total above this busts the player who reached it
HAND_SIZE = 4
DECK_SIZE = 54

# Join codes
GAME_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"  # no I, O, 0 or 1
GAME_CODE_LENGTH = 6

# Publisher service
REDIS_CHANNEL_PREFIX = "game_events"
