"""Typed domain exceptions for game rule violations.

All domain-level rule violations use subclasses of GameRuleError
rather than raw ValueError. The game service catches them at its boundary
and converts them into an error event addressed to the acting player only,
leaving the stored room state untouched.
"""

from bananas.logic.enums import GameErrorCode


class GameRuleError(Exception):
    """Base exception for game rule violations.

    Subclasses set ``code`` so the service can report a stable error code
    next to the human-readable message.
    """

    code: GameErrorCode = GameErrorCode.INVALID_ACTION

    def __init__(self, message: str, *, code: GameErrorCode | None = None) -> None:
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(message)


class HandSizeMismatchError(GameRuleError):
    """Submitted board does not hold exactly the tiles in the player's hand."""

    code = GameErrorCode.HAND_SIZE_MISMATCH


class InvalidBoardError(GameRuleError):
    """Submitted board is malformed or not a connected grid."""

    code = GameErrorCode.INVALID_BOARD


class InsufficientTilesError(GameRuleError):
    """The pool cannot supply the number of tiles the rule requires."""

    code = GameErrorCode.POOL_TOO_SMALL


class TileNotInHandError(GameRuleError):
    """Dumped letter is not in the player's hand."""

    code = GameErrorCode.TILE_NOT_IN_HAND


class BananasTooEarlyError(GameRuleError):
    """Bananas called while the pool still holds enough tiles for a peel."""

    code = GameErrorCode.BANANAS_TOO_EARLY


class InvalidVoteError(GameRuleError):
    """Vote rejected: self vote, non-judge, or duplicate."""


class StaleActionError(Exception):
    """Action no longer applies to the room's current state.

    Raised for the expected races of a turnless game (a peel that arrives
    after someone called bananas, an action from an eliminated player).
    The service treats it as a no-op and emits nothing.
    """


class RoomLimitError(GameRuleError):
    """A new room was requested while the server is at its room limit."""

    code = GameErrorCode.ROOM_LIMIT
