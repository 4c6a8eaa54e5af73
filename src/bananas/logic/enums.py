"""
String enum definitions for room and game concepts.
"""

from enum import Enum


class RoomStatus(str, Enum):
    """Lifecycle status of a room."""

    WAITING = "waiting"
    PLAYING = "playing"
    INSPECTING = "inspecting"


class GameAction(str, Enum):
    """Actions dispatched from client to game service."""

    START = "start_game"
    PEEL = "peel"
    DUMP = "dump"
    BANANAS = "bananas"
    INSPECTION_VOTE = "inspection_vote"
    BOARD_STATE_UPDATE = "board_state_update"


class Vote(str, Enum):
    """A judge's verdict on an inspected board."""

    VALID = "valid"
    ROTTEN = "rotten"


class InspectionOutcome(str, Enum):
    """Result of evaluating the votes cast so far."""

    PENDING = "pending"
    WINNER = "winner"
    ROTTEN = "rotten"


class GameErrorCode(str, Enum):
    """Error codes sent to clients for rejected game actions."""

    HAND_SIZE_MISMATCH = "hand_size_mismatch"
    NOT_CONNECTED = "not_connected"
    POOL_TOO_SMALL = "pool_too_small"
    TILE_NOT_IN_HAND = "tile_not_in_hand"
    BANANAS_TOO_EARLY = "bananas_too_early"
    INVALID_BOARD = "invalid_board"
    SELF_VOTE = "self_vote"
    NOT_A_JUDGE = "not_a_judge"
    ALREADY_VOTED = "already_voted"
    INVALID_ACTION = "invalid_action"
    VALIDATION_ERROR = "validation_error"
    ROOM_LIMIT = "room_limit"
