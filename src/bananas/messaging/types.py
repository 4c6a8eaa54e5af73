from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter

from bananas.logic.enums import GameAction, GameErrorCode, Vote
from bananas.logic.types import MAX_BOARD_TILES


class ClientMessageType(StrEnum):
    JOIN_ROOM = "join_room"
    LEAVE_ROOM = "leave_room"
    START_GAME = "start_game"
    PEEL = "peel"
    DUMP = "dump"
    BANANAS = "bananas"
    INSPECTION_VOTE = "inspection_vote"
    BOARD_STATE_UPDATE = "board_state_update"
    PING = "ping"


class SessionMessageType(StrEnum):
    ROOM_JOINED = "room_joined"
    ERROR = "error"
    PONG = "pong"


class SessionErrorCode(StrEnum):
    ALREADY_CONNECTED = "already_connected"
    INVALID_MESSAGE = "invalid_message"
    RATE_LIMITED = "rate_limited"
    ACTION_FAILED = "action_failed"


RoomId = Annotated[str, Field(min_length=1, max_length=100)]


class JoinRoomMessage(BaseModel):
    type: Literal[ClientMessageType.JOIN_ROOM] = ClientMessageType.JOIN_ROOM
    room_id: RoomId
    player_name: str | None = Field(default=None, max_length=50)
    rejoin_key: str | None = Field(default=None, max_length=200)


class LeaveRoomMessage(BaseModel):
    type: Literal[ClientMessageType.LEAVE_ROOM] = ClientMessageType.LEAVE_ROOM
    room_id: RoomId


class StartGameMessage(BaseModel):
    type: Literal[ClientMessageType.START_GAME] = ClientMessageType.START_GAME
    room_id: RoomId


class PeelMessage(BaseModel):
    type: Literal[ClientMessageType.PEEL] = ClientMessageType.PEEL
    room_id: RoomId
    board_tiles: list[Any] = Field(default_factory=list, max_length=MAX_BOARD_TILES)


class DumpMessage(BaseModel):
    type: Literal[ClientMessageType.DUMP] = ClientMessageType.DUMP
    room_id: RoomId
    letter: str = Field(min_length=1, max_length=1)
    client_tile_id: str | None = Field(default=None, max_length=200)


class BananasMessage(BaseModel):
    type: Literal[ClientMessageType.BANANAS] = ClientMessageType.BANANAS
    room_id: RoomId
    board_tiles: list[Any] = Field(default_factory=list, max_length=MAX_BOARD_TILES)


class InspectionVoteMessage(BaseModel):
    type: Literal[ClientMessageType.INSPECTION_VOTE] = ClientMessageType.INSPECTION_VOTE
    room_id: RoomId
    vote: Vote


class BoardStateUpdateMessage(BaseModel):
    type: Literal[ClientMessageType.BOARD_STATE_UPDATE] = ClientMessageType.BOARD_STATE_UPDATE
    room_id: RoomId
    tiles: list[Any] = Field(default_factory=list)


class PingMessage(BaseModel):
    type: Literal[ClientMessageType.PING] = ClientMessageType.PING


GameActionMessage = (
    StartGameMessage | PeelMessage | DumpMessage | BananasMessage | InspectionVoteMessage | BoardStateUpdateMessage
)

ClientMessage = JoinRoomMessage | LeaveRoomMessage | GameActionMessage | PingMessage

# client message type -> game action dispatched to the service
GAME_ACTIONS: dict[ClientMessageType, GameAction] = {
    ClientMessageType.START_GAME: GameAction.START,
    ClientMessageType.PEEL: GameAction.PEEL,
    ClientMessageType.DUMP: GameAction.DUMP,
    ClientMessageType.BANANAS: GameAction.BANANAS,
    ClientMessageType.INSPECTION_VOTE: GameAction.INSPECTION_VOTE,
    ClientMessageType.BOARD_STATE_UPDATE: GameAction.BOARD_STATE_UPDATE,
}


class RoomJoinedMessage(BaseModel):
    type: Literal[SessionMessageType.ROOM_JOINED] = SessionMessageType.ROOM_JOINED
    room_id: str
    player_id: str
    resumed: bool = False


class ErrorMessage(BaseModel):
    type: Literal[SessionMessageType.ERROR] = SessionMessageType.ERROR
    code: SessionErrorCode | GameErrorCode
    message: str
    room_id: str | None = None


class PongMessage(BaseModel):
    type: Literal[SessionMessageType.PONG] = SessionMessageType.PONG


_client_message_adapter = TypeAdapter(Annotated[ClientMessage, Field(discriminator="type")])


def parse_client_message(data: dict[str, Any]) -> ClientMessage:
    """Parse a raw dict into a typed ClientMessage, discriminated on ``type``."""
    return _client_message_adapter.validate_python(data)


def action_payload(message: GameActionMessage) -> dict[str, Any]:
    """Action data for the game service: the message fields minus routing."""
    return message.model_dump(exclude={"type", "room_id"})
