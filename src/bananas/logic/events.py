"""Domain event models and service event transport container.

Domain event classes are the canonical event types for the game logic layer.
ServiceEvent is the transport wrapper used to route events to clients.
convert_events() maps domain events into ServiceEvent containers with typed
routing targets.

All layers import exclusively from this module for event types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, model_validator

from bananas.logic.enums import GameErrorCode, Vote
from bananas.logic.types import BoardTile, RoomSnapshot

PLAYER_TARGET_PREFIX = "player_"

# ---------------------------------------------------------------------------
# Typed routing targets
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BroadcastTarget:
    """Event should be sent to every connected member of the room."""


@dataclass(frozen=True)
class PlayerTarget:
    """Event should be sent to one player only."""

    player_id: str


EventTarget = BroadcastTarget | PlayerTarget


def player_target(player_id: str) -> str:
    return f"{PLAYER_TARGET_PREFIX}{player_id}"


def parse_wire_target(value: str) -> EventTarget:
    """Parse a string target into a typed EventTarget."""
    if value == "all":
        return BroadcastTarget()
    if value.startswith(PLAYER_TARGET_PREFIX) and len(value) > len(PLAYER_TARGET_PREFIX):
        return PlayerTarget(player_id=value.removeprefix(PLAYER_TARGET_PREFIX))
    raise ValueError(f"invalid target value: {value}")


# ---------------------------------------------------------------------------
# Event type enum
# ---------------------------------------------------------------------------


class EventType(StrEnum):
    """Types of game events."""

    ROOM_STATE_UPDATED = "room_state_updated"
    GAME_STARTED = "game_started"
    PEEL_RECEIVED = "peel_received"
    DUMP_RECEIVED = "dump_received"
    ROTTEN_BANANA_DECLARED = "rotten_banana_declared"
    GAME_OVER = "game_over"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Domain event models
# ---------------------------------------------------------------------------


class GameEvent(BaseModel):
    """Base class for all domain game events."""

    model_config = ConfigDict(frozen=True)

    type: EventType
    target: str


class RoomStateUpdatedEvent(GameEvent):
    """Full public room state, broadcast after every change."""

    type: Literal[EventType.ROOM_STATE_UPDATED] = EventType.ROOM_STATE_UPDATED
    target: str = "all"
    room: RoomSnapshot


class GameStartedEvent(GameEvent):
    """Event sent to one player with their opening (or restored) hand."""

    type: Literal[EventType.GAME_STARTED] = EventType.GAME_STARTED
    hand: list[str]
    tiles: list[BoardTile] | None = None
    resumed: bool = False


class PeelReceivedEvent(GameEvent):
    """Event sent to each active player with the tile drawn in a peel."""

    type: Literal[EventType.PEEL_RECEIVED] = EventType.PEEL_RECEIVED
    tile: str


class DumpReceivedEvent(GameEvent):
    """Event sent to the dumping player with the three replacement tiles."""

    type: Literal[EventType.DUMP_RECEIVED] = EventType.DUMP_RECEIVED
    tiles: list[str]
    dumped_letter: str
    client_tile_id: str | None = None


class RottenBananaDeclaredEvent(GameEvent):
    """Event broadcast when a bananas claim is voted rotten."""

    type: Literal[EventType.ROTTEN_BANANA_DECLARED] = EventType.ROTTEN_BANANA_DECLARED
    target: str = "all"
    rotten_id: str
    rotten_name: str


class GameOverEvent(GameEvent):
    """Event broadcast when a bananas claim is upheld."""

    type: Literal[EventType.GAME_OVER] = EventType.GAME_OVER
    target: str = "all"
    winner_id: str
    winner_name: str
    votes: dict[str, Vote]
    message: str


class ErrorEvent(GameEvent):
    """Event sent to a player when their action is rejected."""

    type: Literal[EventType.ERROR] = EventType.ERROR
    code: GameErrorCode
    message: str


Event = (
    RoomStateUpdatedEvent
    | GameStartedEvent
    | PeelReceivedEvent
    | DumpReceivedEvent
    | RottenBananaDeclaredEvent
    | GameOverEvent
    | ErrorEvent
)


# ---------------------------------------------------------------------------
# Service event transport container
# ---------------------------------------------------------------------------


def _normalize_event_value(value: str | Enum) -> str:
    if isinstance(value, Enum):
        return value.value
    return value


class ServiceEvent(BaseModel):
    """Event transport container for game service layer.

    Uses typed internal targets (BroadcastTarget / PlayerTarget) for routing.
    """

    model_config = {"arbitrary_types_allowed": True}

    event: EventType
    data: GameEvent
    target: EventTarget = BroadcastTarget()

    @model_validator(mode="after")
    def _ensure_event_matches_data(self) -> ServiceEvent:
        event_value = _normalize_event_value(self.event)
        data_value = _normalize_event_value(self.data.type)
        if event_value != data_value:
            raise ValueError(f"ServiceEvent.event '{event_value}' does not match data.type '{data_value}'")
        return self


def convert_events(raw_events: list[GameEvent]) -> list[ServiceEvent]:
    """Convert domain events to service events with typed targets."""
    return [
        ServiceEvent(event=event.type, data=event, target=parse_wire_target(event.target))
        for event in raw_events
    ]
