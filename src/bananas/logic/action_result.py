"""Shared result type and helpers for action handler execution.

This module provides the ActionResult type and the event builders shared by
action handlers, roster operations and the game service. It lives in a
neutral module to avoid import cycles between them.
"""

from typing import NamedTuple

from bananas.logic.events import GameEvent, RoomStateUpdatedEvent
from bananas.logic.state import RoomState, build_room_snapshot


class ActionResult(NamedTuple):
    """
    Result of an action handler execution.

    Contains the events produced by the action and the new immutable room
    state. When new_state is None the stored state is left unchanged. A
    new_state of None together with ``room_closed`` means the room emptied
    and must be dropped from the registry.
    """

    events: list[GameEvent]
    new_state: RoomState | None = None
    room_closed: bool = False


def room_state_event(state: RoomState) -> RoomStateUpdatedEvent:
    """Create the room-wide state broadcast for the given state."""
    return RoomStateUpdatedEvent(room=build_room_snapshot(state))
