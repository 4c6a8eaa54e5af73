"""
BananasGameService: the registry of live rooms.

The service owns one immutable RoomState per room id and the RNG used for
every shuffle. Handlers are pure functions that return new state; the
service validates action payloads, dispatches to the handler, stores the
returned state and converts the produced domain events into routed
ServiceEvents. Rule violations become an error event for the acting player
only. The session layer serialises calls per room with a lock.
"""

import logging
import random
import time
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from bananas.logic.action_handlers import (
    handle_bananas,
    handle_board_state_update,
    handle_dump,
    handle_inspection_vote,
    handle_peel,
    handle_start,
)
from bananas.logic.action_result import ActionResult
from bananas.logic.enums import GameAction, GameErrorCode
from bananas.logic.events import ErrorEvent, ServiceEvent, convert_events, player_target
from bananas.logic.exceptions import GameRuleError, RoomLimitError, StaleActionError
from bananas.logic.rng import create_rng
from bananas.logic.roster import add_new_player, mark_disconnected, remove_player, resume_player
from bananas.logic.state import PlayerState, RoomState
from bananas.logic.types import (
    BananasActionData,
    BoardStateActionData,
    DumpActionData,
    PeelActionData,
    VoteActionData,
)

logger = logging.getLogger(__name__)


class BananasGameService:
    """
    Game service for Bananas.

    Maintains room states for multiple concurrent rooms. ``rooms`` seeds the
    registry with existing states, keyed by room id.
    """

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        max_rooms: int | None = None,
        rooms: Mapping[str, RoomState] | None = None,
    ) -> None:
        self._rooms: dict[str, RoomState] = dict(rooms) if rooms is not None else {}
        self._rng = rng if rng is not None else create_rng()
        self._max_rooms = max_rooms

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    @property
    def player_count(self) -> int:
        return sum(len(state.players) for state in self._rooms.values())

    def get_room_state(self, room_id: str) -> RoomState | None:
        return self._rooms.get(room_id)

    def get_player(self, room_id: str, player_id: str) -> PlayerState | None:
        state = self._rooms.get(room_id)
        if state is None:
            return None
        return state.get_player(player_id)

    def find_player_by_rejoin_key(self, room_id: str, rejoin_key: str) -> PlayerState | None:
        state = self._rooms.get(room_id)
        if state is None:
            return None
        return state.find_by_rejoin_key(rejoin_key)

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------

    def add_player(
        self,
        room_id: str,
        player_name: str | None,
        rejoin_key: str | None,
    ) -> tuple[str, list[ServiceEvent]]:
        """
        Seat a new player, creating the room on first join.

        Raises RoomLimitError when a new room would exceed ``max_rooms``.
        """
        state = self._rooms.get(room_id)
        if state is None:
            if self._max_rooms is not None and len(self._rooms) >= self._max_rooms:
                raise RoomLimitError("The server is full. Try again later.")
            state = RoomState(room_id=room_id)
            logger.info(f"room {room_id}: created")
        result, player_id = add_new_player(state, player_name, rejoin_key)
        return player_id, self._apply(room_id, result)

    def resume_player(self, room_id: str, player_id: str, player_name: str | None) -> list[ServiceEvent]:
        state = self._rooms.get(room_id)
        if state is None or player_id not in state.players:
            return []
        return self._apply(room_id, resume_player(state, player_id, player_name))

    def mark_disconnected(self, room_id: str, player_id: str) -> list[ServiceEvent]:
        state = self._rooms.get(room_id)
        if state is None or player_id not in state.players:
            return []
        return self._apply(room_id, mark_disconnected(state, player_id, time.time()))

    def remove_player(self, room_id: str, player_id: str) -> list[ServiceEvent]:
        """Remove the player. The room is dropped once its last player leaves."""
        state = self._rooms.get(room_id)
        if state is None or player_id not in state.players:
            return []
        return self._apply(room_id, remove_player(state, player_id, self._rng))

    # ------------------------------------------------------------------
    # Game actions
    # ------------------------------------------------------------------

    def handle_action(
        self,
        room_id: str,
        player_id: str,
        action: GameAction,
        data: dict[str, Any],
    ) -> list[ServiceEvent]:
        """
        Handle a game action from a player.

        Actions for unknown rooms or players, and actions that no longer
        apply to the room, produce no events.
        """
        state = self._rooms.get(room_id)
        if state is None:
            logger.debug(f"room {room_id}: action {action} from {player_id} but room not found")
            return []
        if player_id not in state.players:
            logger.warning(f"room {room_id}: action {action} from {player_id} but player not in room")
            return []

        try:
            result = self._execute_action(state, player_id, action, data)
        except ValidationError as e:
            logger.warning(f"room {room_id}: validation error for {player_id} action={action}: {e}")
            return self._create_error_event(player_id, GameErrorCode.VALIDATION_ERROR, f"invalid action data: {e}")
        except StaleActionError as e:
            logger.debug(f"room {room_id}: ignoring {action} from {player_id}: {e}")
            return []
        except GameRuleError as e:
            logger.info(f"room {room_id}: rejected {action} from {player_id}: {e.message}")
            return self._create_error_event(player_id, e.code, e.message)

        if result is None:
            logger.warning(f"room {room_id}: unknown action '{action}' from {player_id}")
            return self._create_error_event(player_id, GameErrorCode.INVALID_ACTION, f"unknown action: {action}")

        return self._apply(room_id, result)

    def _execute_action(
        self, state: RoomState, player_id: str, action: GameAction, data: dict[str, Any]
    ) -> ActionResult | None:
        """Validate the payload and run the matching handler."""
        if action == GameAction.START:
            return handle_start(state, player_id, self._rng)
        if action == GameAction.PEEL:
            return handle_peel(state, player_id, PeelActionData(**data))
        if action == GameAction.DUMP:
            return handle_dump(state, player_id, DumpActionData(**data), self._rng)
        if action == GameAction.BANANAS:
            return handle_bananas(state, player_id, BananasActionData(**data), self._rng)
        if action == GameAction.INSPECTION_VOTE:
            return handle_inspection_vote(state, player_id, VoteActionData(**data), self._rng)
        if action == GameAction.BOARD_STATE_UPDATE:
            return handle_board_state_update(state, player_id, BoardStateActionData(**data))
        return None

    def _apply(self, room_id: str, result: ActionResult) -> list[ServiceEvent]:
        """Store the state returned by a handler and route its events."""
        if result.room_closed:
            self._rooms.pop(room_id, None)
        elif result.new_state is not None:
            self._rooms[room_id] = result.new_state
        return convert_events(result.events)

    @staticmethod
    def _create_error_event(player_id: str, code: GameErrorCode, message: str) -> list[ServiceEvent]:
        return convert_events([ErrorEvent(code=code, message=message, target=player_target(player_id))])
