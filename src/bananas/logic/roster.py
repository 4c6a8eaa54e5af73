"""
Room membership operations: join, resume, disconnect and removal.

These are pure like the action handlers. The session layer decides when to
call them (connection events, grace timer expiry) and owns the mapping from
connections to internal player ids.
"""

import random

import structlog

from bananas.logic.action_handlers import resolve_inspection
from bananas.logic.action_result import ActionResult, room_state_event
from bananas.logic.events import GameEvent, GameStartedEvent, player_target
from bananas.logic.state import PlayerState, RoomState, new_player_id
from bananas.logic.state_utils import add_player, drop_player, remove_judge, to_inspecting, to_playing, update_player

logger = structlog.get_logger()


def normalize_rejoin_key(value: object) -> str | None:
    """Trimmed rejoin credential, or None when absent or blank."""
    if not isinstance(value, str):
        return None
    return value.strip() or None


def default_player_name(state: RoomState) -> str:
    return f"Player {len(state.players) + 1}"


def add_new_player(
    state: RoomState,
    name: str | None,
    rejoin_key: str | None,
    *,
    player_id: str | None = None,
) -> tuple[ActionResult, str]:
    """Seat a new player with an empty hand. Returns the result and the new player id."""
    pid = player_id or new_player_id()
    player = PlayerState(
        player_id=pid,
        name=name or default_player_name(state),
        rejoin_key=rejoin_key,
    )
    new_state = add_player(state, player)
    logger.info("player joined", room_id=state.room_id, player_id=pid, player_name=player.name)
    return ActionResult([room_state_event(new_state)], new_state), pid


def resume_player(state: RoomState, player_id: str, name: str | None) -> ActionResult:
    """
    Reconnect a seated player.

    Everything keyed by the player id (hand, board, inspection role and
    votes) carries over unchanged. The resumer receives its hand and board.
    """
    player = state.players[player_id]
    new_state = update_player(
        state,
        player_id,
        name=name or player.name,
        connected=True,
        disconnected_at=None,
    )
    resumed = new_state.players[player_id]
    logger.info("player resumed", room_id=state.room_id, player_id=player_id, player_name=resumed.name)
    return ActionResult(
        [
            room_state_event(new_state),
            GameStartedEvent(
                hand=list(resumed.hand),
                tiles=list(resumed.board_tiles),
                resumed=True,
                target=player_target(player_id),
            ),
        ],
        new_state,
    )


def mark_disconnected(state: RoomState, player_id: str, now: float) -> ActionResult:
    """Flag the player as disconnected. It keeps its seat and tiles."""
    new_state = update_player(state, player_id, connected=False, disconnected_at=now)
    return ActionResult([room_state_event(new_state)], new_state)


def remove_player(state: RoomState, player_id: str, rng: random.Random) -> ActionResult:
    """
    Remove a player from the room.

    The player's hand goes back to the pool. If the player was the bananas
    candidate the inspection is abandoned and play resumes; if it was a
    judge, its seat and vote are dropped and the inspection is re-resolved.
    An emptied room is reported through ``room_closed``.
    """
    player = state.get_player(player_id)
    if player is None:
        return ActionResult([], state)

    new_state = drop_player(state, player_id)
    if player.hand:
        new_state = new_state.model_copy(update={"pool": new_state.pool.return_and_reshuffle(player.hand, rng)})

    if not new_state.players:
        logger.info("last player left, closing room", room_id=state.room_id)
        return ActionResult([], None, room_closed=True)

    events: list[GameEvent] = []
    inspection = new_state.inspection
    if inspection is not None:
        if inspection.candidate_id == player_id:
            logger.info("candidate left, inspection abandoned", room_id=state.room_id, player_id=player_id)
            new_state = to_playing(new_state)
        else:
            new_state = to_inspecting(new_state, remove_judge(inspection, player_id))
            resolution = resolve_inspection(new_state, rng)
            events.extend(resolution.events)
            if resolution.new_state is not None:
                new_state = resolution.new_state

    if not events:
        events.append(room_state_event(new_state))
    logger.info("player removed", room_id=state.room_id, player_id=player_id)
    return ActionResult(events, new_state)
