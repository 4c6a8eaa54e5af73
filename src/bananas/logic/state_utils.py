"""
Immutable state update utilities using Pydantic model_copy.

Provides helper functions for common immutable state updates on frozen
Pydantic models. These functions never mutate the input state - they
always return new state objects with the requested changes applied.
"""

from bananas.logic.enums import Vote
from bananas.logic.state import (
    Inspection,
    InspectingPhase,
    PlayerState,
    PlayingPhase,
    RoomState,
    WaitingPhase,
)

_PLAYER_FIELDS = set(PlayerState.model_fields)


def update_player(
    state: RoomState,
    player_id: str,
    **updates: object,
) -> RoomState:
    """
    Return new room state with updated player.

    Args:
        state: Current room state
        player_id: Internal id of the player to update
        **updates: Fields to update on the player

    Returns:
        New RoomState with updated player

    Raises:
        ValueError: If the player is not in the room or update fields are invalid

    """
    if player_id not in state.players:
        raise ValueError(f"Unknown player {player_id} in room {state.room_id}")
    invalid_fields = set(updates) - _PLAYER_FIELDS
    if invalid_fields:
        raise ValueError(f"Invalid player fields: {invalid_fields}")
    players = dict(state.players)
    players[player_id] = state.players[player_id].model_copy(update=updates)
    return state.model_copy(update={"players": players})


def add_player(state: RoomState, player: PlayerState) -> RoomState:
    """Return new room state with the player appended in join order."""
    return state.model_copy(update={"players": {**state.players, player.player_id: player}})


def drop_player(state: RoomState, player_id: str) -> RoomState:
    """Return new room state without the player. Hand tiles are not touched."""
    players = {pid: p for pid, p in state.players.items() if pid != player_id}
    return state.model_copy(update={"players": players})


def add_tiles_to_hand(state: RoomState, player_id: str, tiles: tuple[str, ...]) -> RoomState:
    player = state.players[player_id]
    return update_player(state, player_id, hand=(*player.hand, *tiles))


def remove_letter_from_hand(state: RoomState, player_id: str, letter: str) -> RoomState:
    """
    Return new state with one copy of ``letter`` removed from the player's hand.

    Raises:
        ValueError: If the letter is not in the player's hand

    """
    hand = list(state.players[player_id].hand)
    hand.remove(letter)
    return update_player(state, player_id, hand=tuple(hand))


def to_waiting(state: RoomState) -> RoomState:
    return state.model_copy(update={"phase": WaitingPhase()})


def to_playing(state: RoomState) -> RoomState:
    return state.model_copy(update={"phase": PlayingPhase()})


def to_inspecting(state: RoomState, inspection: Inspection) -> RoomState:
    return state.model_copy(update={"phase": InspectingPhase(inspection=inspection)})


def record_vote(inspection: Inspection, judge_id: str, vote: Vote) -> Inspection:
    """Return new inspection with the judge's vote recorded."""
    return inspection.model_copy(update={"votes": {**inspection.votes, judge_id: vote}})


def remove_judge(inspection: Inspection, judge_id: str) -> Inspection:
    """Return new inspection without the judge and any vote it cast."""
    return inspection.model_copy(
        update={
            "judges": tuple(j for j in inspection.judges if j != judge_id),
            "votes": {j: v for j, v in inspection.votes.items() if j != judge_id},
        }
    )
