"""
Action handlers for game actions.

Each handler validates input against the current room state and returns an
ActionResult with the new immutable state and the events to deliver. Rule
violations raise GameRuleError subclasses; actions that no longer apply to
the room (wrong status, eliminated player) raise StaleActionError. Neither
leaves a partially updated state behind because the stored state is only
replaced from a returned result.
"""

import random
from collections import Counter

import structlog

from bananas.logic.action_result import ActionResult, room_state_event
from bananas.logic.adjacency import is_connected_grid
from bananas.logic.board import sanitize_board_tiles, sanitize_inspection_board
from bananas.logic.enums import GameErrorCode, InspectionOutcome, RoomStatus
from bananas.logic.events import (
    DumpReceivedEvent,
    GameEvent,
    GameOverEvent,
    GameStartedEvent,
    PeelReceivedEvent,
    RottenBananaDeclaredEvent,
    player_target,
)
from bananas.logic.exceptions import (
    BananasTooEarlyError,
    HandSizeMismatchError,
    InsufficientTilesError,
    InvalidBoardError,
    InvalidVoteError,
    StaleActionError,
    TileNotInHandError,
)
from bananas.logic.inspection import resolve
from bananas.logic.pool import TilePool
from bananas.logic.state import Inspection, PlayerState, RoomState
from bananas.logic.state_utils import (
    add_tiles_to_hand,
    record_vote,
    remove_letter_from_hand,
    to_inspecting,
    to_playing,
    to_waiting,
    update_player,
)
from bananas.logic.tiles import DUMP_DRAW_COUNT, initial_hand_size
from bananas.logic.types import (
    BananasActionData,
    BoardStateActionData,
    DumpActionData,
    PeelActionData,
    VoteActionData,
)

logger = structlog.get_logger()


def _require_active_player(state: RoomState, player_id: str) -> PlayerState:
    """Return the acting player if the room is playing and the player is still in the game."""
    if state.status != RoomStatus.PLAYING:
        raise StaleActionError(f"room {state.room_id} is {state.status.value}")
    player = state.get_player(player_id)
    if player is None or player.is_out:
        raise StaleActionError(f"player {player_id} cannot act in room {state.room_id}")
    return player


def handle_start(state: RoomState, player_id: str, rng: random.Random) -> ActionResult:
    """
    Deal a new game.

    Only legal while the room is waiting. The pool is rebuilt to the full
    144 tiles, every seated player (including those in their rejoin grace
    period) is dealt the opening hand, and boards and eliminations reset.
    """
    if state.status != RoomStatus.WAITING:
        raise StaleActionError(f"room {state.room_id} already {state.status.value}")

    hand_size = initial_hand_size(len(state.players))
    pool = TilePool.full(rng)
    if pool.size < hand_size * len(state.players):
        raise InsufficientTilesError("Not enough tiles to deal a hand to every player.")

    players: dict[str, PlayerState] = {}
    events: list[GameEvent] = []
    for pid, player in state.players.items():
        hand, pool = pool.draw(hand_size)
        players[pid] = player.model_copy(update={"hand": hand, "board_tiles": (), "is_out": False})
        if player.connected:
            events.append(GameStartedEvent(hand=list(hand), target=player_target(pid)))

    new_state = to_playing(state.model_copy(update={"pool": pool, "players": players}))
    events.append(room_state_event(new_state))
    logger.info(
        "game started", room_id=state.room_id, started_by=player_id, players=len(players), hand_size=hand_size
    )
    return ActionResult(events, new_state)


def handle_peel(state: RoomState, player_id: str, data: PeelActionData) -> ActionResult:
    """
    Every active player draws one tile.

    The caller must show a connected board holding exactly their hand, and
    the pool must cover one tile per active player.
    """
    peeler = _require_active_player(state, player_id)

    if len(data.board_tiles) != peeler.hand_size:
        raise HandSizeMismatchError(
            f"Board tile count ({len(data.board_tiles)}) must match hand size ({peeler.hand_size})."
        )
    if not is_connected_grid(data.board_tiles):
        raise InvalidBoardError("You can only peel when every tile has at least one orthogonal connection.")

    active = state.active_players
    if state.pool.size < len(active):
        raise InsufficientTilesError("Not enough tiles left in the pool for a full peel. Call BANANAS.")

    pool = state.pool
    new_state = state
    events: list[GameEvent] = []
    for player in active:
        drawn, pool = pool.draw(1)
        new_state = add_tiles_to_hand(new_state, player.player_id, drawn)
        if player.connected:
            events.append(PeelReceivedEvent(tile=drawn[0], target=player_target(player.player_id)))

    new_state = new_state.model_copy(update={"pool": pool})
    events.append(room_state_event(new_state))
    logger.info("peel", room_id=state.room_id, player_id=player_id, pool_size=pool.size)
    return ActionResult(events, new_state)


def handle_dump(state: RoomState, player_id: str, data: DumpActionData, rng: random.Random) -> ActionResult:
    """Exchange one tile from the hand for three from the pool."""
    player = _require_active_player(state, player_id)

    if state.pool.size < DUMP_DRAW_COUNT:
        raise InsufficientTilesError("Not enough tiles left to dump!")

    letter = data.letter.upper()
    if letter not in player.hand:
        raise TileNotInHandError("You can only dump a tile currently in your hand.")

    new_state = remove_letter_from_hand(state, player_id, letter)
    pool = state.pool.return_and_reshuffle([letter], rng)
    drawn, pool = pool.draw(DUMP_DRAW_COUNT)
    new_state = add_tiles_to_hand(new_state, player_id, drawn)
    new_state = new_state.model_copy(update={"pool": pool})

    events: list[GameEvent] = [
        DumpReceivedEvent(
            tiles=list(drawn),
            dumped_letter=letter,
            client_tile_id=data.client_tile_id,
            target=player_target(player_id),
        ),
        room_state_event(new_state),
    ]
    logger.info("dump", room_id=state.room_id, player_id=player_id, letter=letter, pool_size=pool.size)
    return ActionResult(events, new_state)


def handle_bananas(
    state: RoomState, player_id: str, data: BananasActionData, rng: random.Random
) -> ActionResult:
    """
    Claim victory and open an inspection.

    Judges are the other connected, active players at this instant. With no
    judges the claim resolves immediately.
    """
    candidate = _require_active_player(state, player_id)
    active = state.active_players

    if state.pool.size >= len(active):
        raise BananasTooEarlyError("Not enough tiles have been peeled to call Bananas!")
    if len(data.board_tiles) != candidate.hand_size:
        raise HandSizeMismatchError("Your submitted board does not match your hand size.")

    board = sanitize_inspection_board(data.board_tiles)
    if Counter(tile.letter for tile in board) != Counter(candidate.hand):
        raise InvalidBoardError("Your submitted board does not match the tiles in your hand.")

    judges = tuple(p.player_id for p in active if p.player_id != player_id and p.connected)
    new_state = to_inspecting(state, Inspection(candidate_id=player_id, board=board, judges=judges))
    logger.info("bananas called", room_id=state.room_id, player_id=player_id, judges=len(judges))

    resolution = resolve_inspection(new_state, rng)
    return ActionResult([room_state_event(new_state), *resolution.events], resolution.new_state)


def handle_inspection_vote(
    state: RoomState, player_id: str, data: VoteActionData, rng: random.Random
) -> ActionResult:
    """Record a judge's vote and resolve the inspection if decided."""
    inspection = state.inspection
    if inspection is None:
        raise StaleActionError(f"room {state.room_id} has no inspection in progress")

    if player_id == inspection.candidate_id:
        raise InvalidVoteError("Potential winner cannot vote on their own board.", code=GameErrorCode.SELF_VOTE)
    if player_id not in inspection.judges:
        raise InvalidVoteError("You are not a judge for this inspection.", code=GameErrorCode.NOT_A_JUDGE)
    if player_id in inspection.votes:
        raise InvalidVoteError("You already voted for this inspection.", code=GameErrorCode.ALREADY_VOTED)

    new_state = to_inspecting(state, record_vote(inspection, player_id, data.vote))
    resolution = resolve_inspection(new_state, rng)
    return ActionResult([room_state_event(new_state), *resolution.events], resolution.new_state)


def handle_board_state_update(state: RoomState, player_id: str, data: BoardStateActionData) -> ActionResult:
    """
    Store the player's reported board layout.

    Emits nothing. A snapshot whose tile count disagrees with a non-empty
    hand is ignored.
    """
    player = state.get_player(player_id)
    if player is None:
        raise StaleActionError(f"player {player_id} not in room {state.room_id}")

    tiles = sanitize_board_tiles(data.tiles)
    if player.hand_size > 0 and len(tiles) != player.hand_size:
        raise StaleActionError(f"board of {len(tiles)} tiles does not match hand of {player.hand_size}")
    if tiles == player.board_tiles:
        return ActionResult([])
    return ActionResult([], update_player(state, player_id, board_tiles=tiles))


# ---------------------------------------------------------------------------
# Inspection outcomes
# ---------------------------------------------------------------------------


def resolve_inspection(state: RoomState, rng: random.Random) -> ActionResult:
    """Apply the inspection outcome if the votes so far decide it."""
    inspection = state.inspection
    if inspection is None:
        return ActionResult([], state)

    outcome, tally = resolve(inspection)
    if outcome == InspectionOutcome.WINNER:
        return apply_winner(state, inspection)
    if outcome == InspectionOutcome.ROTTEN:
        return apply_rotten(state, inspection, rng)
    logger.debug(
        "inspection pending", room_id=state.room_id, valid=tally.valid, rotten=tally.rotten, uncast=tally.uncast
    )
    return ActionResult([], state)


def apply_winner(state: RoomState, inspection: Inspection) -> ActionResult:
    """End the game in the candidate's favour. Hands stay as they are until the next start."""
    winner = state.get_player(inspection.candidate_id)
    winner_name = winner.name if winner is not None else "Unknown"
    new_state = to_waiting(state)
    logger.info("inspection upheld", room_id=state.room_id, winner_id=inspection.candidate_id)
    return ActionResult(
        [
            room_state_event(new_state),
            GameOverEvent(
                winner_id=inspection.candidate_id,
                winner_name=winner_name,
                votes=dict(inspection.votes),
                message=f"{winner_name} is the true WINNER!",
            ),
        ],
        new_state,
    )


def apply_rotten(state: RoomState, inspection: Inspection, rng: random.Random) -> ActionResult:
    """Eliminate the candidate and return the inspected tiles to the pool.

    The candidate is always seated: removing a candidate aborts the inspection.
    """
    candidate = state.players[inspection.candidate_id]
    pool = state.pool.return_and_reshuffle([tile.letter for tile in inspection.board], rng)
    new_state = update_player(state, candidate.player_id, is_out=True, hand=(), board_tiles=())
    new_state = to_playing(new_state.model_copy(update={"pool": pool}))
    logger.info("rotten banana", room_id=state.room_id, player_id=candidate.player_id, pool_size=pool.size)
    return ActionResult(
        [
            RottenBananaDeclaredEvent(rotten_id=candidate.player_id, rotten_name=candidate.name),
            room_state_event(new_state),
        ],
        new_state,
    )
