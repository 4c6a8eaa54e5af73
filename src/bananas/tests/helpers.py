"""State builders and wire helpers shared by the test suites."""

from collections.abc import Sequence
from typing import Any

from bananas.logic.adjacency import TILE_SPACING
from bananas.logic.enums import RoomStatus
from bananas.logic.pool import TilePool
from bananas.logic.state import (
    InspectingPhase,
    Inspection,
    PlayerState,
    PlayingPhase,
    RoomState,
    WaitingPhase,
)
from bananas.messaging.encoder import decode, encode


def create_player(
    player_id: str,
    name: str | None = None,
    *,
    hand: Sequence[str] = (),
    rejoin_key: str | None = None,
    is_out: bool = False,
    connected: bool = True,
) -> PlayerState:
    return PlayerState(
        player_id=player_id,
        name=name if name is not None else player_id.capitalize(),
        rejoin_key=rejoin_key,
        hand=tuple(hand),
        is_out=is_out,
        connected=connected,
        disconnected_at=None if connected else 0.0,
    )


def create_room_state(
    players: Sequence[PlayerState] = (),
    *,
    pool: Sequence[str] = (),
    status: RoomStatus = RoomStatus.PLAYING,
    inspection: Inspection | None = None,
    room_id: str = "room1",
) -> RoomState:
    """Build a RoomState directly, bypassing the deal."""
    if inspection is not None:
        phase = InspectingPhase(inspection=inspection)
    elif status == RoomStatus.PLAYING:
        phase = PlayingPhase()
    else:
        phase = WaitingPhase()
    return RoomState(
        room_id=room_id,
        phase=phase,
        pool=TilePool(tiles=tuple(pool)),
        players={p.player_id: p for p in players},
    )


def row_board(letters: Sequence[str], *, left: float = 100.0, top: float = 200.0) -> list[dict[str, Any]]:
    """Lay letters out in one horizontal word, the way a client reports a finished board."""
    return [{"letter": letter, "left": left + i * TILE_SPACING, "top": top} for i, letter in enumerate(letters)]


def client_tiles(letters: Sequence[str], *, placed: bool = True) -> list[dict[str, Any]]:
    """Full client tile records as sent in board_state_update."""
    return [
        {
            "id": f"t{i}",
            "letter": letter,
            "revealed": True,
            "placed": placed,
            "left": 100.0 + i * TILE_SPACING,
            "top": 200.0,
            "order": i,
        }
        for i, letter in enumerate(letters)
    ]


def send_ws(ws, data: dict) -> None:
    """Send a MessagePack-encoded message over a test WebSocket."""
    ws.send_bytes(encode(data))


def recv_ws(ws) -> dict:
    """Receive and decode a MessagePack message from a test WebSocket."""
    return decode(ws.receive_bytes())


def recv_until(ws, message_type: str) -> list[dict]:
    """Receive messages until one of ``message_type`` arrives. Returns all of them."""
    messages = []
    while True:
        message = recv_ws(ws)
        messages.append(message)
        if message.get("type") == message_type:
            return messages
