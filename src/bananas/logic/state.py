"""
Room state models.

All room state is immutable. Handlers build new states with ``model_copy``
and the game service swaps the stored reference.

The room phase is a tagged union: inspection data lives inside
``InspectingPhase`` only, so a room cannot be in ``waiting`` or ``playing``
while carrying a stale inspection.
"""

from __future__ import annotations

import uuid
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from bananas.logic.enums import RoomStatus, Vote
from bananas.logic.pool import TilePool
from bananas.logic.types import BoardTile, InspectionTile, PublicPlayer, RoomSnapshot


def new_player_id() -> str:
    """Stable internal player handle, independent of any connection id."""
    return uuid.uuid4().hex


class PlayerState(BaseModel):
    """
    A player seated in a room.

    ``hand`` holds every tile the player owns. ``board_tiles`` is the last
    layout the client reported for those tiles and is only used to restore
    the board on resume.
    """

    model_config = ConfigDict(frozen=True)

    player_id: str
    name: str
    rejoin_key: str | None = None
    hand: tuple[str, ...] = ()
    board_tiles: tuple[BoardTile, ...] = ()
    is_out: bool = False
    connected: bool = True
    disconnected_at: float | None = None

    @property
    def hand_size(self) -> int:
        return len(self.hand)


class Inspection(BaseModel):
    """A pending bananas claim awaiting the judges' votes."""

    model_config = ConfigDict(frozen=True)

    candidate_id: str
    board: tuple[InspectionTile, ...] = ()
    judges: tuple[str, ...] = ()
    votes: dict[str, Vote] = Field(default_factory=dict)


class WaitingPhase(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal[RoomStatus.WAITING] = RoomStatus.WAITING


class PlayingPhase(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal[RoomStatus.PLAYING] = RoomStatus.PLAYING


class InspectingPhase(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal[RoomStatus.INSPECTING] = RoomStatus.INSPECTING
    inspection: Inspection


RoomPhase = Annotated[WaitingPhase | PlayingPhase | InspectingPhase, Field(discriminator="status")]


class RoomState(BaseModel):
    """Authoritative state of one room."""

    model_config = ConfigDict(frozen=True)

    room_id: str
    phase: RoomPhase = Field(default_factory=WaitingPhase)
    pool: TilePool = Field(default_factory=TilePool)
    # insertion order is join order
    players: dict[str, PlayerState] = Field(default_factory=dict)

    @property
    def status(self) -> RoomStatus:
        return self.phase.status

    @property
    def inspection(self) -> Inspection | None:
        if isinstance(self.phase, InspectingPhase):
            return self.phase.inspection
        return None

    @property
    def active_players(self) -> list[PlayerState]:
        """Players who are still in the current game (not eliminated)."""
        return [p for p in self.players.values() if not p.is_out]

    def get_player(self, player_id: str) -> PlayerState | None:
        return self.players.get(player_id)

    def find_by_rejoin_key(self, rejoin_key: str) -> PlayerState | None:
        for player in self.players.values():
            if player.rejoin_key == rejoin_key:
                return player
        return None

    def tiles_in_circulation(self) -> int:
        """Pool plus every hand. Equals 144 once a game has been dealt."""
        return self.pool.size + sum(p.hand_size for p in self.players.values())


def build_room_snapshot(state: RoomState) -> RoomSnapshot:
    """Build the public room view broadcast to every member."""
    players = {
        p.player_id: PublicPlayer(
            id=p.player_id,
            name=p.name,
            hand_size=p.hand_size,
            is_out=p.is_out,
            connected=p.connected,
        )
        for p in state.players.values()
    }
    inspection = state.inspection
    if inspection is None:
        return RoomSnapshot(players=players, status=state.status, pool_size=state.pool.size)
    return RoomSnapshot(
        players=players,
        status=state.status,
        pool_size=state.pool.size,
        inspecting_player=inspection.candidate_id,
        inspecting_board_tiles=list(inspection.board),
        inspecting_judges=list(inspection.judges),
        inspection_votes=dict(inspection.votes),
    )
