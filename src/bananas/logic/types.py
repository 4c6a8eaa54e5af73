"""
Pydantic models for board data, action payloads and public room views.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from bananas.logic.enums import RoomStatus, Vote

MAX_BOARD_TILES = 300


class BoardTile(BaseModel):
    """One tile of a player's last reported board layout."""

    model_config = ConfigDict(frozen=True)

    id: str
    letter: str
    revealed: bool
    placed: bool
    left: float = 0
    top: float = 0
    order: float = 0


class InspectionTile(BaseModel):
    """One tile of a board submitted for inspection."""

    model_config = ConfigDict(frozen=True)

    left: float
    top: float
    letter: str


# --- Action payloads ---
# Tile lists stay loosely typed here: malformed tiles are a rule violation
# with its own error message, not a protocol error.


class PeelActionData(BaseModel):
    board_tiles: list[Any] = Field(default_factory=list, max_length=MAX_BOARD_TILES)


class DumpActionData(BaseModel):
    letter: str = Field(min_length=1, max_length=1)
    client_tile_id: str | None = Field(default=None, max_length=200)


class BananasActionData(BaseModel):
    board_tiles: list[Any] = Field(default_factory=list, max_length=MAX_BOARD_TILES)


class VoteActionData(BaseModel):
    vote: Vote


class BoardStateActionData(BaseModel):
    tiles: list[Any] = Field(default_factory=list)


# --- Public views ---


class PublicPlayer(BaseModel):
    """What every room member may see about a player."""

    id: str
    name: str
    hand_size: int
    is_out: bool
    connected: bool


class RoomSnapshot(BaseModel):
    """Full public room state broadcast after every change."""

    players: dict[str, PublicPlayer]
    status: RoomStatus
    pool_size: int
    inspecting_player: str | None = None
    inspecting_board_tiles: list[InspectionTile] = Field(default_factory=list)
    inspecting_judges: list[str] = Field(default_factory=list)
    inspection_votes: dict[str, Vote] = Field(default_factory=dict)
