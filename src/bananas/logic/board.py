"""
Sanitisation of client-reported boards.

Clients are untrusted. Periodic board snapshots are filtered leniently
(malformed tiles are dropped), while boards submitted for inspection are
all-or-nothing.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from bananas.logic.adjacency import is_number
from bananas.logic.exceptions import InvalidBoardError
from bananas.logic.tiles import normalize_letter
from bananas.logic.types import MAX_BOARD_TILES, BoardTile, InspectionTile


def _is_valid_board_tile(tile: object) -> bool:
    if not isinstance(tile, Mapping):
        return False
    if not isinstance(tile.get("id"), str) or normalize_letter(tile.get("letter")) is None:
        return False
    revealed = tile.get("revealed")
    placed = tile.get("placed")
    if not isinstance(revealed, bool) or not isinstance(placed, bool):
        return False
    return not placed or (is_number(tile.get("left")) and is_number(tile.get("top")))


def sanitize_board_tiles(tiles: Sequence[Any]) -> tuple[BoardTile, ...]:
    """Keep well-formed tiles only, capped at MAX_BOARD_TILES.

    Unplaced tiles have their coordinates zeroed; a non-numeric order becomes 0.
    """
    sanitized: list[BoardTile] = []
    for tile in tiles:
        if not _is_valid_board_tile(tile):
            continue
        placed = tile["placed"]
        order = tile.get("order")
        sanitized.append(
            BoardTile(
                id=tile["id"],
                letter=tile["letter"].upper(),
                revealed=tile["revealed"],
                placed=placed,
                left=tile["left"] if placed else 0,
                top=tile["top"] if placed else 0,
                order=order if is_number(order) else 0,
            ),
        )
        if len(sanitized) >= MAX_BOARD_TILES:
            break
    return tuple(sanitized)


def sanitize_inspection_board(tiles: Sequence[Any]) -> tuple[InspectionTile, ...]:
    """Convert a bananas submission into inspection tiles.

    Raises InvalidBoardError if any tile lacks a single letter or numeric coordinates.
    """
    board: list[InspectionTile] = []
    for tile in tiles:
        if not isinstance(tile, Mapping):
            raise InvalidBoardError("Invalid board data for inspection.")
        letter = normalize_letter(tile.get("letter"))
        left = tile.get("left")
        top = tile.get("top")
        if letter is None or not is_number(left) or not is_number(top):
            raise InvalidBoardError("Invalid board data for inspection.")
        board.append(InspectionTile(left=left, top=top, letter=letter))
    return tuple(board)
