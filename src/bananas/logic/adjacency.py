"""
Adjacency validation for submitted tile layouts.

Clients report tile positions in their own pixel space, each with an
arbitrary camera origin. The validator anchors the grid on the first tile,
snaps every tile to the nearest grid cell and then checks that the layout is
an orthogonal grid: no tile drifts off its cell, no two tiles share a cell,
and every tile touches at least one other tile.

The final check is local. Two separate clusters in which every tile has a
neighbour pass, matching the table rule "every tile must be attached to
something" rather than a single-component spanning check.
"""

import math
from collections.abc import Mapping, Sequence
from typing import Any

TILE_SPACING = 65.0
SNAP_TOLERANCE = 28.0

_NEIGHBOR_OFFSETS: tuple[tuple[int, int], ...] = ((1, 0), (-1, 0), (0, 1), (0, -1))

Cell = tuple[int, int]


def is_number(value: object) -> bool:
    """True for finite ints and floats. Booleans are not coordinates."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _read_position(tile: object) -> tuple[float, float] | None:
    if not isinstance(tile, Mapping):
        return None
    left = tile.get("left")
    top = tile.get("top")
    if not is_number(left) or not is_number(top):
        return None
    return float(left), float(top)


def snap_to_grid(
    positions: Sequence[tuple[float, float]],
    *,
    spacing: float = TILE_SPACING,
    tolerance: float = SNAP_TOLERANCE,
) -> list[Cell] | None:
    """Map pixel positions to grid cells relative to the first position.

    Returns None when any position lies further than ``tolerance`` from its
    snapped cell on either axis, or so far from the anchor that the offset
    overflows.
    """
    if not positions:
        return None
    anchor_left, anchor_top = positions[0]
    cells: list[Cell] = []
    for left, top in positions:
        delta_left = left - anchor_left
        delta_top = top - anchor_top
        if not math.isfinite(delta_left) or not math.isfinite(delta_top):
            return None
        col = round(delta_left / spacing)
        row = round(delta_top / spacing)
        snapped_left = anchor_left + col * spacing
        snapped_top = anchor_top + row * spacing
        if abs(left - snapped_left) > tolerance or abs(top - snapped_top) > tolerance:
            return None
        cells.append((col, row))
    return cells


def every_cell_has_neighbor(cells: Sequence[Cell]) -> bool:
    """Check that no two cells overlap and each cell has an orthogonal neighbour."""
    occupied = set(cells)
    if len(occupied) != len(cells):
        return False
    return all(
        any((col + d_col, row + d_row) in occupied for d_col, d_row in _NEIGHBOR_OFFSETS) for col, row in cells
    )


def is_connected_grid(tiles: Sequence[Any]) -> bool:
    """Decide whether a submitted layout is a valid orthogonal grid.

    Each tile is a mapping with numeric ``left`` and ``top`` pixel coordinates.
    """
    if not tiles:
        return False

    positions: list[tuple[float, float]] = []
    for tile in tiles:
        position = _read_position(tile)
        if position is None:
            return False
        positions.append(position)

    cells = snap_to_grid(positions)
    if cells is None:
        return False
    return every_cell_has_neighbor(cells)
