"""
Immutable tile pool (the face-down bunch).

Tiles are drawn from the end of the pool. Returned tiles trigger a reshuffle
of the whole pool so their position cannot be predicted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from bananas.logic.exceptions import InsufficientTilesError
from bananas.logic.rng import fisher_yates_shuffle
from bananas.logic.tiles import build_full_bunch

if TYPE_CHECKING:
    import random
    from collections.abc import Iterable


class TilePool(BaseModel):
    """Ordered sequence of face-down letter tiles."""

    model_config = ConfigDict(frozen=True)

    tiles: tuple[str, ...] = ()

    @classmethod
    def full(cls, rng: random.Random) -> TilePool:
        """Return a freshly shuffled pool with the complete 144-tile distribution."""
        return cls(tiles=tuple(fisher_yates_shuffle(build_full_bunch(), rng)))

    @property
    def size(self) -> int:
        return len(self.tiles)

    @property
    def is_empty(self) -> bool:
        return not self.tiles

    def draw(self, count: int) -> tuple[tuple[str, ...], TilePool]:
        """Take exactly ``count`` tiles from the end of the pool.

        Returns (drawn_tiles, remaining_pool). Drawn tiles are listed in
        draw order (last pool tile first).
        Raises InsufficientTilesError when fewer than ``count`` tiles remain.
        """
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        if count > self.size:
            raise InsufficientTilesError(f"Cannot draw {count} tiles from a pool of {self.size}.")
        if count == 0:
            return (), self
        split = self.size - count
        drawn = tuple(reversed(self.tiles[split:]))
        return drawn, TilePool(tiles=self.tiles[:split])

    def return_and_reshuffle(self, tiles: Iterable[str], rng: random.Random) -> TilePool:
        """Append tiles to the pool and shuffle the whole pool."""
        combined = [*self.tiles, *tiles]
        return TilePool(tiles=tuple(fisher_yates_shuffle(combined, rng)))
