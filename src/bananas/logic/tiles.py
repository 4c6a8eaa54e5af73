"""
Tile distribution and dealing rules.

A full bunch holds 144 letter tiles with the physical Bananagrams
letter counts. The opening hand shrinks as more players share the bunch.
"""

TILE_DISTRIBUTION: dict[str, int] = {
    "A": 13,
    "B": 3,
    "C": 3,
    "D": 6,
    "E": 18,
    "F": 3,
    "G": 4,
    "H": 3,
    "I": 12,
    "J": 2,
    "K": 2,
    "L": 5,
    "M": 3,
    "N": 8,
    "O": 11,
    "P": 3,
    "Q": 2,
    "R": 9,
    "S": 6,
    "T": 9,
    "U": 6,
    "V": 3,
    "W": 3,
    "X": 2,
    "Y": 3,
    "Z": 2,
}

TOTAL_TILES = sum(TILE_DISTRIBUTION.values())  # 144

DUMP_DRAW_COUNT = 3

# (minimum player count, opening hand size), checked from the largest bracket down
_HAND_SIZE_BRACKETS: tuple[tuple[int, int], ...] = (
    (7, 11),
    (5, 15),
    (0, 21),
)


def build_full_bunch() -> list[str]:
    """Return all 144 tiles in alphabetical order (unshuffled)."""
    return [letter for letter, count in TILE_DISTRIBUTION.items() for _ in range(count)]


def initial_hand_size(player_count: int) -> int:
    """Opening hand size: 21 tiles for up to 4 players, 15 for 5-6, 11 for 7+."""
    for min_players, hand_size in _HAND_SIZE_BRACKETS:
        if player_count >= min_players:
            return hand_size
    raise ValueError(f"player_count must be non-negative, got {player_count}")


def normalize_letter(value: object) -> str | None:
    """Upper-case a single-letter string; return None for anything else."""
    if not isinstance(value, str) or len(value) != 1:
        return None
    return value.upper()
