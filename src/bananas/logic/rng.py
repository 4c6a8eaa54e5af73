"""
Random number generation for shuffling the bunch.

Each game service owns one ``random.Random`` instance. Production code seeds
it from the OS entropy pool; tests pass an explicit seed so deals are
reproducible.
"""

import random
import secrets

SEED_BITS = 128


def generate_seed() -> int:
    """Generate a fresh seed from the OS entropy source."""
    return secrets.randbits(SEED_BITS)


def create_rng(seed: int | None = None) -> random.Random:
    """Create the RNG used for all shuffles of one game service."""
    return random.Random(generate_seed() if seed is None else seed)  # noqa: S311


def fisher_yates_shuffle(tiles: list[str], rng: random.Random) -> list[str]:
    """
    Perform a Fisher-Yates (Knuth) shuffle and return a new list.

    For i from n-1 down to 1: swap tiles[i] with tiles[j], j uniform in [0, i].
    ``randrange`` draws without modulo bias, so every permutation is equally likely.
    """
    result = list(tiles)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randrange(i + 1)
        result[i], result[j] = result[j], result[i]
    return result
