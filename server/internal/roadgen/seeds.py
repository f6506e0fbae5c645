"""
Seed and random-number utilities for deterministic road generation.
"""

import hashlib
import random
from typing import Tuple, Union

Seed = Union[str, int]

# Noise-space offsets are drawn from [0, NOISE_OFFSET_RANGE)
NOISE_OFFSET_RANGE = 4096.0


def seeded_random(seed: Seed) -> random.Random:
    """
    Create deterministic random number generator.

    String seeds are hashed by ``random.Random`` itself, so the same string gives the
    same sequence in every process.

    Args:
        seed: Seed value (string or integer)

    Returns:
        Seeded Random instance

    Raises:
        ValueError: If seed is neither a string nor an integer
    """
    if isinstance(seed, bool) or not isinstance(seed, (str, int)):
        raise ValueError(f"Seed must be a string or an integer, got {type(seed).__name__}")
    return random.Random(seed)


def get_seed_fingerprint(seed: Seed) -> int:
    """
    Stable 31-bit integer identifying a seed (useful for logs and debugging).

    Args:
        seed: Seed value

    Returns:
        Integer in [0, 2**31)
    """
    digest = hashlib.sha256(f"{type(seed).__name__}:{seed}".encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big") % (2**31)


def random_range(rng: random.Random, low: float, high: float) -> float:
    """Uniform real in [low, high)."""
    return rng.random() * (high - low) + low


def biased_angle(rng: random.Random, limit: float) -> float:
    """
    Draw a non-zero angle in (-limit, limit) that favours small deviations.

    A candidate ``c`` is re-drawn with probability ``|c|^3 / limit^3``.

    Args:
        rng: Random source
        limit: Largest absolute angle in degrees

    Returns:
        Angle in degrees
    """
    threshold = abs(limit) ** 3
    c = 0.0
    while c == 0 or rng.random() < abs(c) ** 3 / threshold:
        c = random_range(rng, -limit, limit)
    return c


def get_noise_offset(rng: random.Random) -> Tuple[float, float]:
    """
    Noise-space offset that seeds the density field.

    Args:
        rng: Random source, freshly seeded for a generation run

    Returns:
        (x, y) offset added to every noise lookup
    """
    return (
        random_range(rng, 0.0, NOISE_OFFSET_RANGE),
        random_range(rng, 0.0, NOISE_OFFSET_RANGE),
    )
