"""Seeded pseudo-random streams for reproducible texture layers.

A tiny 32-bit state generator (Weyl increment + two multiply-xor-shift
mixing rounds, the "mulberry32" construction) producing floats in [0, 1).
Identical seed ⇒ identical sequence on every run and every platform: all
arithmetic is integer arithmetic masked to 32 bits, and the final division
by 2^32 is exact in float64.

Each noise layer owns its own instance, created fresh for every render, so
a layer's texture never depends on how many values other layers consumed.

Usage:
    from src.fusion_renderer.rng import SeededRandom, BACKGROUND_SEED

    rand = SeededRandom(BACKGROUND_SEED)
    x = rand() * size
    first_ten = SeededRandom(BACKGROUND_SEED).take(10)
"""

from typing import Iterator, List

MASK32 = 0xFFFFFFFF
INCREMENT = 0x6D2B79F5
NORMALIZER = 4294967296.0  # 2^32

# One fixed seed per texture layer
BACKGROUND_SEED = 0xDECAFBAD
COOKIE_SPECKLE_SEED = 0x0DDC0FF3
EMBOSS_SEED = 0xABCDDCBA
CRUMB_SEED = 0xFEEDFACE

LAYER_SEEDS = {
    'background': BACKGROUND_SEED,
    'cookie_speckle': COOKIE_SPECKLE_SEED,
    'emboss': EMBOSS_SEED,
    'crumbs': CRUMB_SEED,
}


def _imul(a: int, b: int) -> int:
    """32-bit wrapping multiply (unsigned result)."""
    return (a * b) & MASK32


class SeededRandom:
    """Reproducible stream of floats in [0, 1).

    Parameters
    ----------
    seed : int
        Seed; reduced to an unsigned 32-bit integer

    Notes
    -----
    Instances are iterators over an unbounded sequence, and also callable
    (``rand()``) for the common one-value-at-a-time draw pattern.
    """

    def __init__(self, seed: int):
        if isinstance(seed, bool) or not isinstance(seed, int):
            raise TypeError(f"Seed must be an int, got {type(seed).__name__}")
        self._seed = seed & MASK32
        self._state = self._seed

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def state(self) -> int:
        return self._state

    def next(self) -> float:
        """Advance the stream and return the next value in [0, 1)."""
        self._state = (self._state + INCREMENT) & MASK32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & MASK32
        return ((t ^ (t >> 14)) & MASK32) / NORMALIZER

    __call__ = next

    def __iter__(self) -> Iterator[float]:
        return self

    def __next__(self) -> float:
        return self.next()

    def take(self, n: int) -> List[float]:
        """Draw the next n values as a list."""
        if n < 0:
            raise ValueError(f"Cannot take a negative number of values, got {n}")
        return [self.next() for _ in range(n)]

    def __repr__(self) -> str:
        return f"SeededRandom(seed=0x{self._seed:08X}, state=0x{self._state:08X})"
