"""Seeded PRNG helpers for reproducible noise patterns."""

from __future__ import annotations

import math
from typing import Callable

_MASK32 = 0xFFFFFFFF


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK32


def mulberry32(seed: int) -> Callable[[], float]:
    """Return a Mulberry32 generator producing floats in ``[0, 1)``.

    The state is kept as an unsigned 32-bit integer so the sequence matches
    the reference 32-bit implementation bit for bit.
    """

    state = int(seed) & _MASK32

    def next_float() -> float:
        nonlocal state
        state = (state + 0x6D2B79F5) & _MASK32
        t = _imul(state ^ (state >> 15), 1 | state)
        t = ((t + _imul(t ^ (t >> 7), 61 | t)) & _MASK32) ^ t
        return ((t ^ (t >> 14)) & _MASK32) / 4294967296.0

    return next_float


def gaussian_noise(rng: Callable[[], float]) -> float:
    """Box-Muller standard normal sample drawn from ``rng``."""

    u1 = max(1e-10, rng())
    u2 = rng()
    return math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)


__all__ = ["gaussian_noise", "mulberry32"]
