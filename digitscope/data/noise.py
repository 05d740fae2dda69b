"""Reproducible noise patterns for robustness experiments."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from ..core.prng import gaussian_noise, mulberry32
from ..core.types import INPUT_DIM, INPUT_SIZE, Array

NOISE_KINDS = ("gaussian", "salt-pepper", "adversarial")


def _check_kind(kind: str) -> str:
    if kind not in NOISE_KINDS:
        raise ValueError(f"Unknown noise kind {kind!r}. Expected one of: {', '.join(NOISE_KINDS)}")
    return kind


def generate_noise_pattern(kind: str, seed: int, target_digit: int = 0) -> Array:
    """Return a new 784-value noise pattern for ``kind``, seeded by ``seed``.

    Values are the raw signal before amplitude scaling. ``adversarial``
    patterns are an angular bias pointing towards ``target_digit`` plus
    Gaussian jitter.
    """

    _check_kind(kind)
    rng = mulberry32(seed)
    pattern = np.zeros(INPUT_SIZE, dtype=np.float32)

    if kind == "gaussian":
        for i in range(INPUT_SIZE):
            pattern[i] = gaussian_noise(rng)
    elif kind == "salt-pepper":
        for i in range(INPUT_SIZE):
            r = rng()
            if r < 0.15:
                pattern[i] = 1.0
            elif r < 0.30:
                pattern[i] = -1.0
    else:
        centre = INPUT_DIM / 2
        target_angle = (target_digit / 10) * math.pi * 2
        for i in range(INPUT_SIZE):
            x, y = i % INPUT_DIM, i // INPUT_DIM
            dist = math.hypot(x - centre, y - centre) / (INPUT_DIM / 2)
            angle = math.atan2(y - centre, x - centre)
            bias = math.cos(angle - target_angle)
            pattern[i] = bias * (1 - dist) + gaussian_noise(rng) * 0.3
    return pattern


def apply_noise(
    inputs: Sequence[float] | Array,
    pattern: Array,
    level: float,
    kind: str,
    seed: int,
) -> Array:
    """Return a new noised copy of ``inputs`` clamped to ``[0, 1]``.

    Salt-and-pepper noise flips pixels to 0/1 where the pattern is set, with
    probability ``level``; the other kinds add ``pattern * level``.
    """

    _check_kind(kind)
    clean = np.asarray(inputs, dtype=np.float64)
    length = min(clean.shape[0], INPUT_SIZE)
    pattern = np.asarray(pattern, dtype=np.float64)[:length]
    clean = clean[:length]

    if kind == "salt-pepper":
        rng = mulberry32(seed)
        noised = clean.copy()
        for i in range(length):
            if abs(pattern[i]) > 0.5 and rng() < level:
                noised[i] = 1.0 if pattern[i] > 0 else 0.0
        return noised
    return np.clip(clean + pattern * level, 0.0, 1.0)


__all__ = ["NOISE_KINDS", "apply_noise", "generate_noise_pattern"]
