"""Stroke-based synthetic 28x28 digit generator."""

from __future__ import annotations

import math
from typing import Callable, Dict, Tuple

import numpy as np

from ..core.network import check_class
from ..core.types import INPUT_DIM, INPUT_SIZE, OUTPUT_CLASSES, Array

STROKE_VALUE = 0.8
JITTER = 1.5
PIXEL_NOISE = 0.05


def _round(value: float) -> int:
    # Half-up rounding keeps stroke placement stable at .5 boundaries.
    return math.floor(value + 0.5)


class _Canvas:
    def __init__(self, rng: np.random.Generator) -> None:
        self.pixels = np.zeros(INPUT_SIZE, dtype=np.float64)
        self.rng = rng

    def jitter(self) -> float:
        return (self.rng.random() - 0.5) * JITTER

    def _stamp(self, x: int, y: int, thickness: int) -> None:
        for dx in range(-thickness + 1, thickness):
            for dy in range(-thickness + 1, thickness):
                px, py = x + dx, y + dy
                if 0 <= px < INPUT_DIM and 0 <= py < INPUT_DIM:
                    idx = py * INPUT_DIM + px
                    self.pixels[idx] = min(1.0, self.pixels[idx] + STROKE_VALUE)

    def line(self, x1: float, y1: float, x2: float, y2: float, thickness: int = 2) -> None:
        steps = max(abs(x2 - x1), abs(y2 - y1)) * 2
        for i in range(int(math.floor(steps)) + 1):
            t = 0.0 if steps == 0 else i / steps
            self._stamp(_round(x1 + (x2 - x1) * t), _round(y1 + (y2 - y1) * t), thickness)

    def arc(self, cx: float, cy: float, r: float, start: float, end: float, thickness: int = 2) -> None:
        steps = max(20.0, abs(end - start) * r)
        for i in range(int(math.floor(steps)) + 1):
            angle = start + (end - start) * (i / steps)
            self._stamp(_round(cx + r * math.cos(angle)), _round(cy + r * math.sin(angle)), thickness)


def _zero(c: _Canvas) -> None:
    j = c.jitter
    c.arc(14 + j(), 14 + j(), 7 + j(), 0, math.pi * 2)


def _one(c: _Canvas) -> None:
    j = c.jitter
    c.line(14 + j(), 4 + j(), 14 + j(), 24 + j())
    c.line(11 + j(), 7 + j(), 14 + j(), 4 + j())
    c.line(10, 24, 18, 24)


def _two(c: _Canvas) -> None:
    j = c.jitter
    c.arc(14 + j(), 10 + j(), 6, -math.pi, 0.3)
    c.line(19 + j(), 12 + j(), 8 + j(), 24 + j())
    c.line(8, 24, 20 + j(), 24 + j())


def _three(c: _Canvas) -> None:
    j = c.jitter
    c.arc(14 + j(), 10 + j(), 5 + j(), -math.pi * 0.8, math.pi * 0.5)
    c.arc(14 + j(), 18 + j(), 5 + j(), -math.pi * 0.5, math.pi * 0.8)


def _four(c: _Canvas) -> None:
    j = c.jitter
    c.line(18 + j(), 4 + j(), 8 + j(), 16 + j())
    c.line(8 + j(), 16 + j(), 22 + j(), 16 + j())
    c.line(18 + j(), 4 + j(), 18 + j(), 24 + j())


def _five(c: _Canvas) -> None:
    j = c.jitter
    c.line(18 + j(), 5 + j(), 9 + j(), 5 + j())
    c.line(9 + j(), 5 + j(), 9 + j(), 13 + j())
    c.arc(14 + j(), 17 + j(), 6, -math.pi * 0.6, math.pi * 0.7)


def _six(c: _Canvas) -> None:
    j = c.jitter
    c.arc(14 + j(), 18 + j(), 6, 0, math.pi * 2)
    c.line(8 + j(), 18 + j(), 12 + j(), 5 + j())


def _seven(c: _Canvas) -> None:
    j = c.jitter
    c.line(8 + j(), 5 + j(), 20 + j(), 5 + j())
    c.line(20 + j(), 5 + j(), 12 + j(), 24 + j())


def _eight(c: _Canvas) -> None:
    j = c.jitter
    c.arc(14 + j(), 10 + j(), 5, 0, math.pi * 2)
    c.arc(14 + j(), 19 + j(), 5, 0, math.pi * 2)


def _nine(c: _Canvas) -> None:
    j = c.jitter
    c.arc(14 + j(), 10 + j(), 6, 0, math.pi * 2)
    c.line(20 + j(), 10 + j(), 16 + j(), 24 + j())


_STROKES: Dict[int, Callable[[_Canvas], None]] = {
    0: _zero,
    1: _one,
    2: _two,
    3: _three,
    4: _four,
    5: _five,
    6: _six,
    7: _seven,
    8: _eight,
    9: _nine,
}


def generate_digit_pattern(digit: int, rng: np.random.Generator | None = None) -> Array:
    """Draw one jittered ``digit`` as a flat 784-pixel vector in ``[0, 1]``."""

    digit = check_class(digit)
    rng = rng if rng is not None else np.random.default_rng()
    canvas = _Canvas(rng)
    _STROKES[digit](canvas)
    noise = (rng.random(INPUT_SIZE) - 0.5) * PIXEL_NOISE
    return np.clip(canvas.pixels + noise, 0.0, 1.0)


def generate_training_data(
    samples_per_digit: int = 15, rng: np.random.Generator | None = None
) -> Tuple[Array, Array]:
    """Return ``(inputs, labels)`` with ``samples_per_digit`` samples of each digit."""

    rng = rng if rng is not None else np.random.default_rng()
    count = max(0, int(samples_per_digit))
    inputs = np.zeros((OUTPUT_CLASSES * count, INPUT_SIZE), dtype=np.float64)
    labels = np.repeat(np.arange(OUTPUT_CLASSES, dtype=np.int64), count)
    for row, digit in enumerate(labels):
        inputs[row] = generate_digit_pattern(int(digit), rng)
    return inputs, labels


def canvas_to_input(pixels: Array, target_size: int = INPUT_DIM) -> Array:
    """Downsample a 0-255 canvas to ``target_size**2`` values in ``[0, 1]``.

    ``pixels`` is ``(H, W)`` grayscale or ``(H, W, C)`` with RGB in the first
    three channels. Each output cell is the mean of its source block.
    """

    data = np.asarray(pixels, dtype=np.float64)
    gray = data[..., :3].mean(axis=-1) if data.ndim == 3 else data
    height, width = gray.shape
    scale_x = width / target_size
    scale_y = height / target_size
    result = np.zeros(target_size * target_size, dtype=np.float64)
    for ty in range(target_size):
        y0, y1 = math.floor(ty * scale_y), math.floor((ty + 1) * scale_y)
        for tx in range(target_size):
            x0, x1 = math.floor(tx * scale_x), math.floor((tx + 1) * scale_x)
            block = gray[y0:y1, x0:x1]
            if block.size:
                result[ty * target_size + tx] = float(block.mean()) / 255.0
    return np.clip(result, 0.0, 1.0)


__all__ = ["canvas_to_input", "generate_digit_pattern", "generate_training_data"]
