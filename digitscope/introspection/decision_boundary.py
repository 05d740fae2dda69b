"""Classification landscape between two digit prototypes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol

import numpy as np

from ..core.network import check_class
from ..core.types import INPUT_SIZE, Array, Prediction
from ..data.digits import generate_digit_pattern

# Peak strength of the perpendicular offset along the grid's Y axis.
PERPENDICULAR_SCALE = 0.3


class Classifier(Protocol):
    def predict(self, inputs: Array) -> Prediction: ...


@dataclass(frozen=True)
class BoundaryCell:
    conf_a: float
    conf_b: float
    label: int
    max_conf: float


@dataclass(frozen=True)
class DecisionBoundaryResult:
    """``grid[y][x]``: X walks from digit A to digit B, Y adds the perpendicular offset."""

    grid: List[List[BoundaryCell]]
    resolution: int
    digit_a: int
    digit_b: int


def generate_exemplar(digit: int, samples: int = 5, *, rng: np.random.Generator | None = None) -> Array:
    """Average ``samples`` jittered renderings of ``digit`` into a clean prototype."""

    digit = check_class(digit)
    rng = rng if rng is not None else np.random.default_rng()
    total = np.zeros(INPUT_SIZE, dtype=np.float64)
    count = max(1, int(samples))
    for _ in range(count):
        total += generate_digit_pattern(digit, rng)
    return np.clip(total / count, 0.0, 1.0)


def _axis(resolution: int) -> Array:
    if resolution == 1:
        return np.array([0.5])
    return np.linspace(0.0, 1.0, resolution)


def compute_decision_boundary(
    network: Classifier,
    digit_a: int,
    digit_b: int,
    resolution: int = 32,
    *,
    rng: np.random.Generator | None = None,
) -> DecisionBoundaryResult:
    """Classify a ``resolution x resolution`` grid of blended inputs.

    A second, independent pair of exemplars supplies the perpendicular
    direction. ``resolution == 1`` samples the grid centre and a
    non-positive resolution yields an empty grid.
    """

    digit_a, digit_b = check_class(digit_a), check_class(digit_b)
    resolution = int(resolution)
    if resolution <= 0:
        return DecisionBoundaryResult(grid=[], resolution=max(0, resolution), digit_a=digit_a, digit_b=digit_b)

    rng = rng if rng is not None else np.random.default_rng()
    exemplar_a = generate_exemplar(digit_a, rng=rng)
    exemplar_b = generate_exemplar(digit_b, rng=rng)
    perpendicular = (generate_exemplar(digit_a, rng=rng) - generate_exemplar(digit_b, rng=rng)) * 0.5

    steps = _axis(resolution)
    grid: List[List[BoundaryCell]] = []
    sample = np.empty(INPUT_SIZE, dtype=np.float64)
    for ty in steps:
        offset = perpendicular * ((ty - 0.5) * 2.0 * PERPENDICULAR_SCALE)
        row = []
        for tx in steps:
            np.multiply(exemplar_a, 1.0 - tx, out=sample)
            sample += exemplar_b * tx
            sample += offset
            np.clip(sample, 0.0, 1.0, out=sample)
            result = network.predict(sample)
            probs = result.probabilities
            row.append(
                BoundaryCell(
                    conf_a=float(probs[digit_a]),
                    conf_b=float(probs[digit_b]),
                    label=int(result.label),
                    max_conf=float(np.max(probs)),
                )
            )
        grid.append(row)
    return DecisionBoundaryResult(grid=grid, resolution=resolution, digit_a=digit_a, digit_b=digit_b)


__all__ = [
    "BoundaryCell",
    "Classifier",
    "DecisionBoundaryResult",
    "PERPENDICULAR_SCALE",
    "compute_decision_boundary",
    "generate_exemplar",
]
