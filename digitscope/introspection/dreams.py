"""Network dreams: gradient ascent in input space."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..core.network import NeuralNetwork, check_class
from ..core.types import Array
from .gradients import GradientProbe

L2_DECAY = 0.001
LR_DECAY = 0.998


@dataclass(frozen=True)
class DreamResult:
    image: Array
    confidence_history: Array


def initial_noise(size: int, rng: np.random.Generator | None = None) -> Array:
    """Faint uniform noise in ``[0.1, 0.4)`` used as the default start image."""

    rng = rng if rng is not None else np.random.default_rng()
    return rng.random(size) * 0.3 + 0.1


def ascent_step(image: Array, gradient: Array, lr: float) -> None:
    """In-place ascent update with L2 decay towards zero, clamped to ``[0, 1]``."""

    image += lr * gradient - L2_DECAY * image
    np.clip(image, 0.0, 1.0, out=image)


def dream(
    network: NeuralNetwork,
    target_class: int,
    steps: int = 100,
    lr: float = 0.5,
    start_image: Sequence[float] | Array | None = None,
    *,
    rng: np.random.Generator | None = None,
) -> DreamResult:
    """Optimise an input so the network grows more confident in ``target_class``.

    ``confidence_history[i]`` is the target probability before step ``i``.
    ``steps=0`` returns a copy of the start image and an empty history.
    """

    target_class = check_class(target_class)
    if start_image is not None:
        image = np.array(start_image, dtype=np.float64)
    else:
        image = initial_noise(network.input_size, rng)

    steps = max(0, int(steps))
    history = np.zeros(steps, dtype=np.float64)
    probe = GradientProbe()
    current_lr = float(lr)
    for step in range(steps):
        # The probe's own forward pass fills the output buffer we read from.
        gradient = probe.input_gradient(network, image, target_class)
        history[step] = network.layers[-1].activations[target_class]
        ascent_step(image, gradient, current_lr)
        current_lr *= LR_DECAY
    return DreamResult(image=image, confidence_history=history)


__all__ = ["DreamResult", "ascent_step", "dream", "initial_noise"]
