"""Digit chimeras: gradient ascent on a weighted blend of classes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from ..core.network import NeuralNetwork
from ..core.types import OUTPUT_CLASSES, Array
from .dreams import LR_DECAY, ascent_step, initial_noise
from .gradients import GradientProbe

# Classes whose normalised weight falls below this are skipped.
WEIGHT_EPSILON = 0.01


@dataclass(frozen=True)
class ChimeraResult:
    image: Array
    confidence_history: Array
    final_confidence: Array


@dataclass(frozen=True)
class ChimeraPreset:
    name: str
    description: str
    weights: Sequence[float]


CHIMERA_PRESETS: List[ChimeraPreset] = [
    ChimeraPreset("3 + 8", "Round digits, what joins them?", (0, 0, 0, 1, 0, 0, 0, 0, 1, 0)),
    ChimeraPreset("1 + 7", "Vertical meets diagonal", (0, 1, 0, 0, 0, 0, 0, 1, 0, 0)),
    ChimeraPreset("4 + 9", "Similar tops, which wins?", (0, 0, 0, 0, 1, 0, 0, 0, 0, 1)),
    ChimeraPreset("5 + 6", "Curvy siblings with a round bottom", (0, 0, 0, 0, 0, 1, 1, 0, 0, 0)),
    ChimeraPreset("0 + 8", "One ring or two?", (1, 0, 0, 0, 0, 0, 0, 0, 1, 0)),
    ChimeraPreset("All Digits", "Every class equally", (1,) * OUTPUT_CLASSES),
]


def normalize_class_weights(class_weights: Sequence[float] | Array) -> Array:
    """Scale weights to sum to 1; an all-zero vector becomes uniform."""

    weights = np.asarray(class_weights, dtype=np.float64)
    if weights.shape != (OUTPUT_CLASSES,):
        raise ValueError(f"Expected {OUTPUT_CLASSES} class weights, got shape {weights.shape}")
    total = float(weights.sum())
    if total > 0:
        return weights / total
    return np.full(OUTPUT_CLASSES, 1.0 / OUTPUT_CLASSES)


def dream_chimera(
    network: NeuralNetwork,
    class_weights: Sequence[float] | Array,
    steps: int = 80,
    lr: float = 0.5,
    *,
    rng: np.random.Generator | None = None,
) -> ChimeraResult:
    """Dream an image that scores high on a weighted mix of classes."""

    weights = normalize_class_weights(class_weights)
    active = [cls for cls in range(OUTPUT_CLASSES) if weights[cls] >= WEIGHT_EPSILON]
    image = initial_noise(network.input_size, rng)

    steps = max(0, int(steps))
    history = np.zeros((steps, OUTPUT_CLASSES), dtype=np.float64)
    total = np.zeros_like(image)
    probe = GradientProbe()
    current_lr = float(lr)
    for step in range(steps):
        history[step] = network.forward(image)
        total.fill(0.0)
        for cls in active:
            total += weights[cls] * probe.input_gradient(network, image, cls)
        ascent_step(image, total, current_lr)
        current_lr *= LR_DECAY

    final_confidence = network.forward(image).copy()
    return ChimeraResult(image=image, confidence_history=history, final_confidence=final_confidence)


__all__ = [
    "CHIMERA_PRESETS",
    "ChimeraPreset",
    "ChimeraResult",
    "WEIGHT_EPSILON",
    "dream_chimera",
    "normalize_class_weights",
]
