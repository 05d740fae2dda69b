"""Per-layer gradient health monitoring.

:func:`measure_gradient_flow` runs one forward pass and a backward-shaped
pass that only *measures* weight-gradient magnitudes. Weights are never
updated, so it is safe to call on a live network between epochs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from ..core.activations import activate_derivative
from ..core.network import NeuralNetwork, check_class
from ..core.types import Array

HEALTHY = "healthy"
VANISHING = "vanishing"
EXPLODING = "exploding"


@dataclass(frozen=True)
class GradientHealthThresholds:
    """Cut-offs used to classify a gradient flow snapshot."""

    dead_gradient: float = 1e-6
    exploding_mean: float = 10.0
    exploding_ratio: float = 1000.0
    vanishing_mean: float = 1e-6
    vanishing_dead_fraction: float = 0.8


@dataclass(frozen=True)
class LayerGradientStats:
    layer_idx: int
    mean_abs_grad: float
    max_abs_grad: float
    dead_fraction: float
    count: int


@dataclass(frozen=True)
class GradientFlowSnapshot:
    layers: List[LayerGradientStats]
    health: str
    epoch: int


def classify_health(stats: Sequence[LayerGradientStats], thresholds: GradientHealthThresholds) -> str:
    if not stats:
        return HEALTHY
    means = [s.mean_abs_grad for s in stats]
    min_mean, max_mean = min(means), max(means)
    avg_dead = sum(s.dead_fraction for s in stats) / len(stats)
    if max_mean > thresholds.exploding_mean or (
        max_mean > 0 and max_mean / (min_mean or 1e-10) > thresholds.exploding_ratio
    ):
        return EXPLODING
    if min_mean < thresholds.vanishing_mean or avg_dead > thresholds.vanishing_dead_fraction:
        return VANISHING
    return HEALTHY


def _layer_stats(layer_idx: int, grads: Array, dead_threshold: float) -> LayerGradientStats:
    finite = grads[np.isfinite(grads)]
    count = int(finite.size)
    if count == 0:
        return LayerGradientStats(layer_idx, 0.0, 0.0, 1.0, 0)
    return LayerGradientStats(
        layer_idx=layer_idx,
        mean_abs_grad=float(finite.mean()),
        max_abs_grad=float(finite.max()),
        dead_fraction=float(np.count_nonzero(finite < dead_threshold)) / count,
        count=count,
    )


def measure_gradient_flow(
    network: NeuralNetwork,
    inputs: Sequence[float] | Array,
    target_label: int,
    *,
    thresholds: GradientHealthThresholds | None = None,
) -> GradientFlowSnapshot:
    """Measure weight-gradient magnitudes per layer for one labelled sample.

    Frozen and killed neurons are left out of the statistics. Layers are
    reported input-to-output.
    """

    thresholds = thresholds or GradientHealthThresholds()
    target_label = check_class(target_label)
    x = np.asarray(inputs, dtype=np.float64)
    network.forward(x)
    layers = network.layers

    # Deltas ping-pong between two buffers so a layer never reads the
    # buffer it is writing.
    width = max(layer.size for layer in layers)
    buffers = (np.zeros(width, dtype=np.float64), np.zeros(width, dtype=np.float64))
    current = 0
    deltas = buffers[current][: layers[-1].size]
    np.copyto(deltas, layers[-1].activations)
    deltas[target_label] -= 1.0

    stats: List[LayerGradientStats] = []
    with np.errstate(all="ignore"):
        for idx in range(len(layers) - 1, -1, -1):
            prev_activations = layers[idx - 1].activations if idx > 0 else x
            measured = ~network.inactive_mask(idx)
            grads = np.abs(np.outer(deltas[measured], prev_activations))
            stats.append(_layer_stats(idx, grads, thresholds.dead_gradient))

            if idx > 0:
                prev_idx = idx - 1
                spare = 1 - current
                new_deltas = buffers[spare][: layers[prev_idx].size]
                np.matmul(layers[idx].weights.T, deltas, out=new_deltas)
                new_deltas *= activate_derivative(
                    layers[prev_idx].pre_activations, network.layer_activation(prev_idx)
                )
                new_deltas[~np.isfinite(new_deltas)] = 0.0
                new_deltas[network.killed_mask(prev_idx)] = 0.0
                deltas, current = new_deltas, spare

    stats.reverse()
    return GradientFlowSnapshot(
        layers=stats,
        health=classify_health(stats, thresholds),
        epoch=network.epoch,
    )


class GradientFlowHistory:
    """Fixed-capacity ring buffer of snapshots; the oldest is overwritten."""

    def __init__(self, capacity: int = 100) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = int(capacity)
        self._buffer: List[Optional[GradientFlowSnapshot]] = [None] * self.capacity
        self._index = 0
        self._size = 0

    def push(self, snapshot: GradientFlowSnapshot) -> None:
        self._buffer[self._index] = snapshot
        self._index = (self._index + 1) % self.capacity
        if self._size < self.capacity:
            self._size += 1

    def get_all(self) -> List[GradientFlowSnapshot]:
        """Snapshots oldest first, as a new list."""

        if self._size < self.capacity:
            return list(self._buffer[: self._size])  # type: ignore[arg-type]
        return list(self._buffer[self._index :] + self._buffer[: self._index])  # type: ignore[operator]

    def get_latest(self) -> Optional[GradientFlowSnapshot]:
        if self._size == 0:
            return None
        return self._buffer[(self._index - 1) % self.capacity]

    def __len__(self) -> int:
        return self._size

    def clear(self) -> None:
        self._buffer = [None] * self.capacity
        self._index = 0
        self._size = 0


__all__ = [
    "EXPLODING",
    "GradientFlowHistory",
    "GradientFlowSnapshot",
    "GradientHealthThresholds",
    "HEALTHY",
    "LayerGradientStats",
    "VANISHING",
    "classify_health",
    "measure_gradient_flow",
]
