"""Two-component PCA by power iteration, for activation-space plots."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from ..core.network import NeuralNetwork
from ..core.types import Array

POWER_ITERATIONS = 50


@dataclass(frozen=True)
class PCAProjection:
    points: Array  # (n, 2)
    variance: Tuple[float, float]


def _seed_vector(dim: int) -> Array:
    v = np.sin(np.arange(dim, dtype=np.float64) * 1.618 + 0.5)
    norm = np.linalg.norm(v)
    return v / norm if norm > 0 else v


def power_iteration(matrix: Array, iterations: int = POWER_ITERATIONS) -> Tuple[Array, float]:
    """Dominant eigenvector and eigenvalue of a symmetric PSD ``matrix``."""

    v = _seed_vector(matrix.shape[0])
    value = 0.0
    for _ in range(iterations):
        w = matrix @ v
        norm = float(np.linalg.norm(w))
        value = norm
        if norm <= 1e-12:
            break
        v = w / norm
    return v, value


def project_to_2d(samples: Sequence[Sequence[float]] | Array) -> PCAProjection:
    """Project ``samples`` (n, d) onto their top two principal components.

    Fewer than two samples, or zero-width samples, give all-zero points and
    zero variance.
    """

    data = np.asarray(samples, dtype=np.float64)
    n = data.shape[0] if data.ndim else 0
    if n < 2 or data.ndim != 2 or data.shape[1] == 0:
        return PCAProjection(points=np.zeros((n, 2)), variance=(0.0, 0.0))

    centered = data - data.mean(axis=0)
    cov = centered.T @ centered / (n - 1)

    pc1, value1 = power_iteration(cov)
    deflated = cov - value1 * np.outer(pc1, pc1)
    pc2, value2 = power_iteration(deflated)

    points = np.column_stack((centered @ pc1, centered @ pc2))
    return PCAProjection(points=points, variance=(value1, value2))


def collect_hidden_activations(
    network: NeuralNetwork,
    inputs: Sequence[Sequence[float]] | Array,
    layer_idx: int = -1,
) -> Array:
    """Stack copies of a hidden layer's activations for each input.

    ``layer_idx=-1`` selects the last hidden layer. A network with no hidden
    layers yields its output probabilities instead.
    """

    hidden = network.num_hidden_layers
    if hidden == 0:
        layer_idx = 0
    elif layer_idx < 0:
        layer_idx += hidden
    if not 0 <= layer_idx < max(hidden, 1):
        raise ValueError(f"Hidden layer index out of range: {layer_idx}")

    rows = []
    for sample in inputs:
        network.forward(sample)
        rows.append(network.layers[layer_idx].activations.copy())
    if not rows:
        return np.zeros((0, network.layers[layer_idx].size))
    return np.vstack(rows)


__all__ = ["PCAProjection", "collect_hidden_activations", "power_iteration", "project_to_2d"]
