"""Gradient saliency maps."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from ..core.network import NeuralNetwork
from ..core.types import Array
from .gradients import GradientProbe


def compute_saliency(
    network: NeuralNetwork,
    inputs: Sequence[float] | Array,
    target_class: int,
    probe: GradientProbe | None = None,
) -> Array:
    """Return ``|d output / d input|`` scaled by its maximum into ``[0, 1]``.

    An all-zero gradient gives an all-zero map.
    """

    gradient = (probe or GradientProbe()).input_gradient(network, inputs, target_class)
    saliency = np.abs(gradient)
    peak = float(saliency.max()) if saliency.size else 0.0
    if peak > 0:
        saliency /= peak
    return saliency


__all__ = ["compute_saliency"]
