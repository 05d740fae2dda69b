"""Input-space gradients of a target class probability.

Every gradient-based tool in :mod:`digitscope.introspection` goes through
:class:`GradientProbe`, so the differentiation logic lives in one place.
"""

from __future__ import annotations

from typing import List, Sequence

import numpy as np

from ..core.activations import activate_derivative
from ..core.network import NeuralNetwork, check_class
from ..core.types import Array


class GradientProbe:
    """Read-only backprop pass from a target class back to the input.

    The probe owns one delta buffer per layer plus the input-gradient buffer
    and reuses them across calls, so the array returned by
    :meth:`input_gradient` is overwritten by the next call on the same probe.
    Copy it if it must outlive that call. A probe is not reentrant.
    """

    def __init__(self) -> None:
        self._deltas: List[Array] = []
        self._gradient = np.zeros(0, dtype=np.float64)

    def _delta_buffers(self, network: NeuralNetwork) -> List[Array]:
        sizes = [layer.size for layer in network.layers]
        if [buf.shape[0] for buf in self._deltas] != sizes:
            self._deltas = [np.zeros(size, dtype=np.float64) for size in sizes]
        return self._deltas

    def input_gradient(
        self,
        network: NeuralNetwork,
        inputs: Sequence[float] | Array,
        target_class: int,
    ) -> Array:
        target_class = check_class(target_class)
        x = np.asarray(inputs, dtype=np.float64)
        network.forward(x)
        layers = network.layers
        buffers = self._delta_buffers(network)

        # Ascent direction: raise the target probability, lower the rest.
        deltas = buffers[-1]
        np.negative(layers[-1].activations, out=deltas)
        deltas[target_class] += 1.0

        with np.errstate(all="ignore"):
            for idx in range(len(layers) - 1, 0, -1):
                prev_idx = idx - 1
                prev = layers[prev_idx]
                new_deltas = buffers[prev_idx]
                np.matmul(layers[idx].weights.T, deltas, out=new_deltas)
                new_deltas *= activate_derivative(prev.pre_activations, network.layer_activation(prev_idx))
                new_deltas[~np.isfinite(new_deltas)] = 0.0
                new_deltas[network.killed_mask(prev_idx)] = 0.0
                deltas = new_deltas

            if self._gradient.shape[0] != x.shape[0]:
                self._gradient = np.zeros(x.shape[0], dtype=np.float64)
            gradient = self._gradient
            np.matmul(layers[0].weights.T, deltas, out=gradient)
            gradient[~np.isfinite(gradient)] = 0.0
        return gradient

    __call__ = input_gradient


def compute_input_gradient(
    network: NeuralNetwork,
    inputs: Sequence[float] | Array,
    target_class: int,
    probe: GradientProbe | None = None,
) -> Array:
    """Gradient of the ascent objective for ``target_class`` w.r.t. ``inputs``.

    With ``probe`` the result is that probe's shared buffer (see
    :class:`GradientProbe`); without one a throwaway probe is used and the
    result is owned by the caller.
    """

    if probe is None:
        probe = GradientProbe()
    return probe.input_gradient(network, inputs, target_class)


__all__ = ["GradientProbe", "compute_input_gradient"]
