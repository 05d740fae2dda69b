"""Per-epoch parameter history and forward replay over past weights."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import numpy as np

from ..core.activations import activate, argmax, softmax
from ..core.types import Array, LayerState, TrainingSnapshot


@dataclass(frozen=True)
class LayerParams:
    weights: Array
    biases: Array


@dataclass(frozen=True)
class EpochSnapshot:
    epoch: int
    loss: float
    accuracy: float
    params: List[LayerParams]


@dataclass(frozen=True)
class ReplayResult:
    probabilities: Array
    label: int


def thin_history(entries: list) -> list:
    """Keep every other entry, starting with the oldest."""

    return entries[::2]


class EpochRecorder:
    """Bounded history of learnable parameters, one entry per recorded epoch.

    Only weights and biases are copied. At capacity the history is thinned
    to every other entry and the recording interval doubles, so the newest
    epochs keep arriving at a coarser resolution.
    """

    def __init__(self, max_snapshots: int = 200) -> None:
        if max_snapshots <= 0:
            raise ValueError(f"max_snapshots must be positive, got {max_snapshots}")
        self.max_snapshots = int(max_snapshots)
        self.record_interval = 1
        self._since_last = 0
        self._snapshots: List[EpochSnapshot] = []

    def record(self, snapshot: TrainingSnapshot) -> None:
        self._since_last += 1
        if self._since_last < self.record_interval:
            return
        self._since_last = 0

        if len(self._snapshots) >= self.max_snapshots:
            self._snapshots = thin_history(self._snapshots)
            self.record_interval *= 2

        params = [LayerParams(layer.weights.copy(), layer.biases.copy()) for layer in snapshot.layers]
        self._snapshots.append(EpochSnapshot(snapshot.epoch, snapshot.loss, snapshot.accuracy, params))

    @property
    def timeline(self) -> List[EpochSnapshot]:
        """Recorded snapshots oldest first. Borrowed list; copy to keep."""

        return self._snapshots

    def get_snapshot(self, index: int) -> Optional[EpochSnapshot]:
        if 0 <= index < len(self._snapshots):
            return self._snapshots[index]
        return None

    def __len__(self) -> int:
        return len(self._snapshots)

    def clear(self) -> None:
        self._snapshots = []
        self.record_interval = 1
        self._since_last = 0


def params_to_layers(params: Sequence[LayerParams]) -> List[LayerState]:
    """Rebuild layer states from stored parameters with zeroed activations."""

    return [
        LayerState(
            weights=p.weights.copy(),
            biases=p.biases.copy(),
            pre_activations=np.zeros_like(p.biases),
            activations=np.zeros_like(p.biases),
        )
        for p in params
    ]


def replay_forward(
    params: Sequence[LayerParams],
    inputs: Sequence[float] | Array,
    activation: Union[str, Sequence[str]] = "relu",
) -> ReplayResult:
    """Forward pass over historical parameters without a live network.

    ``activation`` is either one name used by every hidden layer or one name
    per hidden layer. Neuron masks are not applied.
    """

    hidden = len(params) - 1
    if isinstance(activation, str):
        names = [activation] * max(0, hidden)
    else:
        names = list(activation)
        if len(names) != hidden:
            raise ValueError(f"Expected {hidden} activation names, got {len(names)}")

    current = np.asarray(inputs, dtype=np.float64)
    with np.errstate(all="ignore"):
        for idx, layer in enumerate(params):
            pre = layer.weights @ current + layer.biases
            pre[~np.isfinite(pre)] = 0.0
            if idx == hidden:
                current = softmax(pre)
            else:
                current = activate(pre, names[idx])
    return ReplayResult(probabilities=current, label=argmax(current))


__all__ = [
    "EpochRecorder",
    "EpochSnapshot",
    "LayerParams",
    "ReplayResult",
    "params_to_layers",
    "replay_forward",
    "thin_history",
]
