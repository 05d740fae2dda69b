"""Filmstrip of first-hidden-layer weights across training."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..core.types import Array, TrainingSnapshot
from .epoch_replay import thin_history


@dataclass(frozen=True)
class WeightFrame:
    epoch: int
    loss: float
    accuracy: float
    weights: Array  # float32, (neurons, inputs)

    @property
    def neuron_count(self) -> int:
        return int(self.weights.shape[0])


class WeightEvolutionRecorder:
    """Record the first layer's weights every ``record_interval`` epochs.

    Frames are stored as float32. At ``max_frames`` the history keeps every
    other frame and the interval doubles.
    """

    def __init__(self, max_frames: int = 200, record_interval: int = 1) -> None:
        if max_frames <= 0:
            raise ValueError(f"max_frames must be positive, got {max_frames}")
        self.max_frames = int(max_frames)
        self._initial_interval = max(1, int(record_interval))
        self.record_interval = self._initial_interval
        self._since_last = 0
        self._frames: List[WeightFrame] = []

    def record(self, snapshot: TrainingSnapshot) -> None:
        self._since_last += 1
        if self._since_last < self.record_interval:
            return
        self._since_last = 0

        if not snapshot.layers:
            return
        weights = snapshot.layers[0].weights
        if weights.size == 0:
            return

        if len(self._frames) >= self.max_frames:
            self._frames = thin_history(self._frames)
            self.record_interval *= 2

        self._frames.append(
            WeightFrame(
                epoch=snapshot.epoch,
                loss=snapshot.loss,
                accuracy=snapshot.accuracy,
                weights=weights.astype(np.float32),
            )
        )

    @property
    def frames(self) -> List[WeightFrame]:
        return self._frames

    def get_frame(self, index: int) -> Optional[WeightFrame]:
        if 0 <= index < len(self._frames):
            return self._frames[index]
        return None

    def __len__(self) -> int:
        return len(self._frames)

    def clear(self) -> None:
        self._frames = []
        self._since_last = 0
        self.record_interval = self._initial_interval


def compute_weight_delta(frame_a: WeightFrame, frame_b: WeightFrame, neuron_index: int) -> float:
    """Mean absolute change of one neuron's incoming weights between two frames."""

    row_a = frame_a.weights[neuron_index].astype(np.float64)
    row_b = frame_b.weights[neuron_index].astype(np.float64)
    if row_a.size == 0:
        return 0.0
    return float(np.mean(np.abs(row_b - row_a)))


__all__ = ["WeightEvolutionRecorder", "WeightFrame", "compute_weight_delta"]
