"""Head-to-head training of two configurations on shared data."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple

from ..core.network import NeuralNetwork
from ..core.types import INPUT_SIZE, TrainingConfig, TrainingSnapshot
from ..data.cache import TrainingDataCache
from .presets import DEFAULT_SAMPLES_PER_DIGIT, RacePreset

logger = logging.getLogger(__name__)

# Final accuracies closer than this are reported as a tie.
TIE_THRESHOLD = 0.02


@dataclass(frozen=True)
class RaceLap:
    epoch: int
    loss_a: float
    accuracy_a: float
    loss_b: float
    accuracy_b: float


class TrainingRace:
    """Train two independent networks epoch by epoch on one dataset.

    Each racer owns its engine and RNG; the only shared state is the
    read-only training set.
    """

    def __init__(
        self,
        config_a: TrainingConfig | Mapping[str, object],
        config_b: TrainingConfig | Mapping[str, object],
        *,
        samples_per_digit: int = DEFAULT_SAMPLES_PER_DIGIT,
        seed: int | None = None,
    ) -> None:
        self.cache = TrainingDataCache(seed)
        self.inputs, self.labels = self.cache.get(samples_per_digit)
        seed_a = None if seed is None else seed + 1
        seed_b = None if seed is None else seed + 2
        self.network_a = NeuralNetwork(INPUT_SIZE, config_a, seed=seed_a)
        self.network_b = NeuralNetwork(INPUT_SIZE, config_b, seed=seed_b)
        self.laps: List[RaceLap] = []

    @classmethod
    def from_preset(cls, preset: RacePreset, **kwargs) -> "TrainingRace":
        return cls(preset.a, preset.b, **kwargs)

    def step(self) -> Tuple[TrainingSnapshot, TrainingSnapshot]:
        """Train both racers for one epoch."""

        snap_a = self.network_a.train_batch(self.inputs, self.labels)
        snap_b = self.network_b.train_batch(self.inputs, self.labels)
        self.laps.append(RaceLap(snap_a.epoch, snap_a.loss, snap_a.accuracy, snap_b.loss, snap_b.accuracy))
        return snap_a, snap_b

    def run(self, epochs: int) -> Optional[str]:
        for _ in range(max(0, int(epochs))):
            self.step()
        winner = self.winner
        if self.laps:
            lap = self.laps[-1]
            logger.info(
                "Race after %d epochs: A=%.3f B=%.3f winner=%s",
                lap.epoch,
                lap.accuracy_a,
                lap.accuracy_b,
                winner,
            )
        return winner

    @property
    def winner(self) -> Optional[str]:
        """``'A'``, ``'B'`` or ``'tie'``; ``None`` before the first epoch."""

        if not self.laps:
            return None
        lap = self.laps[-1]
        if abs(lap.accuracy_a - lap.accuracy_b) < TIE_THRESHOLD:
            return "tie"
        return "A" if lap.accuracy_a > lap.accuracy_b else "B"


__all__ = ["RaceLap", "TIE_THRESHOLD", "TrainingRace"]
