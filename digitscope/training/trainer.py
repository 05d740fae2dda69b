"""Epoch loop around :class:`NeuralNetwork` with recorders and callbacks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Sequence

import numpy as np

from ..core.network import NeuralNetwork
from ..core.types import Array, TrainingSnapshot
from ..introspection.epoch_replay import EpochRecorder
from ..introspection.gradient_flow import GradientFlowHistory, measure_gradient_flow
from ..introspection.weight_evolution import WeightEvolutionRecorder

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    epochs: int
    final_loss: float
    final_accuracy: float
    snapshots: List[TrainingSnapshot] = field(default_factory=list, repr=False)


class Trainer:
    """Train a network for a number of epochs and fan results out.

    ``callbacks`` are objects with ``on_epoch(epoch, metrics)`` or plain
    callables with the same signature; the metric sinks in
    :mod:`digitscope.reporting` fit either way. Recorders receive every
    snapshot, and gradient flow is measured on the first sample every
    ``gradient_every`` epochs.
    """

    def __init__(
        self,
        network: NeuralNetwork,
        callbacks: Sequence[object] = (),
        *,
        epoch_recorder: EpochRecorder | None = None,
        weight_recorder: WeightEvolutionRecorder | None = None,
        gradient_history: GradientFlowHistory | None = None,
        gradient_every: int = 5,
        keep_snapshots: bool = False,
    ) -> None:
        self.network = network
        self.callbacks = list(callbacks)
        self.epoch_recorder = epoch_recorder
        self.weight_recorder = weight_recorder
        self.gradient_history = gradient_history
        self.gradient_every = max(1, int(gradient_every))
        self.keep_snapshots = keep_snapshots

    def run(
        self,
        inputs: Sequence[Sequence[float]] | Array,
        labels: Sequence[int] | Array,
        epochs: int,
        *,
        early_stopping_patience: int | None = None,
    ) -> RunResult:
        """Run ``epochs`` calls of ``train_batch`` and return the final metrics.

        With ``early_stopping_patience`` the loop stops once the loss has not
        improved for that many consecutive epochs.
        """

        inputs = np.asarray(inputs, dtype=np.float64)
        labels = np.asarray(labels, dtype=np.int64)
        snapshots: List[TrainingSnapshot] = []
        snapshot: TrainingSnapshot | None = None
        best_loss = float("inf")
        epochs_no_improve = 0
        completed = 0

        for _ in range(max(0, int(epochs))):
            snapshot = self.network.train_batch(inputs, labels)
            completed += 1
            if self.keep_snapshots:
                snapshots.append(snapshot)
            self._record(snapshot, inputs, labels)
            self._emit_epoch(snapshot.epoch, {"loss": snapshot.loss, "accuracy": snapshot.accuracy})

            if snapshot.loss < best_loss - 1e-9:
                best_loss = snapshot.loss
                epochs_no_improve = 0
            else:
                epochs_no_improve += 1
                if early_stopping_patience and epochs_no_improve >= early_stopping_patience:
                    logger.info("Early stop at epoch %d (best loss %.4f)", snapshot.epoch, best_loss)
                    break

        final_loss = snapshot.loss if snapshot is not None else 0.0
        final_accuracy = snapshot.accuracy if snapshot is not None else 0.0
        logger.info(
            "Trained %d epochs: loss=%.4f accuracy=%.3f",
            completed,
            final_loss,
            final_accuracy,
        )
        return RunResult(
            epochs=completed,
            final_loss=final_loss,
            final_accuracy=final_accuracy,
            snapshots=snapshots,
        )

    # ------------------------------------------------------------------
    # Internal helpers

    def _record(self, snapshot: TrainingSnapshot, inputs: Array, labels: Array) -> None:
        if self.epoch_recorder is not None:
            self.epoch_recorder.record(snapshot)
        if self.weight_recorder is not None:
            self.weight_recorder.record(snapshot)
        if (
            self.gradient_history is not None
            and len(inputs) > 0
            and snapshot.epoch % self.gradient_every == 0
        ):
            flow = measure_gradient_flow(self.network, inputs[0], int(labels[0]))
            self.gradient_history.push(flow)
            if flow.health != "healthy":
                logger.debug("Epoch %d gradient flow %s", snapshot.epoch, flow.health)

    def _emit_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        payload: Dict[str, float] = dict(metrics)
        for callback in self.callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, payload)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, payload)


__all__ = ["RunResult", "Trainer"]
