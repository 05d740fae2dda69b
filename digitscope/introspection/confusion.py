"""Actual-vs-predicted confusion matrix with per-class scores."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ..core.network import NeuralNetwork
from ..core.types import OUTPUT_CLASSES, Array
from ..data.cache import Dataset, TrainingDataCache, resolve_dataset


@dataclass(frozen=True)
class ConfusionData:
    """``matrix[actual, predicted]`` counts plus derived per-class metrics."""

    matrix: Array
    total: int
    accuracy: float
    precision: Array
    recall: Array
    f1: Array
    class_counts: Array


def _safe_ratio(numerator: Array, denominator: Array) -> Array:
    out = np.zeros(numerator.shape, dtype=np.float64)
    np.divide(numerator, denominator, out=out, where=denominator > 0)
    return out


def confusion_from_predictions(actual: Array, predicted: Array) -> ConfusionData:
    matrix = np.zeros((OUTPUT_CLASSES, OUTPUT_CLASSES), dtype=np.int64)
    np.add.at(matrix, (actual, predicted), 1)
    total = int(matrix.sum())
    diagonal = np.diag(matrix).astype(np.float64)
    precision = _safe_ratio(diagonal, matrix.sum(axis=0).astype(np.float64))
    recall = _safe_ratio(diagonal, matrix.sum(axis=1).astype(np.float64))
    f1 = _safe_ratio(2.0 * precision * recall, precision + recall)
    return ConfusionData(
        matrix=matrix,
        total=total,
        accuracy=float(diagonal.sum()) / total if total else 0.0,
        precision=precision,
        recall=recall,
        f1=f1,
        class_counts=matrix.sum(axis=1),
    )


def compute_confusion_matrix(
    network: NeuralNetwork,
    samples_per_digit: int = 20,
    *,
    data: Dataset | None = None,
    cache: TrainingDataCache | None = None,
) -> ConfusionData:
    """Run every sample through ``network`` and tabulate the predictions."""

    inputs, labels = resolve_dataset(samples_per_digit, data, cache)
    predicted = np.fromiter(
        (int(np.argmax(network.forward(sample))) for sample in inputs),
        dtype=np.int64,
        count=len(inputs),
    )
    return confusion_from_predictions(np.asarray(labels, dtype=np.int64), predicted)


__all__ = ["ConfusionData", "compute_confusion_matrix", "confusion_from_predictions"]
