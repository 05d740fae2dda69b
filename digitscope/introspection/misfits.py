"""Find the samples a trained network finds hardest."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..core.network import LOSS_FLOOR, NeuralNetwork, check_class
from ..core.types import OUTPUT_CLASSES, Array

# Loss recorded for a sample whose cross-entropy is not finite.
MISFIT_LOSS_CAP = 20.0


@dataclass(frozen=True)
class Misfit:
    input: Array
    true_label: int
    predicted_label: int
    confidence: float
    true_confidence: float
    loss: float
    is_wrong: bool
    probabilities: Array


@dataclass(frozen=True)
class MisfitSummary:
    total_samples: int
    total_wrong: int
    accuracy: float
    class_errors: Array
    most_confused_pair: Optional[Tuple[int, int]]


def find_misfits(
    network: NeuralNetwork,
    inputs: Sequence[Sequence[float]] | Array,
    labels: Sequence[int] | Array,
    count: int = 24,
) -> List[Misfit]:
    """Return up to ``count`` samples sorted by cross-entropy loss, hardest first."""

    results: List[Misfit] = []
    for sample, label in zip(inputs, labels):
        label = check_class(label)
        output = network.forward(sample)
        predicted = int(np.argmax(output))
        true_confidence = float(output[label])
        with np.errstate(all="ignore"):
            loss = -np.log(max(true_confidence, LOSS_FLOOR))
        results.append(
            Misfit(
                input=np.array(sample, dtype=np.float64),
                true_label=label,
                predicted_label=predicted,
                confidence=float(output[predicted]),
                true_confidence=true_confidence,
                loss=float(loss) if np.isfinite(loss) else MISFIT_LOSS_CAP,
                is_wrong=predicted != label,
                probabilities=output.copy(),
            )
        )
    results.sort(key=lambda m: m.loss, reverse=True)
    return results[: max(0, int(count))]


def compute_misfit_summary(
    network: NeuralNetwork,
    inputs: Sequence[Sequence[float]] | Array,
    labels: Sequence[int] | Array,
) -> MisfitSummary:
    class_errors = np.zeros(OUTPUT_CLASSES, dtype=np.int64)
    pairs: Counter = Counter()
    total = 0
    for sample, label in zip(inputs, labels):
        total += 1
        label = check_class(label)
        predicted = int(np.argmax(network.forward(sample)))
        if predicted != label:
            class_errors[label] += 1
            pairs[(label, predicted)] += 1

    total_wrong = int(class_errors.sum())
    # Counter keeps insertion order, so ties go to the pair seen first.
    most_confused = pairs.most_common(1)[0][0] if pairs else None
    return MisfitSummary(
        total_samples=total,
        total_wrong=total_wrong,
        accuracy=1.0 - total_wrong / total if total else 0.0,
        class_errors=class_errors,
        most_confused_pair=most_confused,
    )


__all__ = ["MISFIT_LOSS_CAP", "Misfit", "MisfitSummary", "compute_misfit_summary", "find_misfits"]
