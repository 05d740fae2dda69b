"""Systematic neuron knockout study."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..core.network import NeuralNetwork
from ..core.types import Array, NeuronStatus
from ..data.cache import Dataset, TrainingDataCache, resolve_dataset

logger = logging.getLogger(__name__)


@dataclass
class AblationResult:
    layer_idx: int
    neuron_idx: int
    accuracy_without: float
    accuracy_drop: float
    importance: float = 0.0


@dataclass(frozen=True)
class AblationStudy:
    baseline_accuracy: float
    layers: List[List[AblationResult]]
    timestamp: float
    total_neurons: int
    most_critical: Optional[AblationResult]
    most_redundant: Optional[AblationResult]


def evaluate_accuracy(network: NeuralNetwork, inputs: Array, labels: Array) -> float:
    """Fraction of samples classified correctly; 0 for an empty set."""

    n = len(inputs)
    if n == 0:
        return 0.0
    correct = 0
    for sample, label in zip(inputs, labels):
        if int(np.argmax(network.forward(sample))) == int(label):
            correct += 1
    return correct / n


def run_ablation_study(
    network: NeuralNetwork,
    samples_per_digit: int = 10,
    *,
    data: Dataset | None = None,
    cache: TrainingDataCache | None = None,
) -> AblationStudy:
    """Kill each hidden neuron in turn and record the accuracy drop.

    The network's neuron statuses are identical before and after the call,
    including when evaluation raises.
    """

    inputs, labels = resolve_dataset(samples_per_digit, data, cache)
    saved = network.get_all_neuron_statuses()
    layer_results: List[List[AblationResult]] = []
    try:
        network.clear_all_masks()
        baseline = evaluate_accuracy(network, inputs, labels)
        for layer_idx, layer_config in enumerate(network.config.layers):
            results = []
            for neuron_idx in range(int(layer_config.neurons)):
                network.set_neuron_status(layer_idx, neuron_idx, NeuronStatus.KILLED)
                accuracy = evaluate_accuracy(network, inputs, labels)
                network.set_neuron_status(layer_idx, neuron_idx, NeuronStatus.ACTIVE)
                results.append(AblationResult(layer_idx, neuron_idx, accuracy, baseline - accuracy))
            layer_results.append(results)
    finally:
        network.clear_all_masks()
        for (layer_idx, neuron_idx), status in saved.items():
            network.set_neuron_status(layer_idx, neuron_idx, status)

    flat = [result for layer in layer_results for result in layer]
    max_drop = max((r.accuracy_drop for r in flat), default=0.0)
    if max_drop > 0:
        for result in flat:
            result.importance = max(0.0, result.accuracy_drop / max_drop)

    most_critical = max(flat, key=lambda r: r.accuracy_drop, default=None)
    most_redundant = min(flat, key=lambda r: r.accuracy_drop, default=None)
    logger.info(
        "Ablation over %d neurons: baseline=%.3f max_drop=%.3f",
        len(flat),
        baseline,
        max_drop,
    )
    return AblationStudy(
        baseline_accuracy=baseline,
        layers=layer_results,
        timestamp=time.time(),
        total_neurons=len(flat),
        most_critical=most_critical,
        most_redundant=most_redundant,
    )


__all__ = ["AblationResult", "AblationStudy", "evaluate_accuracy", "run_ablation_study"]
