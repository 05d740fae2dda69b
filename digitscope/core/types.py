"""Core typing contracts for digitscope."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Mapping, Sequence

import numpy as np

Array = np.ndarray

OUTPUT_CLASSES = 10
INPUT_DIM = 28
INPUT_SIZE = INPUT_DIM * INPUT_DIM

# Upper bound used to build flat integer mask keys: ``layer * MAX + neuron``.
MAX_NEURONS_PER_LAYER = 1 << 16

ACTIVATIONS = ("relu", "sigmoid", "tanh")


class NeuronStatus(str, Enum):
    """Runtime override applied to a single hidden neuron."""

    ACTIVE = "active"
    FROZEN = "frozen"
    KILLED = "killed"

    @classmethod
    def coerce(cls, value: "NeuronStatus | str") -> "NeuronStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError as exc:
            allowed = ", ".join(s.value for s in cls)
            raise ValueError(f"Unknown neuron status {value!r}. Expected one of: {allowed}") from exc


@dataclass(frozen=True)
class LayerConfig:
    """One configured hidden layer."""

    neurons: int
    activation: str = "relu"


@dataclass(frozen=True)
class TrainingConfig:
    """Network shape and learning rate.

    The 10-unit softmax output layer is never listed here; the engine appends
    it after ``layers``.
    """

    learning_rate: float = 0.01
    layers: Sequence[LayerConfig] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "layers", tuple(self.layers))

    def validate(self) -> None:
        if not self.learning_rate > 0:
            raise ValueError(f"learning_rate must be positive, got {self.learning_rate}")
        for idx, layer in enumerate(self.layers):
            if int(layer.neurons) <= 0:
                raise ValueError(f"Layer {idx} must have a positive neuron count, got {layer.neurons}")
            if int(layer.neurons) >= MAX_NEURONS_PER_LAYER:
                raise ValueError(f"Layer {idx} exceeds {MAX_NEURONS_PER_LAYER - 1} neurons")
            if layer.activation not in ACTIVATIONS:
                raise ValueError(
                    f"Layer {idx} has unknown activation {layer.activation!r}. "
                    f"Expected one of: {', '.join(ACTIVATIONS)}"
                )

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "TrainingConfig":
        lr = data.get("learning_rate", data.get("learningRate", 0.01))
        layers = [
            LayerConfig(neurons=int(item["neurons"]), activation=str(item.get("activation", "relu")))
            for item in data.get("layers", [])  # type: ignore[union-attr]
        ]
        return cls(learning_rate=float(lr), layers=layers)

    def to_dict(self) -> dict:
        return {
            "learning_rate": self.learning_rate,
            "layers": [{"neurons": l.neurons, "activation": l.activation} for l in self.layers],
        }


@dataclass
class LayerState:
    """Live parameters and the most recent forward-pass values of one layer.

    ``weights`` has shape ``(neurons, previous_layer_size)``.
    """

    weights: Array
    biases: Array
    pre_activations: Array
    activations: Array

    @property
    def size(self) -> int:
        return int(self.biases.shape[0])

    def copy(self) -> "LayerState":
        return LayerState(
            weights=self.weights.copy(),
            biases=self.biases.copy(),
            pre_activations=self.pre_activations.copy(),
            activations=self.activations.copy(),
        )


@dataclass(frozen=True)
class TrainingSnapshot:
    """Result of one ``train_batch`` call."""

    epoch: int
    loss: float
    accuracy: float
    layers: List[LayerState]
    predictions: Array
    output_probabilities: Array


@dataclass(frozen=True)
class Prediction:
    label: int
    probabilities: Array
    layers: List[LayerState]


__all__ = [
    "ACTIVATIONS",
    "Array",
    "INPUT_DIM",
    "INPUT_SIZE",
    "LayerConfig",
    "LayerState",
    "MAX_NEURONS_PER_LAYER",
    "NeuronStatus",
    "OUTPUT_CLASSES",
    "Prediction",
    "TrainingConfig",
    "TrainingSnapshot",
]
