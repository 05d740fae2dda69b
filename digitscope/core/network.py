"""Single-sample feed-forward classifier with per-neuron surgery."""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Sequence, Tuple

import numpy as np

from .activations import activate, activate_derivative, argmax, softmax, xavier_init
from .types import (
    MAX_NEURONS_PER_LAYER,
    OUTPUT_CLASSES,
    Array,
    LayerState,
    NeuronStatus,
    Prediction,
    TrainingConfig,
    TrainingSnapshot,
)

logger = logging.getLogger(__name__)

LOSS_FLOOR = 1e-10
LOSS_CAP = 10.0


def check_class(index: int) -> int:
    index = int(index)
    if not 0 <= index < OUTPUT_CLASSES:
        raise ValueError(f"Class index must be in [0, {OUTPUT_CLASSES - 1}], got {index}")
    return index


def _coerce_config(config: TrainingConfig | Mapping[str, object]) -> TrainingConfig:
    if isinstance(config, TrainingConfig):
        return config
    return TrainingConfig.from_mapping(config)


class NeuralNetwork:
    """Fully connected network trained one sample at a time.

    The configured hidden layers are followed by a fixed 10-unit softmax
    output layer. Every layer owns pre-allocated ``pre_activations`` and
    ``activations`` buffers that :meth:`forward` overwrites in place.

    A single instance is not reentrant: drive it from one thread at a time.
    Separate instances share no state.
    """

    def __init__(
        self,
        input_size: int,
        config: TrainingConfig | Mapping[str, object],
        *,
        seed: int | None = None,
    ) -> None:
        self._config = _coerce_config(config)
        self._config.validate()
        self._rng = np.random.default_rng(seed)
        self._epoch = 0
        self._loss_history: List[float] = []
        self._accuracy_history: List[float] = []
        self._masks: Dict[int, NeuronStatus] = {}
        self._layers: List[LayerState] = []
        self._killed: List[Array] = []
        self._inactive: List[Array] = []
        self._snapshot_cache: List[LayerState] | None = None
        self._target = np.zeros(OUTPUT_CLASSES, dtype=np.float64)
        self._initialize_weights(input_size)

    # ------------------------------------------------------------------
    # Construction

    def _initialize_weights(self, input_size: int) -> None:
        self._input_size = int(input_size)
        sizes = [int(layer.neurons) for layer in self._config.layers] + [OUTPUT_CLASSES]
        layers: List[LayerState] = []
        prev = self._input_size
        for size in sizes:
            layers.append(
                LayerState(
                    weights=xavier_init(prev, size, (size, prev), self._rng),
                    biases=np.zeros(size, dtype=np.float64),
                    pre_activations=np.zeros(size, dtype=np.float64),
                    activations=np.zeros(size, dtype=np.float64),
                )
            )
            prev = size
        self._layers = layers
        self._killed = [np.zeros(size, dtype=bool) for size in sizes]
        self._inactive = [np.zeros(size, dtype=bool) for size in sizes]
        for layer_idx in range(len(self._config.layers)):
            self._rebuild_mask_arrays(layer_idx)
        self._invalidate_snapshot()
        logger.debug(
            "Initialised network: input=%d layers=%s lr=%g",
            self._input_size,
            sizes,
            self._config.learning_rate,
        )

    def reset(self, input_size: int, config: TrainingConfig | Mapping[str, object] | None = None) -> None:
        """Clear epoch, histories and masks, then re-initialise the weights."""

        if config is not None:
            new_config = _coerce_config(config)
            new_config.validate()
            self._config = new_config
        self._epoch = 0
        self._loss_history = []
        self._accuracy_history = []
        self._masks.clear()
        self._initialize_weights(input_size)

    # ------------------------------------------------------------------
    # Read accessors

    @property
    def config(self) -> TrainingConfig:
        return self._config

    @property
    def input_size(self) -> int:
        return self._input_size

    @property
    def layers(self) -> List[LayerState]:
        """Live layer states. Borrowed: do not mutate, copy to keep."""

        return self._layers

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def loss_history(self) -> List[float]:
        return list(self._loss_history)

    @property
    def accuracy_history(self) -> List[float]:
        return list(self._accuracy_history)

    @property
    def num_hidden_layers(self) -> int:
        return len(self._config.layers)

    def layer_activation(self, layer_idx: int) -> str:
        """Activation name of ``layer_idx``; the output layer reports ``softmax``."""

        if 0 <= layer_idx < len(self._config.layers):
            return self._config.layers[layer_idx].activation
        return "softmax"

    def killed_mask(self, layer_idx: int) -> Array:
        """Boolean array of killed neurons in ``layer_idx`` (read-only view)."""

        return self._killed[layer_idx]

    def inactive_mask(self, layer_idx: int) -> Array:
        """Boolean array of frozen or killed neurons in ``layer_idx`` (read-only view)."""

        return self._inactive[layer_idx]

    # ------------------------------------------------------------------
    # Forward / backward

    def forward(self, inputs: Sequence[float] | Array) -> Array:
        """Run a forward pass and return the output probabilities.

        The returned array is the output layer's live activation buffer. It is
        overwritten by the next call; copy it to keep the values.
        """

        x = np.asarray(inputs, dtype=np.float64)
        last = len(self._layers) - 1
        with np.errstate(all="ignore"):
            for idx, layer in enumerate(self._layers):
                pre = layer.pre_activations
                np.matmul(layer.weights, x, out=pre)
                pre += layer.biases
                pre[~np.isfinite(pre)] = 0.0
                if idx == last:
                    softmax(pre, out=layer.activations)
                else:
                    layer.activations[...] = activate(pre, self._config.layers[idx].activation)
                    layer.activations[self._killed[idx]] = 0.0
                x = layer.activations
        return x

    def backward(self, inputs: Sequence[float] | Array, target: Sequence[float] | Array) -> None:
        """Apply one SGD step using the activations of the last forward pass."""

        x = np.asarray(inputs, dtype=np.float64)
        target = np.asarray(target, dtype=np.float64)
        lr = self._config.learning_rate
        layers = self._layers
        with np.errstate(all="ignore"):
            delta = layers[-1].activations - target
            for idx in range(len(layers) - 1, -1, -1):
                layer = layers[idx]
                prev_activations = layers[idx - 1].activations if idx > 0 else x

                upstream = None
                if idx > 0:
                    prev_idx = idx - 1
                    # Uses this layer's weights before the update below.
                    upstream = layer.weights.T @ delta
                    upstream *= activate_derivative(
                        layers[prev_idx].pre_activations,
                        self._config.layers[prev_idx].activation,
                    )
                    upstream[~np.isfinite(upstream)] = 0.0
                    upstream[self._killed[prev_idx]] = 0.0

                grad_w = np.outer(lr * delta, prev_activations)
                grad_w[~np.isfinite(grad_w)] = 0.0
                grad_b = lr * delta
                grad_b[~np.isfinite(grad_b)] = 0.0
                inactive = self._inactive[idx]
                grad_w[inactive] = 0.0
                grad_b[inactive] = 0.0
                layer.weights -= grad_w
                layer.biases -= grad_b

                if upstream is not None:
                    delta = upstream
        self._invalidate_snapshot()

    # ------------------------------------------------------------------
    # Training / inference

    def train_batch(self, inputs: Sequence[Sequence[float]] | Array, labels: Sequence[int] | Array) -> TrainingSnapshot:
        """Train one epoch over ``inputs`` in a freshly shuffled order."""

        n = len(inputs)
        # Generator.permutation is a Fisher-Yates shuffle driven by the network RNG.
        order = self._rng.permutation(n)
        total_loss = 0.0
        correct = 0
        target = self._target
        for idx in order:
            sample = inputs[idx]
            label = check_class(labels[idx])
            target.fill(0.0)
            target[label] = 1.0

            output = self.forward(sample)
            with np.errstate(all="ignore"):
                loss = -np.log(max(float(output[label]), LOSS_FLOOR))
            total_loss += loss if np.isfinite(loss) else LOSS_CAP
            if argmax(output) == label:
                correct += 1

            self.backward(sample, target)

        if n > 0:
            last_probs = self._layers[-1].activations.copy()
            avg_loss = total_loss / n
            accuracy = correct / n
        else:
            last_probs = np.full(OUTPUT_CLASSES, 1.0 / OUTPUT_CLASSES)
            avg_loss = 0.0
            accuracy = 0.0

        self._epoch += 1
        self._loss_history.append(float(avg_loss))
        self._accuracy_history.append(float(accuracy))
        self._invalidate_snapshot()

        predictions = np.zeros(OUTPUT_CLASSES, dtype=np.float64)
        predictions[argmax(last_probs)] = 1.0
        return TrainingSnapshot(
            epoch=self._epoch,
            loss=float(avg_loss),
            accuracy=float(accuracy),
            layers=self.snapshot_layers(),
            predictions=predictions,
            output_probabilities=last_probs,
        )

    def predict(self, inputs: Sequence[float] | Array) -> Prediction:
        """Classify ``inputs``. ``probabilities`` is an owned copy.

        ``layers`` share the cached weight and bias copies of
        :meth:`snapshot_layers` but carry this input's own activations.
        """

        probabilities = self.forward(inputs).copy()
        layers = [
            LayerState(
                weights=cached.weights,
                biases=cached.biases,
                pre_activations=live.pre_activations.copy(),
                activations=live.activations.copy(),
            )
            for cached, live in zip(self.snapshot_layers(), self._layers)
        ]
        return Prediction(label=argmax(probabilities), probabilities=probabilities, layers=layers)

    def snapshot_layers(self) -> List[LayerState]:
        """Deep copy of every layer, cached until the next mutating call.

        Repeated calls between mutations return the same list object. Callers
        that need the old values after ``train_batch``/``backward``/``reset``
        must copy it themselves.
        """

        if self._snapshot_cache is None:
            self._snapshot_cache = [layer.copy() for layer in self._layers]
        return self._snapshot_cache

    def _invalidate_snapshot(self) -> None:
        self._snapshot_cache = None

    # ------------------------------------------------------------------
    # Neuron surgery

    @staticmethod
    def _mask_key(layer_idx: int, neuron_idx: int) -> int:
        return layer_idx * MAX_NEURONS_PER_LAYER + neuron_idx

    def _is_hidden_neuron(self, layer_idx: int, neuron_idx: int) -> bool:
        layers = self._config.layers
        return 0 <= layer_idx < len(layers) and 0 <= neuron_idx < int(layers[layer_idx].neurons)

    def _rebuild_mask_arrays(self, layer_idx: int) -> None:
        killed = self._killed[layer_idx]
        inactive = self._inactive[layer_idx]
        killed.fill(False)
        inactive.fill(False)
        base = layer_idx * MAX_NEURONS_PER_LAYER
        for key, status in self._masks.items():
            if base <= key < base + MAX_NEURONS_PER_LAYER:
                neuron = key - base
                inactive[neuron] = True
                if status is NeuronStatus.KILLED:
                    killed[neuron] = True

    def set_neuron_status(self, layer_idx: int, neuron_idx: int, status: NeuronStatus | str) -> None:
        status = NeuronStatus.coerce(status)
        layer_idx, neuron_idx = int(layer_idx), int(neuron_idx)
        if not self._is_hidden_neuron(layer_idx, neuron_idx):
            logger.debug("Ignoring %s for out-of-range neuron (%d, %d)", status.value, layer_idx, neuron_idx)
            return
        key = self._mask_key(layer_idx, neuron_idx)
        if status is NeuronStatus.ACTIVE:
            self._masks.pop(key, None)
        else:
            self._masks[key] = status
        self._rebuild_mask_arrays(layer_idx)
        logger.debug("Neuron (%d, %d) -> %s", layer_idx, neuron_idx, status.value)

    def get_neuron_status(self, layer_idx: int, neuron_idx: int) -> NeuronStatus:
        if not self._is_hidden_neuron(int(layer_idx), int(neuron_idx)):
            return NeuronStatus.ACTIVE
        return self._masks.get(self._mask_key(int(layer_idx), int(neuron_idx)), NeuronStatus.ACTIVE)

    def get_all_neuron_statuses(self) -> Dict[Tuple[int, int], NeuronStatus]:
        """Every non-active neuron keyed by ``(layer, neuron)``."""

        return {divmod(key, MAX_NEURONS_PER_LAYER): status for key, status in self._masks.items()}

    def clear_all_masks(self) -> None:
        self._masks.clear()
        for layer_idx in range(len(self._config.layers)):
            self._rebuild_mask_arrays(layer_idx)


__all__ = ["NeuralNetwork", "check_class"]
