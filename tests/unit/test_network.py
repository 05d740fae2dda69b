import numpy as np
import pytest

from digitscope.core.network import NeuralNetwork
from digitscope.core.types import LayerConfig, NeuronStatus, TrainingConfig


def _config(*sizes, activation="relu", lr=0.05):
    return TrainingConfig(learning_rate=lr, layers=[LayerConfig(n, activation) for n in sizes])


def _toy_data(input_size=12, per_class=2, seed=0):
    rng = np.random.default_rng(seed)
    labels = np.repeat(np.arange(10), per_class)
    inputs = rng.random((labels.size, input_size))
    return inputs, labels


def _assert_distribution(probs):
    assert probs.shape == (10,)
    assert np.all(np.isfinite(probs))
    assert np.all(probs >= 0)
    assert abs(float(probs.sum()) - 1.0) < 1e-6


@pytest.mark.parametrize("activation", ["relu", "sigmoid", "tanh"])
def test_forward_returns_distribution_for_pathological_inputs(activation):
    net = NeuralNetwork(8, _config(6, 4, activation=activation), seed=1)
    for x in (
        np.zeros(8),
        np.full(8, 1e300),
        np.array([np.nan, 1, 2, 3, np.inf, -np.inf, 0, 1]),
        np.full(8, np.nan),
    ):
        _assert_distribution(net.forward(x))


def test_forward_accepts_mapping_config():
    net = NeuralNetwork(5, {"learningRate": 0.1, "layers": [{"neurons": 3, "activation": "tanh"}]}, seed=0)
    assert net.config.learning_rate == 0.1
    assert net.layer_activation(0) == "tanh"
    assert net.layer_activation(1) == "softmax"
    _assert_distribution(net.forward(np.ones(5)))


def test_no_hidden_layers_is_a_softmax_regression():
    net = NeuralNetwork(4, TrainingConfig(learning_rate=0.1, layers=[]), seed=0)
    assert net.num_hidden_layers == 0
    assert len(net.layers) == 1
    _assert_distribution(net.forward(np.ones(4)))


@pytest.mark.parametrize(
    "config",
    [
        {"learning_rate": 0.1, "layers": [{"neurons": 0}]},
        {"learning_rate": 0.0, "layers": [{"neurons": 4}]},
        {"learning_rate": 0.1, "layers": [{"neurons": 4, "activation": "gelu"}]},
    ],
)
def test_invalid_config_is_rejected(config):
    with pytest.raises(ValueError):
        NeuralNetwork(4, config)


def test_predict_label_matches_argmax():
    net = NeuralNetwork(12, _config(8), seed=3)
    inputs, _ = _toy_data()
    for x in inputs:
        pred = net.predict(x)
        assert pred.label == int(np.argmax(pred.probabilities))


def test_predict_probabilities_are_owned():
    net = NeuralNetwork(12, _config(8), seed=3)
    inputs, _ = _toy_data()
    first = net.predict(inputs[0])
    kept = first.probabilities.copy()
    net.predict(inputs[1])
    np.testing.assert_array_equal(first.probabilities, kept)


def test_predict_layers_follow_the_current_input():
    net = NeuralNetwork(6, TrainingConfig(learning_rate=0.1, layers=[LayerConfig(5, "tanh")]), seed=1)
    first = net.predict(np.ones(6))
    second = net.predict(np.full(6, -3.0))
    np.testing.assert_array_equal(second.layers[-1].activations, second.probabilities)
    np.testing.assert_array_equal(first.layers[-1].activations, first.probabilities)
    assert second.layers is not first.layers
    assert second.layers[0].weights is first.layers[0].weights


def test_train_batch_invariants():
    net = NeuralNetwork(12, _config(8), seed=4)
    inputs, labels = _toy_data()
    for expected in range(1, 4):
        snapshot = net.train_batch(inputs, labels)
        assert snapshot.epoch == expected
        assert 0.0 <= snapshot.accuracy <= 1.0
        assert np.isfinite(snapshot.loss) and snapshot.loss >= 0
        assert len(net.loss_history) == expected
        assert len(net.accuracy_history) == expected
        assert snapshot.predictions.sum() == 1.0
        _assert_distribution(snapshot.output_probabilities)


def test_train_batch_on_empty_set():
    net = NeuralNetwork(12, _config(8), seed=4)
    snapshot = net.train_batch(np.zeros((0, 12)), np.zeros(0, dtype=int))
    assert snapshot.loss == 0.0
    assert snapshot.accuracy == 0.0
    np.testing.assert_allclose(snapshot.output_probabilities, np.full(10, 0.1))
    assert net.epoch == 1


def test_train_batch_rejects_bad_label():
    net = NeuralNetwork(12, _config(8), seed=4)
    with pytest.raises(ValueError):
        net.train_batch(np.zeros((1, 12)), [10])


def test_same_seed_gives_same_training():
    inputs, labels = _toy_data()
    a = NeuralNetwork(12, _config(8), seed=7)
    b = NeuralNetwork(12, _config(8), seed=7)
    for _ in range(3):
        a.train_batch(inputs, labels)
        b.train_batch(inputs, labels)
    assert a.loss_history == b.loss_history
    np.testing.assert_array_equal(a.layers[0].weights, b.layers[0].weights)


def test_frozen_neuron_is_bit_identical_after_training():
    net = NeuralNetwork(12, _config(8), seed=5)
    inputs, labels = _toy_data()
    net.set_neuron_status(0, 3, NeuronStatus.FROZEN)
    row_before = net.layers[0].weights[3].copy()
    bias_before = net.layers[0].biases[3]
    others_before = np.delete(net.layers[0].weights, 3, axis=0).copy()

    for _ in range(5):
        net.train_batch(inputs, labels)

    np.testing.assert_array_equal(net.layers[0].weights[3], row_before)
    assert net.layers[0].biases[3] == bias_before
    assert not np.array_equal(np.delete(net.layers[0].weights, 3, axis=0), others_before)


def test_killing_every_neuron_in_a_layer_keeps_a_valid_distribution():
    net = NeuralNetwork(12, _config(5, 4), seed=6)
    for n in range(5):
        net.set_neuron_status(0, n, "killed")
    pred = net.predict(np.ones(12))
    _assert_distribution(pred.probabilities)
    assert np.all(net.layers[0].activations == 0)


def test_clear_all_masks_restores_baseline():
    net = NeuralNetwork(12, _config(8, 6, activation="tanh"), seed=8)
    x = _toy_data()[0][0]
    baseline = net.predict(x).probabilities
    for n in range(4):
        net.set_neuron_status(0, n, NeuronStatus.KILLED)
    net.set_neuron_status(1, 2, NeuronStatus.FROZEN)
    assert not np.allclose(net.predict(x).probabilities, baseline, atol=1e-12)

    net.clear_all_masks()
    np.testing.assert_allclose(net.predict(x).probabilities, baseline, atol=1e-5)
    assert net.get_all_neuron_statuses() == {}


def test_neuron_status_lookup_and_out_of_range():
    net = NeuralNetwork(12, _config(4), seed=0)
    net.set_neuron_status(0, 1, "frozen")
    net.set_neuron_status(0, 2, "killed")
    assert net.get_neuron_status(0, 1) is NeuronStatus.FROZEN
    assert net.get_all_neuron_statuses() == {(0, 1): NeuronStatus.FROZEN, (0, 2): NeuronStatus.KILLED}

    net.set_neuron_status(0, 99, "killed")
    net.set_neuron_status(1, 0, "killed")  # output layer
    assert net.get_neuron_status(0, 99) is NeuronStatus.ACTIVE
    assert net.get_neuron_status(5, 0) is NeuronStatus.ACTIVE
    assert len(net.get_all_neuron_statuses()) == 2

    net.set_neuron_status(0, 1, "active")
    assert net.get_all_neuron_statuses() == {(0, 2): NeuronStatus.KILLED}

    with pytest.raises(ValueError):
        net.set_neuron_status(0, 0, "sleeping")


def test_snapshot_layers_cached_until_mutation():
    net = NeuralNetwork(12, _config(4), seed=0)
    inputs, labels = _toy_data()
    first = net.snapshot_layers()
    assert net.snapshot_layers() is first
    net.train_batch(inputs, labels)
    second = net.snapshot_layers()
    assert second is not first
    assert not np.array_equal(first[-1].weights, second[-1].weights)


def test_reset_clears_state_and_applies_new_topology():
    net = NeuralNetwork(12, _config(4), seed=0)
    inputs, labels = _toy_data()
    net.train_batch(inputs, labels)
    net.set_neuron_status(0, 0, "killed")

    net.reset(6, _config(3, 2))
    assert net.epoch == 0
    assert net.loss_history == []
    assert net.get_all_neuron_statuses() == {}
    assert [layer.weights.shape for layer in net.layers] == [(3, 6), (2, 3), (10, 2)]
