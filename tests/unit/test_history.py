import numpy as np
import pytest

from digitscope.core.network import NeuralNetwork
from digitscope.core.types import LayerConfig, TrainingConfig
from digitscope.introspection.epoch_replay import EpochRecorder, params_to_layers, replay_forward
from digitscope.introspection.pca import collect_hidden_activations, project_to_2d
from digitscope.introspection.weight_evolution import WeightEvolutionRecorder, compute_weight_delta


def _trained(epochs, recorders=(), activation="relu"):
    config = TrainingConfig(learning_rate=0.1, layers=[LayerConfig(5, activation), LayerConfig(3, activation)])
    net = NeuralNetwork(6, config, seed=0)
    rng = np.random.default_rng(0)
    inputs = rng.random((20, 6))
    labels = np.arange(20) % 10
    for _ in range(epochs):
        snapshot = net.train_batch(inputs, labels)
        for recorder in recorders:
            recorder.record(snapshot)
    return net, inputs


def test_epoch_recorder_thins_and_doubles_interval():
    recorder = EpochRecorder(max_snapshots=4)
    _trained(10, [recorder])
    assert [s.epoch for s in recorder.timeline] == [1, 5, 9]
    assert recorder.record_interval == 4
    assert recorder.get_snapshot(0).epoch == 1
    assert recorder.get_snapshot(3) is None
    recorder.clear()
    assert len(recorder) == 0


def test_epoch_recorder_copies_parameters():
    recorder = EpochRecorder()
    net, _ = _trained(2, [recorder])
    stored = recorder.timeline[-1].params[0].weights.copy()
    net.layers[0].weights += 1.0
    np.testing.assert_array_equal(recorder.timeline[-1].params[0].weights, stored)


@pytest.mark.parametrize("activation", ["relu", "tanh"])
def test_replay_forward_matches_live_network(activation):
    recorder = EpochRecorder()
    net, inputs = _trained(3, [recorder], activation=activation)
    params = recorder.timeline[-1].params
    for x in inputs[:5]:
        replay = replay_forward(params, x, activation)
        live = net.predict(x)
        np.testing.assert_allclose(replay.probabilities, live.probabilities, atol=1e-12)
        assert replay.label == live.label


def test_replay_forward_accepts_per_layer_activations():
    recorder = EpochRecorder()
    _, inputs = _trained(1, [recorder])
    params = recorder.timeline[0].params
    result = replay_forward(params, inputs[0], ["relu", "sigmoid"])
    assert abs(result.probabilities.sum() - 1.0) < 1e-9
    with pytest.raises(ValueError):
        replay_forward(params, inputs[0], ["relu"])


def test_params_to_layers_zeroes_activations():
    recorder = EpochRecorder()
    _trained(1, [recorder])
    layers = params_to_layers(recorder.timeline[0].params)
    assert [layer.size for layer in layers] == [5, 3, 10]
    assert all(not layer.activations.any() for layer in layers)


def test_weight_evolution_frames():
    recorder = WeightEvolutionRecorder(max_frames=3, record_interval=1)
    _trained(6, [recorder])
    frames = recorder.frames
    assert [f.epoch for f in frames] == [1, 4, 6]
    assert recorder.record_interval == 4
    assert frames[0].weights.dtype == np.float32
    assert frames[0].weights.shape == (5, 6)
    assert frames[0].neuron_count == 5
    assert compute_weight_delta(frames[0], frames[0], 2) == 0.0
    assert compute_weight_delta(frames[0], frames[-1], 0) >= 0.0


def test_weight_evolution_respects_interval():
    recorder = WeightEvolutionRecorder(record_interval=2)
    _trained(6, [recorder])
    assert [f.epoch for f in recorder.frames] == [2, 4, 6]
    recorder.clear()
    assert recorder.record_interval == 2


def test_project_to_2d_degenerate_inputs():
    single = project_to_2d([[1.0, 2.0, 3.0]])
    np.testing.assert_array_equal(single.points, np.zeros((1, 2)))
    assert single.variance == (0.0, 0.0)
    empty_width = project_to_2d(np.zeros((4, 0)))
    assert empty_width.points.shape == (4, 2)
    assert empty_width.variance == (0.0, 0.0)


def test_project_to_2d_matches_eigen_decomposition():
    rng = np.random.default_rng(0)
    samples = rng.standard_normal((200, 4)) * np.array([5.0, 2.0, 1.0, 0.5])
    projection = project_to_2d(samples)
    eigenvalues = np.sort(np.linalg.eigvalsh(np.cov(samples.T)))[::-1]
    assert projection.points.shape == (200, 2)
    assert projection.variance[0] == pytest.approx(eigenvalues[0], rel=1e-4)
    assert projection.variance[1] == pytest.approx(eigenvalues[1], rel=1e-4)
    np.testing.assert_allclose(projection.points.mean(axis=0), 0.0, atol=1e-9)


def test_project_to_2d_collinear_data():
    t = np.linspace(-1, 1, 11)
    samples = np.outer(t, [1.0, 2.0, 0.0])
    projection = project_to_2d(samples)
    assert projection.variance[0] == pytest.approx(np.var(t, ddof=1) * 5)
    assert projection.variance[1] < 1e-8


def test_collect_hidden_activations():
    net, inputs = _trained(1)
    acts = collect_hidden_activations(net, inputs[:4])
    assert acts.shape == (4, 3)
    first = collect_hidden_activations(net, inputs[:4], layer_idx=0)
    assert first.shape == (4, 5)
    with pytest.raises(ValueError):
        collect_hidden_activations(net, inputs[:4], layer_idx=2)
