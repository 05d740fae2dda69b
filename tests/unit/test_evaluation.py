import numpy as np
import pytest

from digitscope.core.network import NeuralNetwork
from digitscope.core.types import INPUT_SIZE, LayerConfig, NeuronStatus, Prediction, TrainingConfig
from digitscope.data import generate_training_data
from digitscope.introspection.ablation import run_ablation_study
from digitscope.introspection.confusion import compute_confusion_matrix, confusion_from_predictions
from digitscope.introspection.decision_boundary import compute_decision_boundary, generate_exemplar
from digitscope.introspection.misfits import compute_misfit_summary, find_misfits


@pytest.fixture(scope="module")
def dataset():
    return generate_training_data(2, np.random.default_rng(0))


@pytest.fixture()
def network():
    config = TrainingConfig(learning_rate=0.05, layers=[LayerConfig(6, "relu"), LayerConfig(4, "relu")])
    return NeuralNetwork(INPUT_SIZE, config, seed=0)


def _statuses(net):
    return {
        (l, n): net.get_neuron_status(l, n)
        for l, layer in enumerate(net.config.layers)
        for n in range(layer.neurons)
    }


def test_ablation_leaves_masks_unchanged(network, dataset):
    network.set_neuron_status(0, 1, NeuronStatus.FROZEN)
    network.set_neuron_status(1, 3, NeuronStatus.KILLED)
    before = _statuses(network)

    study = run_ablation_study(network, data=dataset)

    assert _statuses(network) == before
    assert study.total_neurons == 10
    assert [len(layer) for layer in study.layers] == [6, 4]
    assert 0.0 <= study.baseline_accuracy <= 1.0
    for layer in study.layers:
        for result in layer:
            assert 0.0 <= result.importance <= 1.0
            assert result.accuracy_drop == pytest.approx(study.baseline_accuracy - result.accuracy_without)
    flat = [r for layer in study.layers for r in layer]
    assert study.most_critical.accuracy_drop == max(r.accuracy_drop for r in flat)
    assert study.most_redundant.accuracy_drop == min(r.accuracy_drop for r in flat)


def test_ablation_on_empty_set(network):
    network.set_neuron_status(0, 0, NeuronStatus.KILLED)
    empty = (np.zeros((0, INPUT_SIZE)), np.zeros(0, dtype=np.int64))
    study = run_ablation_study(network, data=empty)
    assert study.baseline_accuracy == 0.0
    assert all(r.importance == 0.0 for layer in study.layers for r in layer)
    assert network.get_neuron_status(0, 0) is NeuronStatus.KILLED


def test_ablation_restores_masks_when_evaluation_fails(network, dataset, monkeypatch):
    network.set_neuron_status(0, 2, NeuronStatus.FROZEN)
    before = _statuses(network)

    def boom(inputs):
        raise RuntimeError("evaluation failed")

    monkeypatch.setattr(network, "forward", boom)
    with pytest.raises(RuntimeError):
        run_ablation_study(network, data=dataset)
    assert _statuses(network) == before


def test_find_misfits_sorted_and_limited(network, dataset):
    inputs, labels = dataset
    misfits = find_misfits(network, inputs, labels, count=5)
    assert len(misfits) == 5
    losses = [m.loss for m in misfits]
    assert losses == sorted(losses, reverse=True)
    for m in misfits:
        assert np.isfinite(m.loss) and m.loss <= 20.0
        assert m.is_wrong == (m.predicted_label != m.true_label)
        assert m.confidence == pytest.approx(m.probabilities.max())
        assert m.true_confidence == pytest.approx(m.probabilities[m.true_label])
    assert len(find_misfits(network, inputs, labels, count=1000)) == len(inputs)


def test_misfit_summary(network, dataset):
    inputs, labels = dataset
    summary = compute_misfit_summary(network, inputs, labels)
    assert summary.total_samples == len(inputs)
    assert summary.total_wrong == int(summary.class_errors.sum())
    assert summary.accuracy == pytest.approx(1 - summary.total_wrong / len(inputs))
    if summary.total_wrong:
        actual, predicted = summary.most_confused_pair
        assert actual != predicted


@pytest.mark.parametrize("bad_label", [-1, 10])
def test_misfit_tools_reject_out_of_range_labels(network, dataset, bad_label):
    inputs, _ = dataset
    with pytest.raises(ValueError):
        find_misfits(network, inputs[:1], [bad_label])
    with pytest.raises(ValueError):
        compute_misfit_summary(network, inputs[:1], [bad_label])


def test_misfit_summary_without_samples(network):
    summary = compute_misfit_summary(network, [], [])
    assert summary.total_samples == 0
    assert summary.accuracy == 0.0
    assert summary.most_confused_pair is None


def test_confusion_from_predictions_metrics():
    data = confusion_from_predictions(np.array([0, 0, 1, 1]), np.array([0, 1, 1, 1]))
    assert data.total == 4
    assert data.accuracy == pytest.approx(0.75)
    assert data.precision[0] == pytest.approx(1.0)
    assert data.recall[0] == pytest.approx(0.5)
    assert data.precision[1] == pytest.approx(2 / 3)
    assert data.recall[1] == pytest.approx(1.0)
    assert data.f1[1] == pytest.approx(0.8)
    assert np.all(data.precision[2:] == 0) and np.all(data.f1[2:] == 0)


def test_confusion_matrix_rows_match_class_counts(network, dataset):
    data = compute_confusion_matrix(network, data=dataset)
    np.testing.assert_array_equal(data.matrix.sum(axis=1), data.class_counts)
    assert data.total == len(dataset[0])
    for metric in (data.precision, data.recall, data.f1):
        assert np.all((metric >= 0) & (metric <= 1))


def test_generate_exemplar_range():
    exemplar = generate_exemplar(8, rng=np.random.default_rng(0))
    assert exemplar.shape == (INPUT_SIZE,)
    assert exemplar.min() >= 0 and exemplar.max() <= 1
    assert exemplar.max() > 0.3


def test_decision_boundary_grid(network):
    result = compute_decision_boundary(network, 3, 8, resolution=4, rng=np.random.default_rng(0))
    assert result.resolution == 4
    assert len(result.grid) == 4 and all(len(row) == 4 for row in result.grid)
    for row in result.grid:
        for cell in row:
            assert 0 <= cell.conf_a <= 1 and 0 <= cell.conf_b <= 1
            assert 0 <= cell.label < 10
            assert cell.max_conf >= max(cell.conf_a, cell.conf_b)


class _UniformClassifier:
    def __init__(self):
        self.calls = 0

    def predict(self, inputs):
        self.calls += 1
        assert np.all((inputs >= 0) & (inputs <= 1))
        return Prediction(label=0, probabilities=np.full(10, 0.1), layers=[])


def test_decision_boundary_accepts_any_classifier_and_degenerate_resolutions():
    clf = _UniformClassifier()
    single = compute_decision_boundary(clf, 1, 7, resolution=1)
    assert len(single.grid) == 1 and len(single.grid[0]) == 1
    assert single.grid[0][0].conf_a == pytest.approx(0.1)

    empty = compute_decision_boundary(clf, 1, 7, resolution=0)
    assert empty.grid == []
    assert clf.calls == 1
