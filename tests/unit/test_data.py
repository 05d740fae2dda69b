import numpy as np
import pytest

from digitscope.core.types import INPUT_SIZE
from digitscope.data import (
    TrainingDataCache,
    apply_noise,
    canvas_to_input,
    generate_digit_pattern,
    generate_noise_pattern,
    generate_training_data,
    resolve_dataset,
)


def test_generate_training_data_layout():
    inputs, labels = generate_training_data(3, np.random.default_rng(0))
    assert inputs.shape == (30, INPUT_SIZE)
    assert labels.tolist() == [d for d in range(10) for _ in range(3)]
    assert inputs.min() >= 0 and inputs.max() <= 1


def test_generate_training_data_is_seedable():
    a, _ = generate_training_data(2, np.random.default_rng(5))
    b, _ = generate_training_data(2, np.random.default_rng(5))
    np.testing.assert_array_equal(a, b)


@pytest.mark.parametrize("digit", range(10))
def test_every_digit_draws_strokes(digit):
    pattern = generate_digit_pattern(digit, np.random.default_rng(digit))
    assert pattern.shape == (INPUT_SIZE,)
    assert (pattern > 0.5).sum() > 20


def test_generate_digit_pattern_rejects_bad_digit():
    with pytest.raises(ValueError):
        generate_digit_pattern(11)


def test_canvas_to_input_grayscale_and_rgba():
    white = np.full((280, 280), 255.0)
    np.testing.assert_allclose(canvas_to_input(white), np.ones(INPUT_SIZE))

    rgba = np.zeros((56, 56, 4))
    rgba[:28, :, :3] = 255.0
    rgba[..., 3] = 255.0
    out = canvas_to_input(rgba).reshape(28, 28)
    np.testing.assert_allclose(out[:14], 1.0)
    np.testing.assert_allclose(out[14:], 0.0)


def test_canvas_to_input_custom_size():
    assert canvas_to_input(np.zeros((40, 40)), target_size=10).shape == (100,)


def test_cache_reuses_generated_sets():
    cache = TrainingDataCache(seed=0)
    first = cache.get(2)
    assert cache.get(2) is first
    assert 2 in cache and 3 not in cache
    assert len(cache) == 1
    cache.clear()
    assert len(cache) == 0


def test_resolve_dataset_prefers_explicit_data():
    cache = TrainingDataCache(seed=0)
    data = (np.zeros((3, INPUT_SIZE)), [0, 1, 2])
    inputs, labels = resolve_dataset(5, data, cache)
    assert inputs.shape == (3, INPUT_SIZE)
    assert labels.dtype == np.int64
    assert len(cache) == 0
    assert resolve_dataset(1, cache=cache)[0].shape == (10, INPUT_SIZE)
    assert 1 in cache


@pytest.mark.parametrize("kind", ["gaussian", "salt-pepper", "adversarial"])
def test_noise_patterns_are_reproducible(kind):
    a = generate_noise_pattern(kind, seed=9, target_digit=3)
    b = generate_noise_pattern(kind, seed=9, target_digit=3)
    assert a.dtype == np.float32
    assert a.shape == (INPUT_SIZE,)
    np.testing.assert_array_equal(a, b)
    assert not np.array_equal(a, generate_noise_pattern(kind, seed=10, target_digit=3))


def test_salt_pepper_pattern_values():
    pattern = generate_noise_pattern("salt-pepper", seed=1)
    assert set(np.unique(pattern).tolist()) <= {-1.0, 0.0, 1.0}


@pytest.mark.parametrize("kind", ["gaussian", "salt-pepper", "adversarial"])
def test_apply_noise_returns_clamped_copy(kind):
    clean = np.full(INPUT_SIZE, 0.5)
    pattern = generate_noise_pattern(kind, seed=2)
    noised = apply_noise(clean, pattern, 0.8, kind, seed=2)
    assert noised is not clean
    assert np.all(clean == 0.5)
    assert noised.min() >= 0 and noised.max() <= 1
    assert not np.array_equal(noised, clean)


def test_apply_noise_at_zero_level_is_identity():
    clean = np.random.default_rng(0).random(INPUT_SIZE)
    pattern = generate_noise_pattern("gaussian", seed=2)
    np.testing.assert_allclose(apply_noise(clean, pattern, 0.0, "gaussian", seed=2), clean)


def test_unknown_noise_kind():
    with pytest.raises(ValueError):
        generate_noise_pattern("pink", seed=0)
