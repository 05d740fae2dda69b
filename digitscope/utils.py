"""Deprecated helpers kept for older callers."""

from __future__ import annotations

import warnings

from .core.types import Array
from .data.cache import Dataset, TrainingDataCache
from .introspection.saliency import compute_saliency

_SHARED_CACHE = TrainingDataCache()


def get_cached_training_data(samples_per_digit: int) -> Dataset:
    """Deprecated: serves every caller from one process-wide cache."""

    warnings.warn(
        "get_cached_training_data is deprecated; hold a digitscope.data.TrainingDataCache instead",
        DeprecationWarning,
        stacklevel=2,
    )
    return _SHARED_CACHE.get(samples_per_digit)


def saliency_map(network, inputs, target_class: int) -> Array:
    warnings.warn("Use digitscope.introspection.compute_saliency instead", DeprecationWarning, stacklevel=2)
    return compute_saliency(network, inputs, target_class)


__all__ = ["get_cached_training_data", "saliency_map"]
