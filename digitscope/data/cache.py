"""Per-owner cache for generated training sets."""

from __future__ import annotations

import logging
from typing import Dict, Tuple

import numpy as np

from ..core.types import Array
from .digits import generate_training_data

logger = logging.getLogger(__name__)

Dataset = Tuple[Array, Array]


class TrainingDataCache:
    """Generated datasets keyed by samples-per-digit.

    Each owner (a lab session, a race, a test) holds its own cache, so two
    networks evaluated side by side never share or leak generated data.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._rng = np.random.default_rng(seed)
        self._entries: Dict[int, Dataset] = {}

    def get(self, samples_per_digit: int) -> Dataset:
        key = int(samples_per_digit)
        if key not in self._entries:
            logger.debug("Generating %d samples per digit", key)
            self._entries[key] = generate_training_data(key, self._rng)
        return self._entries[key]

    def __contains__(self, samples_per_digit: object) -> bool:
        return samples_per_digit in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


def resolve_dataset(
    samples_per_digit: int,
    data: Dataset | None = None,
    cache: TrainingDataCache | None = None,
) -> Dataset:
    """Explicit data wins, then the cache, then a freshly generated set."""

    if data is not None:
        inputs, labels = data
        return np.asarray(inputs, dtype=np.float64), np.asarray(labels, dtype=np.int64)
    if cache is not None:
        return cache.get(samples_per_digit)
    return generate_training_data(samples_per_digit)


__all__ = ["Dataset", "TrainingDataCache", "resolve_dataset"]
