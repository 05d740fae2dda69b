"""Synthetic data sources for digitscope."""

from .cache import TrainingDataCache, resolve_dataset
from .digits import canvas_to_input, generate_digit_pattern, generate_training_data
from .noise import NOISE_KINDS, apply_noise, generate_noise_pattern

__all__ = [
    "NOISE_KINDS",
    "TrainingDataCache",
    "apply_noise",
    "canvas_to_input",
    "generate_digit_pattern",
    "generate_noise_pattern",
    "generate_training_data",
    "resolve_dataset",
]
