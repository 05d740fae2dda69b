"""digitscope public API."""

from .core import activations  # noqa: F401
from .core import types  # noqa: F401
from .core.network import NeuralNetwork
from .core.prng import mulberry32
from .core.types import INPUT_SIZE, LayerConfig, NeuronStatus, TrainingConfig
from .data import TrainingDataCache, canvas_to_input, generate_training_data
from .training.presets import DEFAULT_CONFIG, RACE_PRESETS, load_config
from .training.race import TrainingRace
from .training.trainer import Trainer

__all__ = [
    "DEFAULT_CONFIG",
    "INPUT_SIZE",
    "LayerConfig",
    "NeuralNetwork",
    "NeuronStatus",
    "RACE_PRESETS",
    "Trainer",
    "TrainingConfig",
    "TrainingDataCache",
    "TrainingRace",
    "activations",
    "canvas_to_input",
    "generate_training_data",
    "load_config",
    "mulberry32",
    "types",
]
