"""Training loops, races and configuration presets."""

from .presets import (
    DEFAULT_CONFIG,
    DEFAULT_SAMPLES_PER_DIGIT,
    RACE_PRESETS,
    RacePreset,
    config_from_mapping,
    load_config,
    load_race_file,
    load_race_preset,
)
from .race import TIE_THRESHOLD, RaceLap, TrainingRace
from .trainer import RunResult, Trainer

__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_SAMPLES_PER_DIGIT",
    "RACE_PRESETS",
    "RaceLap",
    "RacePreset",
    "RunResult",
    "TIE_THRESHOLD",
    "Trainer",
    "TrainingRace",
    "config_from_mapping",
    "load_config",
    "load_race_file",
    "load_race_preset",
]
