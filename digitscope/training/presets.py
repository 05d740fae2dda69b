"""Built-in network configurations and config file loading."""

from __future__ import annotations

import json
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping

from ..core.types import TrainingConfig

DEFAULT_SAMPLES_PER_DIGIT = 20

_DEFAULT_CONFIG: Mapping[str, object] = {
    "learning_rate": 0.01,
    "layers": [
        {"neurons": 64, "activation": "relu"},
        {"neurons": 32, "activation": "relu"},
    ],
}

_RACE_PRESETS: Dict[str, Mapping[str, object]] = {
    "deep-vs-shallow": {
        "label": "Deep vs Shallow",
        "a": _DEFAULT_CONFIG,
        "b": {"learning_rate": 0.01, "layers": [{"neurons": 32, "activation": "relu"}]},
    },
    "relu-vs-sigmoid": {
        "label": "ReLU vs Sigmoid",
        "a": {"learning_rate": 0.01, "layers": [{"neurons": 64, "activation": "relu"}]},
        "b": {"learning_rate": 0.01, "layers": [{"neurons": 64, "activation": "sigmoid"}]},
    },
    "fast-vs-slow-lr": {
        "label": "Fast vs Slow LR",
        "a": {"learning_rate": 0.05, "layers": [{"neurons": 32, "activation": "relu"}]},
        "b": {"learning_rate": 0.005, "layers": [{"neurons": 32, "activation": "relu"}]},
    },
    "wide-vs-narrow": {
        "label": "Wide vs Narrow",
        "a": {"learning_rate": 0.01, "layers": [{"neurons": 128, "activation": "relu"}]},
        "b": {"learning_rate": 0.01, "layers": [{"neurons": 16, "activation": "relu"}]},
    },
}


@dataclass(frozen=True)
class RacePreset:
    """Two configurations that differ in a single variable."""

    label: str
    a: TrainingConfig
    b: TrainingConfig


def config_from_mapping(data: Mapping[str, object]) -> TrainingConfig:
    """Build and validate a :class:`TrainingConfig` from plain data.

    Accepts ``learning_rate`` or ``learningRate``.
    """

    if not isinstance(data, Mapping):
        raise TypeError(f"Config must be a mapping, got {type(data).__name__}")
    config = TrainingConfig.from_mapping(data)
    config.validate()
    return config


def _race_preset(data: Mapping[str, object]) -> RacePreset:
    missing = {"a", "b"} - set(data)
    if missing:
        raise KeyError(f"Race preset is missing required sections: {', '.join(sorted(missing))}")
    return RacePreset(
        label=str(data.get("label", "")),
        a=config_from_mapping(data["a"]),  # type: ignore[arg-type]
        b=config_from_mapping(data["b"]),  # type: ignore[arg-type]
    )


DEFAULT_CONFIG = config_from_mapping(_DEFAULT_CONFIG)
RACE_PRESETS: Dict[str, RacePreset] = {name: _race_preset(cfg) for name, cfg in _RACE_PRESETS.items()}


def load_race_preset(name: str) -> RacePreset:
    try:
        return RACE_PRESETS[name]
    except KeyError as exc:
        raise KeyError(f"Unknown race preset: {name}") from exc


def _read_config_file(path: Path) -> Mapping[str, object]:
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return data


def load_config(path: str | Path) -> TrainingConfig:
    """Read a network configuration from a YAML or JSON file."""

    return config_from_mapping(_read_config_file(Path(path)))


def load_race_file(path: str | Path) -> RacePreset:
    """Read a race matchup (``label``, ``a``, ``b``) from a YAML or JSON file."""

    return _race_preset(deepcopy(_read_config_file(Path(path))))


__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_SAMPLES_PER_DIGIT",
    "RACE_PRESETS",
    "RacePreset",
    "config_from_mapping",
    "load_config",
    "load_race_file",
    "load_race_preset",
]
