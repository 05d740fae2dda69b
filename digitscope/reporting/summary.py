"""Deterministic summaries of training histories."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Mapping, Sequence

import numpy as np


def _area(y: np.ndarray, x: np.ndarray) -> float:
    trapezoid = getattr(np, "trapezoid", None)
    if callable(trapezoid):
        return float(trapezoid(y, x))
    return float(np.trapz(y, x))


def compute_auc(points: Sequence[float]) -> float:
    """Area under ``points`` along an implicit epoch axis."""

    if len(points) == 0:
        return 0.0
    y = np.asarray(points, dtype=np.float64)
    return _area(y, np.arange(len(y), dtype=np.float64))


def summarise_series(values: Sequence[float], tail: int = 32) -> Dict[str, float]:
    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        return {"min": 0.0, "max": 0.0, "mean": 0.0, "last": 0.0, "tail_auc": 0.0}
    tail_window = min(max(0, int(tail)), arr.size)
    return {
        "min": float(arr.min()),
        "max": float(arr.max()),
        "mean": float(arr.mean()),
        "last": float(arr[-1]),
        "tail_auc": compute_auc(arr[-tail_window:]) if tail_window else 0.0,
    }


def build_summary(histories: Mapping[str, Sequence[float]], *, tail: int = 32) -> Mapping[str, object]:
    """Summarise named histories, for example ``{"loss": ..., "accuracy": ...}``."""

    epochs = max((len(v) for v in histories.values()), default=0)
    return {
        "version": 1,
        "epochs": epochs,
        "tail_window": min(tail, epochs),
        "metrics": {name: summarise_series(values, tail) for name, values in histories.items()},
    }


def write_summary(
    histories: Mapping[str, Sequence[float]],
    out_summary_json: str | Path,
    *,
    tail: int = 32,
) -> str:
    """Write :func:`build_summary` as sorted, indented JSON and return the path."""

    out_path = Path(out_summary_json)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(build_summary(histories, tail=tail), sort_keys=True, indent=2))
    return str(out_path)


__all__ = ["build_summary", "compute_auc", "summarise_series", "write_summary"]
