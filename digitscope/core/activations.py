"""Activation functions and small array helpers for digitscope."""

from __future__ import annotations

import numpy as np

from .types import ACTIVATIONS, Array


def relu(x: Array) -> Array:
    """Return the ReLU activation."""

    return np.maximum(x, 0.0)


def sigmoid(x: Array) -> Array:
    """Logistic sigmoid with the input clipped to ``[-500, 500]``."""

    return 1.0 / (1.0 + np.exp(-np.clip(x, -500.0, 500.0)))


def activate(x: Array, fn: str) -> Array:
    if fn == "relu":
        return relu(x)
    if fn == "sigmoid":
        return sigmoid(x)
    if fn == "tanh":
        return np.tanh(x)
    raise ValueError(f"Unknown activation {fn!r}. Expected one of: {', '.join(ACTIVATIONS)}")


def activate_derivative(x: Array, fn: str) -> Array:
    """Derivative of ``fn`` evaluated at the pre-activation ``x``."""

    if fn == "relu":
        return (np.asarray(x) > 0).astype(np.float64)
    if fn == "sigmoid":
        s = sigmoid(x)
        return s * (1.0 - s)
    if fn == "tanh":
        t = np.tanh(x)
        return 1.0 - t * t
    raise ValueError(f"Unknown activation {fn!r}. Expected one of: {', '.join(ACTIVATIONS)}")


def softmax(logits: Array, out: Array | None = None) -> Array:
    """Numerically stable softmax with a uniform fallback.

    When ``out`` is given the result is written into it and ``out`` is
    returned, so the caller owns the buffer and its reuse.
    """

    logits = np.asarray(logits, dtype=np.float64)
    if out is None:
        out = np.empty_like(logits)
    n = logits.shape[0]
    if n == 0:
        return out
    with np.errstate(all="ignore"):
        np.subtract(logits, np.max(logits), out=out)
        np.exp(out, out=out)
        total = float(np.sum(out))
        if total == 0.0 or not np.isfinite(total):
            out.fill(1.0 / n)
        else:
            out /= total
    return out


def argmax(values: Array) -> int:
    return int(np.argmax(values))


def xavier_init(fan_in: int, fan_out: int, size, rng: np.random.Generator) -> Array:
    """Xavier/Glorot normal samples drawn with the Box-Muller transform."""

    std = np.sqrt(2.0 / (fan_in + fan_out))
    u1 = 1.0 - rng.random(size)  # (0, 1] keeps log finite
    u2 = rng.random(size)
    return std * np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)


__all__ = [
    "activate",
    "activate_derivative",
    "argmax",
    "relu",
    "sigmoid",
    "softmax",
    "xavier_init",
]
