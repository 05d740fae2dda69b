"""Core numerical primitives for digitscope."""

from . import activations, network, prng, types
from .network import NeuralNetwork

__all__ = ["NeuralNetwork", "activations", "network", "prng", "types"]
