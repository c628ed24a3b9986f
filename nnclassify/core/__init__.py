"""Core numerical primitives for nnclassify."""

from . import activations, errors, network, types

__all__ = ["activations", "errors", "network", "types"]
