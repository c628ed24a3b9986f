"""Activation utilities for nnclassify."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict

import numpy as np

from .types import Array


def sigmoid(x: Array) -> Array:
    """Return the logistic sigmoid of ``x``."""

    return 1.0 / (1.0 + np.exp(-x))


def sigmoid_prime(y: Array) -> Array:
    """Return the sigmoid derivative given the activation ``y = sigmoid(x)``."""

    return y * (1.0 - y)


@dataclass(frozen=True)
class Activation:
    """An activation function paired with its derivative.

    ``derivative`` takes the already computed activation, not the raw input.
    """

    name: str
    fn: Callable[[Array], Array]
    derivative: Callable[[Array], Array]


ACTIVATIONS: Dict[str, Activation] = {
    "sigmoid": Activation("sigmoid", sigmoid, sigmoid_prime),
}


def get_activation(name: str) -> Activation:
    key = str(name).lower()
    if key not in ACTIVATIONS:
        available = ", ".join(sorted(ACTIVATIONS))
        raise ValueError(f"Unknown activation {name!r}. Available activations: {available}")
    return ACTIVATIONS[key]


__all__ = ["ACTIVATIONS", "Activation", "get_activation", "sigmoid", "sigmoid_prime"]
