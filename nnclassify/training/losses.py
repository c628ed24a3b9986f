"""Output error terms used by backpropagation."""

from __future__ import annotations

import numpy as np

from ..core.types import Array


def one_hot(labels: Array | int, num_classes: int) -> Array:
    """Expand integer labels into one-hot rows (or a single vector for a scalar).

    A single output unit is a binary classifier: its target is the label itself.
    """

    indices = np.asarray(labels, dtype=np.int64)
    if num_classes == 1:
        return indices.astype(np.float64)[..., np.newaxis]
    eye = np.eye(num_classes, dtype=np.float64)
    return eye[indices]


def quadratic(output: Array, target: Array) -> tuple[float, Array]:
    """Return ``0.5 * sum((output - target)**2)`` averaged over rows, and ``output - target``."""

    diff = output - target
    if diff.ndim == 1:
        loss = 0.5 * float(np.sum(np.square(diff)))
    else:
        loss = 0.5 * float(np.mean(np.sum(np.square(diff), axis=1)))
    return loss, diff


__all__ = ["one_hot", "quadratic"]
