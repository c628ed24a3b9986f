"""Feature scaling helpers."""

from __future__ import annotations

import numpy as np

from ..core.types import Array


def standardize(
    array: Array,
    *,
    mean: Array | None = None,
    std: Array | None = None,
) -> tuple[Array, Array, Array]:
    """Apply standard scaling returning the scaled array and parameters."""

    if mean is None or std is None:
        mean = array.mean(axis=0, keepdims=True)
        std = array.std(axis=0, keepdims=True)
        std = np.where(std == 0, 1.0, std)
    scaled = (array - mean) / std
    return scaled.astype(np.float64), mean, std


def scale_features(features: Array) -> Array:
    """Return a new, column-standardised copy of ``features``.

    Each data split is scaled with its own statistics.
    """

    scaled, _, _ = standardize(np.asarray(features, dtype=np.float64))
    return scaled


__all__ = ["scale_features", "standardize"]
