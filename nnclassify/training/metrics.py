"""Metric helpers for validation."""

from __future__ import annotations

import numpy as np

from ..core.types import Array


def predictions(outputs: Array) -> Array:
    """Index of the largest output per row; ties go to the lowest index.

    Single-unit outputs are thresholded at 0.5 instead.
    """

    outputs = np.asarray(outputs)
    if outputs.shape[-1] == 1:
        return (outputs[..., 0] >= 0.5).astype(np.int64)
    return np.argmax(outputs, axis=-1)


def accuracy(labels: Array, outputs: Array) -> float:
    labels = np.asarray(labels).reshape(-1)
    if labels.size == 0:
        raise ValueError("accuracy is undefined for an empty data set")
    return float(np.mean(predictions(outputs) == labels))


__all__ = ["accuracy", "predictions"]
