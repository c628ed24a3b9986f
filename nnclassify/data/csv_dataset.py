"""CSV data set loader (MNIST layout: label first, then pixel columns)."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd

from ..core.types import Dataset


def load_dataset(path: str | Path, *, labeled: bool = True) -> Dataset:
    """Load a headerless CSV file into a :class:`Dataset`.

    When ``labeled`` the first column holds the integer class of each row and
    the remaining columns are features; otherwise every column is a feature.
    """

    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Data set not found: {path}")
    df = pd.read_csv(path, header=None)
    if df.empty:
        raise ValueError(f"Data set {path} is empty")
    try:
        values = df.to_numpy(dtype=np.float64)
    except ValueError as exc:
        raise ValueError(f"Data set {path} contains non-numeric values") from exc

    if not labeled:
        return Dataset(features=values)
    if values.shape[1] < 2:
        raise ValueError(f"Labeled data set {path} needs a label column and features")
    raw_labels = values[:, 0]
    if np.any(raw_labels != np.floor(raw_labels)):
        raise ValueError(f"Data set {path} has non-integer labels in column 0")
    return Dataset(features=values[:, 1:], labels=raw_labels.astype(np.int64))


__all__ = ["load_dataset"]
