"""Core typing contracts for nnclassify."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Sequence, Tuple

import numpy as np

Array = np.ndarray

Architecture = Tuple[int, ...]

TRAINING_MODES = ("sample", "batch")


@dataclass(frozen=True)
class Hyperparameters:
    """Training hyperparameters for a network.

    ``epochs`` is the number of epochs still to run; the trainer consumes it
    one unit at a time and persists the remainder with each checkpoint.
    """

    learning_rate: float
    epochs: int
    resume: bool = False
    activation: str = "sigmoid"
    mode: str = "sample"
    seed: int | None = None

    def __post_init__(self) -> None:
        if not self.learning_rate > 0:
            raise ValueError(f"learning_rate must be positive, got {self.learning_rate}")
        if int(self.epochs) != self.epochs or self.epochs < 0:
            raise ValueError(f"epochs must be a non-negative integer, got {self.epochs}")
        if self.mode not in TRAINING_MODES:
            raise ValueError(f"mode must be one of {TRAINING_MODES}, got {self.mode!r}")

    def with_epochs(self, epochs: int) -> "Hyperparameters":
        return replace(self, epochs=int(epochs))

    def to_dict(self) -> dict:
        return {
            "learning_rate": float(self.learning_rate),
            "epochs": int(self.epochs),
            "resume": bool(self.resume),
            "activation": self.activation,
            "mode": self.mode,
            "seed": self.seed,
        }


@dataclass(frozen=True)
class Dataset:
    """Feature matrix with an optional label vector."""

    features: Array
    labels: Array | None = None

    def __post_init__(self) -> None:
        if self.features.ndim != 2:
            raise ValueError(f"features must be 2-D, got shape {self.features.shape}")
        if self.labels is not None and self.labels.shape[0] != self.features.shape[0]:
            raise ValueError(
                f"features have {self.features.shape[0]} rows but labels have "
                f"{self.labels.shape[0]}"
            )

    @property
    def rows(self) -> int:
        return int(self.features.shape[0])

    @property
    def width(self) -> int:
        return int(self.features.shape[1])

    def require_labels(self) -> Array:
        if self.labels is None:
            raise ValueError("Data set does not contain any labels")
        return self.labels

    def sample(self, index: int) -> tuple[Array, int | None]:
        if not 0 <= index < self.rows:
            raise ValueError(
                f"sample index {index} is out of range for a data set with {self.rows} rows"
            )
        row = self.features[index]
        label = None if self.labels is None else int(self.labels[index])
        return row, label


@dataclass(frozen=True)
class ForwardState:
    """Per-layer activations captured during the forward pass.

    ``activations[0]`` is the input vector, ``activations[-1]`` the output.
    """

    activations: List[Array]

    @property
    def output(self) -> Array:
        return self.activations[-1]


@dataclass(frozen=True)
class TrainResult:
    """Summary returned by :meth:`nnclassify.training.trainer.Trainer.run`."""

    epochs_run: int
    epochs_completed: int
    manifest_path: str
    losses: Sequence[float] = ()
    accuracies: Sequence[float] = ()
