"""Backpropagation, validation and the resumable epoch loop."""

from __future__ import annotations

import warnings
from pathlib import Path
from typing import Iterable, List, Mapping, Sequence

import numpy as np

from ..checkpoint.store import DEFAULT_MANIFEST_PATH, Checkpoint, CheckpointStore
from ..core.errors import DimensionMismatchError, LabelOutOfRangeError, NNClassifyError
from ..core.network import Network, forward, new_network
from ..core.types import Array, Dataset, Hyperparameters, TrainResult
from .losses import one_hot, quadratic
from .metrics import accuracy


def check_dataset(network: Network, features: Array, labels: Array) -> tuple[Array, Array]:
    """Validate a feature matrix and label vector against ``network``.

    Returns the features as ``float64`` and the labels as ``int64``.
    """

    X = np.asarray(features, dtype=np.float64)
    if X.ndim != 2 or X.shape[1] != network.input_width:
        raise DimensionMismatchError(
            f"expected feature rows of width {network.input_width}, got shape {X.shape}"
        )
    y = np.asarray(labels).reshape(-1)
    if y.shape[0] != X.shape[0]:
        raise DimensionMismatchError(
            f"{X.shape[0]} feature rows but {y.shape[0]} labels"
        )
    if not np.issubdtype(y.dtype, np.number):
        raise LabelOutOfRangeError(f"labels must be numeric, got dtype {y.dtype}")
    classes = max(network.output_width, 2)
    as_float = y.astype(np.float64)
    bad = (as_float != np.floor(as_float)) | (as_float < 0) | (as_float >= classes)
    if np.any(bad):
        row = int(np.flatnonzero(bad)[0])
        raise LabelOutOfRangeError(
            f"label {y[row]!r} at row {row} is outside [0, {classes})"
        )
    return X, y.astype(np.int64)


def _sample_step(network: Network, x: Array, target: Array, lr: float) -> float:
    activations = forward(network, x).activations
    derivative = network.activation.derivative
    loss, error = quadratic(activations[-1], target)

    deltas: List[Array] = [np.empty(0)] * len(network.layers)
    delta = error * derivative(activations[-1])
    deltas[-1] = delta
    for idx in reversed(range(len(network.layers) - 1)):
        delta = (network.layers[idx + 1].weights.T @ delta) * derivative(activations[idx + 1])
        deltas[idx] = delta

    for idx, layer in enumerate(network.layers):
        layer.weights -= lr * np.outer(deltas[idx], activations[idx])
        layer.biases -= lr * deltas[idx]
    return loss


def _batch_step(network: Network, X: Array, targets: Array, lr: float) -> float:
    activations = network.forward_batch(X)
    derivative = network.activation.derivative
    loss, error = quadratic(activations[-1], targets)

    deltas: List[Array] = [np.empty(0)] * len(network.layers)
    delta = error * derivative(activations[-1])
    deltas[-1] = delta
    for idx in reversed(range(len(network.layers) - 1)):
        delta = (delta @ network.layers[idx + 1].weights) * derivative(activations[idx + 1])
        deltas[idx] = delta

    # Gradients are summed over rows, not averaged.
    for idx, layer in enumerate(network.layers):
        layer.weights -= lr * (deltas[idx].T @ activations[idx])
        layer.biases -= lr * deltas[idx].sum(axis=0)
    return loss


def train_one_epoch(
    network: Network,
    hyperparameters: Hyperparameters,
    features: Array,
    labels: Array,
) -> float:
    """Run one gradient-descent pass over the data in row order.

    Returns the mean quadratic loss seen during the pass. The whole dataset is
    checked before any weight changes.
    """

    X, y = check_dataset(network, features, labels)
    if X.shape[0] == 0:
        raise ValueError("cannot train on an empty data set")
    targets = one_hot(y, network.output_width)
    lr = float(hyperparameters.learning_rate)

    if hyperparameters.mode == "batch":
        loss = _batch_step(network, X, targets, lr)
    else:
        total = 0.0
        for row in range(X.shape[0]):
            total += _sample_step(network, X[row], targets[row], lr)
        loss = total / X.shape[0]
    network.initialized = True
    return loss


def validate(network: Network, features: Array, labels: Array) -> float:
    """Fraction of rows whose argmax prediction equals the label."""

    X, y = check_dataset(network, features, labels)
    outputs = network.forward_batch(X)[-1]
    return accuracy(y, outputs)


def resume_or_create(
    architecture: Iterable[int] | None,
    hyperparameters: Hyperparameters,
    manifest_path: str | Path = DEFAULT_MANIFEST_PATH,
    store: CheckpointStore | None = None,
) -> Network:
    """Load the checkpoint when resuming and one exists, else build a fresh network."""

    store = store or CheckpointStore()
    if hyperparameters.resume and store.exists(manifest_path):
        return store.load(architecture, manifest_path)
    if architecture is None:
        raise ValueError("an architecture is required to create a new network")
    return new_network(architecture, hyperparameters)


class Trainer:
    """Drive epochs, checkpoint after each one and optionally validate."""

    def __init__(
        self,
        store: CheckpointStore | None = None,
        *,
        validation: Dataset | None = None,
        callbacks: Sequence[object] | None = None,
        reload_each_epoch: bool = False,
    ) -> None:
        self.store = store or CheckpointStore()
        self.validation = validation
        self.callbacks = list(callbacks or [])
        self.reload_each_epoch = reload_each_epoch

    def run(
        self,
        network: Network,
        hyperparameters: Hyperparameters,
        features: Array,
        labels: Array,
        manifest_path: str | Path = DEFAULT_MANIFEST_PATH,
    ) -> TrainResult:
        epochs = int(hyperparameters.epochs)
        losses: list[float] = []
        accuracies: list[float] = []

        for index in range(epochs):
            loss = train_one_epoch(network, hyperparameters, features, labels)
            losses.append(loss)
            remaining = epochs - index - 1
            network.epochs_completed += 1
            network.hyperparameters = hyperparameters.with_epochs(remaining)

            checkpoint = Checkpoint.capture(network)
            self.store.save(checkpoint, manifest_path)

            metrics: dict[str, float] = {"loss": loss}
            if self.validation is not None:
                try:
                    acc = validate(
                        network, self.validation.features, self.validation.require_labels()
                    )
                except (NNClassifyError, ValueError) as exc:
                    warnings.warn(
                        f"validation after epoch {network.epochs_completed} failed: {exc}",
                        RuntimeWarning,
                        stacklevel=2,
                    )
                else:
                    metrics["accuracy"] = acc
                    accuracies.append(acc)
            self._emit_epoch(network.epochs_completed, metrics)

            if hyperparameters.resume and remaining > 0:
                self._reload(network, checkpoint, manifest_path)

        return TrainResult(
            epochs_run=epochs,
            epochs_completed=network.epochs_completed,
            manifest_path=str(manifest_path),
            losses=tuple(losses),
            accuracies=tuple(accuracies),
        )

    def _reload(self, network: Network, checkpoint: Checkpoint, manifest_path: str | Path) -> None:
        if self.reload_each_epoch:
            checkpoint = self.store.load_checkpoint(manifest_path)
        checkpoint.restore(network)

    def _emit_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        for callback in self.callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, metrics)


__all__ = [
    "Trainer",
    "check_dataset",
    "resume_or_create",
    "train_one_epoch",
    "validate",
]
