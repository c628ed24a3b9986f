"""Run pipeline: train, test and predict modes wired to the engine."""

from __future__ import annotations

import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Sequence, TextIO

import numpy as np

from ..checkpoint.store import DEFAULT_MANIFEST_PATH, CheckpointStore
from ..config import load_config
from ..core.network import Network, classify, predict_label
from ..core.types import Array, Dataset, Hyperparameters
from ..data import features_from_image, load_dataset, render_image, scale_features
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from .trainer import Trainer, resume_or_create, validate


@dataclass(frozen=True)
class RunRequest:
    """Everything a single invocation needs, fixed once at start-up."""

    train: bool = False
    test: bool = False
    predict_image: Path | None = None
    config_path: Path | None = None
    train_data: Path | None = None
    test_data: Path | None = None
    labeled: bool = True
    scale: bool = False
    manifest_path: Path = DEFAULT_MANIFEST_PATH
    run_dir: Path | None = None
    enable_plots: bool = False
    show_image: bool = False
    sample_index: int | None = None
    reload_each_epoch: bool = False

    def __post_init__(self) -> None:
        if not (self.train or self.test or self.predict_image is not None):
            raise ValueError("Select at least one mode: train, test or predict")
        if self.train and self.train_data is None:
            raise ValueError("You must specify path to training data set")
        if (self.test or self.sample_index is not None) and self.test_data is None:
            raise ValueError("You must specify path to testing data set")


@dataclass(frozen=True)
class RunSummary:
    manifest_path: str
    epochs_completed: int | None = None
    accuracy: float | None = None
    sample_prediction: Array | None = None
    prediction: Array | None = None
    predicted_label: int | None = None


def _load_split(path: Path, *, labeled: bool, scale: bool) -> Dataset:
    dataset = load_dataset(path, labeled=labeled)
    if scale:
        dataset = Dataset(features=scale_features(dataset.features), labels=dataset.labels)
    return dataset


def _resolve_training(
    request: RunRequest, store: CheckpointStore
) -> tuple[Sequence[int], Hyperparameters]:
    if request.config_path is not None:
        config = load_config(request.config_path)
        return config.architecture, config.hyperparameters
    if store.exists(request.manifest_path):
        checkpoint = store.load_checkpoint(request.manifest_path)
        if checkpoint.hyperparameters.epochs == 0:
            raise ValueError(
                f"Checkpoint {request.manifest_path} has no epochs left to run; "
                "pass a config to train further"
            )
        return checkpoint.architecture, replace(checkpoint.hyperparameters, resume=True)
    raise ValueError(
        "Training requires a config file unless resuming from an existing checkpoint"
    )


def _print_startup_summary(
    *,
    network: Network,
    hyperparameters: Hyperparameters,
    manifest_path: Path,
    rows: int,
    out: TextIO,
) -> None:
    print("=== nnclassify run ===", file=out)
    print(f"Architecture  : {list(network.architecture)}", file=out)
    print(f"Activation    : {hyperparameters.activation}", file=out)
    print(f"Learning rate : {hyperparameters.learning_rate}", file=out)
    print(f"Epochs        : {hyperparameters.epochs}", file=out)
    print(f"Mode          : {hyperparameters.mode}", file=out)
    print(f"Resume        : {hyperparameters.resume}", file=out)
    print(f"Samples       : {rows}", file=out)
    print(f"Parameters    : {network.parameter_count()}", file=out)
    print(f"Checkpoint    : {manifest_path}", file=out)
    print("======================", file=out)


class _ProgressPrinter:
    def __init__(self, out: TextIO) -> None:
        self.out = out

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        line = f"epoch {epoch:4d}  loss: {metrics.get('loss', 0.0):.6f}"
        if "accuracy" in metrics:
            line += f"  accuracy: {metrics['accuracy'] * 100:.2f}%"
        print(line, file=self.out)


def _format_vector(vector: Array) -> str:
    return np.array2string(np.asarray(vector), precision=6, suppress_small=True)


def run(request: RunRequest, *, out: TextIO | None = None) -> RunSummary:
    out = out or sys.stdout
    store = CheckpointStore()
    network: Network | None = None
    epochs_completed: int | None = None
    accuracy: float | None = None
    sample_prediction: Array | None = None
    prediction: Array | None = None
    predicted_label: int | None = None

    test_set: Dataset | None = None
    if request.test_data is not None:
        test_set = _load_split(request.test_data, labeled=request.labeled, scale=request.scale)

    if request.train:
        train_set = _load_split(request.train_data, labeled=request.labeled, scale=request.scale)
        labels = train_set.require_labels()
        architecture, hyperparameters = _resolve_training(request, store)
        network = resume_or_create(architecture, hyperparameters, request.manifest_path, store)
        _print_startup_summary(
            network=network,
            hyperparameters=hyperparameters,
            manifest_path=request.manifest_path,
            rows=train_set.rows,
            out=out,
        )

        callbacks: list[object] = [_ProgressPrinter(out)]
        plots: PlotAdapter | None = None
        if request.run_dir is not None:
            run_dir = Path(request.run_dir)
            plots = PlotAdapter(run_dir, enable_plots=request.enable_plots)
            context = {
                "architecture": list(network.architecture),
                "learning_rate": hyperparameters.learning_rate,
                "mode": hyperparameters.mode,
            }
            callbacks.extend(
                [
                    JsonlSink(run_dir / "metrics.jsonl", context=context),
                    CsvSink(run_dir / "metrics.csv"),
                    plots,
                ]
            )
        validation = test_set if test_set is not None and test_set.labels is not None else None
        trainer = Trainer(
            store,
            validation=validation,
            callbacks=callbacks,
            reload_each_epoch=request.reload_each_epoch,
        )
        result = trainer.run(
            network, hyperparameters, train_set.features, labels, request.manifest_path
        )
        epochs_completed = result.epochs_completed
        if plots is not None:
            plots.close()

    if request.test:
        labels = test_set.require_labels()
        if network is None:
            network = store.load(None, request.manifest_path)
        accuracy = validate(network, test_set.features, labels)
        print(f"\nNeural net accuracy: {accuracy:f}", file=out)

    if request.sample_index is not None:
        if network is None:
            network = store.load(None, request.manifest_path)
        row, label = test_set.sample(request.sample_index)
        sample_prediction = classify(network, row)
        print(
            f"\nClassification result for sample {request.sample_index} in the test data set...",
            file=out,
        )
        print(f"\nFor known value(label) of the sample, {label} ...", file=out)
        print(f"\n the prediction vector is:\n{_format_vector(sample_prediction)}", file=out)

    if request.predict_image is not None:
        if network is None:
            network = store.load(None, request.manifest_path)
        if request.show_image:
            render_image(request.predict_image, out)
        features = features_from_image(request.predict_image)
        prediction = classify(network, features)
        predicted_label = predict_label(network, features)
        print(f"\nPrediction vector for {request.predict_image}:", file=out)
        print(_format_vector(prediction), file=out)
        print(f"Predicted digit: {predicted_label}", file=out)

    return RunSummary(
        manifest_path=str(request.manifest_path),
        epochs_completed=epochs_completed,
        accuracy=accuracy,
        sample_prediction=sample_prediction,
        prediction=prediction,
        predicted_label=predicted_label,
    )


__all__ = ["RunRequest", "RunSummary", "run"]
