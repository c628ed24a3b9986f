"""nnclassify public API."""

from .checkpoint import Checkpoint, CheckpointStore, load, save
from .config import NetworkConfig, load_config
from .core import activations  # noqa: F401
from .core import errors  # noqa: F401
from .core.network import Layer, Network, classify, forward, new_network, predict_label
from .core.types import Dataset, Hyperparameters
from .training.trainer import Trainer, resume_or_create, train_one_epoch, validate

__version__ = "0.1.0"

__all__ = [
    "Checkpoint",
    "CheckpointStore",
    "Dataset",
    "Hyperparameters",
    "Layer",
    "Network",
    "NetworkConfig",
    "Trainer",
    "activations",
    "classify",
    "errors",
    "forward",
    "load",
    "load_config",
    "new_network",
    "predict_label",
    "resume_or_create",
    "save",
    "train_one_epoch",
    "validate",
]
