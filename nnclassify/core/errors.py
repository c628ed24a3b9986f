"""Exception hierarchy shared by the engine and the checkpoint store."""

from __future__ import annotations


class NNClassifyError(Exception):
    """Base class for every error raised by nnclassify."""


class InvalidArchitectureError(NNClassifyError, ValueError):
    """The layer width sequence is too short or holds a non-positive width."""


class DimensionMismatchError(NNClassifyError, ValueError):
    """An input's width disagrees with the network's input width."""


class LabelOutOfRangeError(NNClassifyError, ValueError):
    """A label is not a valid class index for the network's output width."""


class UninitializedNetworkError(NNClassifyError, RuntimeError):
    """Inference was requested from a network without trained or loaded weights."""


class CheckpointError(NNClassifyError):
    """Base class for checkpoint store failures."""


class CheckpointNotFoundError(CheckpointError, FileNotFoundError):
    """The manifest or its weights file does not exist."""


class CheckpointCorruptError(CheckpointError, ValueError):
    """The manifest or weights file cannot be parsed."""


class CheckpointShapeMismatchError(CheckpointError, ValueError):
    """Stored weights do not match the requested architecture."""


class IOFailureError(NNClassifyError, OSError):
    """Any other filesystem failure while reading or writing artifacts."""


__all__ = [
    "CheckpointCorruptError",
    "CheckpointError",
    "CheckpointNotFoundError",
    "CheckpointShapeMismatchError",
    "DimensionMismatchError",
    "IOFailureError",
    "InvalidArchitectureError",
    "LabelOutOfRangeError",
    "NNClassifyError",
    "UninitializedNetworkError",
]
