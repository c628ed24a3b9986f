"""Checkpoint persistence for trained networks."""

from .store import (
    DEFAULT_MANIFEST_PATH,
    Checkpoint,
    CheckpointStore,
    load,
    save,
    weights_path_for,
)

__all__ = [
    "Checkpoint",
    "CheckpointStore",
    "DEFAULT_MANIFEST_PATH",
    "load",
    "save",
    "weights_path_for",
]
