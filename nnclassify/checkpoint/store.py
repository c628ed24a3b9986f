"""Checkpoint persistence: a JSON manifest paired with an ``.npz`` weights file.

A checkpoint at ``model/manifest.json`` is stored as two files::

    model/manifest.json          architecture, hyperparameters, epoch count
    model/manifest.weights.npz   W0, b0, W1, b1, ...

Both files are written to a temporary file in the target directory and moved
into place with :func:`os.replace`, so readers never observe a half-written
file. The weights file is written first; the manifest names it.
"""

from __future__ import annotations

import json
import os
import tempfile
import time
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping

import numpy as np

from ..core.errors import (
    CheckpointCorruptError,
    CheckpointNotFoundError,
    CheckpointShapeMismatchError,
    IOFailureError,
)
from ..core.network import Layer, Network, check_layer_shapes, validate_architecture
from ..core.types import Architecture, Array, Hyperparameters

FORMAT_VERSION = 1
DEFAULT_MANIFEST_PATH = Path("model") / "manifest.json"
_MANIFEST_KEYS = ("format_version", "architecture", "hyperparameters", "weights_file")


def weights_path_for(manifest_path: str | Path) -> Path:
    """Return the companion weights path for ``manifest_path``."""

    path = Path(manifest_path)
    return path.with_name(f"{path.stem}.weights.npz")


@dataclass(frozen=True)
class Checkpoint:
    """In-memory snapshot of a network that can be persisted or restored."""

    architecture: Architecture
    hyperparameters: Hyperparameters
    state: Mapping[str, Array]
    epochs_completed: int = 0

    @classmethod
    def capture(cls, network: Network) -> "Checkpoint":
        return cls(
            architecture=tuple(network.architecture),
            hyperparameters=network.hyperparameters,
            state=network.state_dict(),
            epochs_completed=int(network.epochs_completed),
        )

    def restore(self, network: Network | None = None) -> Network:
        """Return a network holding copies of the snapshot's weights.

        When ``network`` is given its layers are replaced in place.
        """

        if network is None:
            layers = _build_layers(self.architecture, self.state, source="checkpoint")
            return Network(
                self.architecture,
                self.hyperparameters,
                layers,
                initialized=True,
                epochs_completed=self.epochs_completed,
            )
        if tuple(network.architecture) != tuple(self.architecture):
            raise CheckpointShapeMismatchError(
                f"checkpoint architecture {list(self.architecture)} does not match network "
                f"architecture {list(network.architecture)}"
            )
        network.load_state_dict({k: v.copy() for k, v in self.state.items()})
        network.hyperparameters = self.hyperparameters
        network.epochs_completed = self.epochs_completed
        return network


class CheckpointStore:
    """Read and write checkpoints on the local filesystem."""

    def save(
        self,
        source: Network | Checkpoint,
        manifest_path: str | Path = DEFAULT_MANIFEST_PATH,
    ) -> Path:
        checkpoint = source if isinstance(source, Checkpoint) else Checkpoint.capture(source)
        manifest_path = Path(manifest_path)
        weights_path = weights_path_for(manifest_path)
        manifest = {
            "format_version": FORMAT_VERSION,
            "architecture": list(checkpoint.architecture),
            "hyperparameters": checkpoint.hyperparameters.to_dict(),
            "epochs_completed": checkpoint.epochs_completed,
            "weights_file": weights_path.name,
            "generated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        }
        try:
            manifest_path.parent.mkdir(parents=True, exist_ok=True)
            _atomic_write(weights_path, lambda handle: np.savez(handle, **checkpoint.state))
            payload = json.dumps(manifest, indent=2).encode("utf-8")
            _atomic_write(manifest_path, lambda handle: handle.write(payload))
        except OSError as exc:
            raise IOFailureError(f"could not write checkpoint {manifest_path}: {exc}") from exc
        return manifest_path

    def load_checkpoint(self, manifest_path: str | Path = DEFAULT_MANIFEST_PATH) -> Checkpoint:
        """Read a checkpoint without checking it against a requested architecture."""

        manifest_path = Path(manifest_path)
        manifest = self._read_manifest(manifest_path)
        try:
            architecture = validate_architecture(manifest["architecture"])
            hyperparameters = Hyperparameters(**manifest["hyperparameters"])
            epochs_completed = int(manifest.get("epochs_completed", 0))
            weights_path = manifest_path.with_name(_weights_file_name(manifest["weights_file"]))
        except (TypeError, ValueError) as exc:
            raise CheckpointCorruptError(f"invalid manifest {manifest_path}: {exc}") from exc
        state = self._read_weights(weights_path, len(architecture) - 1)
        return Checkpoint(architecture, hyperparameters, state, epochs_completed)

    def load(
        self,
        architecture: Iterable[int] | None,
        manifest_path: str | Path = DEFAULT_MANIFEST_PATH,
    ) -> Network:
        """Rebuild a network, verifying every layer against ``architecture``.

        ``architecture=None`` accepts the stored architecture.
        """

        checkpoint = self.load_checkpoint(manifest_path)
        if architecture is not None:
            requested = validate_architecture(architecture)
            if requested != checkpoint.architecture:
                raise CheckpointShapeMismatchError(
                    f"checkpoint {manifest_path} holds architecture "
                    f"{list(checkpoint.architecture)}, expected {list(requested)}"
                )
        layers = _build_layers(
            checkpoint.architecture, checkpoint.state, source=f"checkpoint {manifest_path}"
        )
        return Network(
            checkpoint.architecture,
            checkpoint.hyperparameters,
            layers,
            initialized=True,
            epochs_completed=checkpoint.epochs_completed,
        )

    def exists(self, manifest_path: str | Path = DEFAULT_MANIFEST_PATH) -> bool:
        return Path(manifest_path).is_file()

    @staticmethod
    def _read_manifest(path: Path) -> Mapping[str, object]:
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise CheckpointNotFoundError(f"checkpoint manifest not found: {path}") from exc
        except OSError as exc:
            raise IOFailureError(f"could not read checkpoint manifest {path}: {exc}") from exc
        try:
            manifest = json.loads(text)
        except json.JSONDecodeError as exc:
            raise CheckpointCorruptError(f"manifest {path} is not valid JSON: {exc}") from exc
        if not isinstance(manifest, Mapping):
            raise CheckpointCorruptError(f"manifest {path} must decode to a mapping")
        missing = [key for key in _MANIFEST_KEYS if key not in manifest]
        if missing:
            raise CheckpointCorruptError(
                f"manifest {path} is missing keys: {', '.join(missing)}"
            )
        if manifest["format_version"] != FORMAT_VERSION:
            raise CheckpointCorruptError(
                f"manifest {path} has unsupported format_version {manifest['format_version']!r}"
            )
        return manifest

    @staticmethod
    def _read_weights(path: Path, layer_count: int) -> Mapping[str, Array]:
        try:
            loaded = np.load(path, allow_pickle=False)
            if isinstance(loaded, np.lib.npyio.NpzFile):
                with loaded as archive:
                    state = {name: np.array(archive[name]) for name in archive.files}
            else:
                state = None
        except FileNotFoundError as exc:
            raise CheckpointNotFoundError(f"checkpoint weights not found: {path}") from exc
        except (ValueError, zipfile.BadZipFile, EOFError) as exc:
            raise CheckpointCorruptError(f"weights file {path} is unreadable: {exc}") from exc
        except OSError as exc:
            raise IOFailureError(f"could not read weights file {path}: {exc}") from exc
        if state is None:
            raise CheckpointCorruptError(f"weights file {path} is not an .npz archive")
        expected = {f"{prefix}{idx}" for idx in range(layer_count) for prefix in ("W", "b")}
        missing = sorted(expected - set(state))
        if missing:
            raise CheckpointCorruptError(
                f"weights file {path} is missing arrays: {', '.join(missing)}"
            )
        return state


def _weights_file_name(value: object) -> str:
    """Return ``value`` when it names a file beside the manifest."""

    if (
        not isinstance(value, str)
        or value in {"", ".", ".."}
        or Path(value).name != value
    ):
        raise ValueError(f"weights_file must be a plain file name, got {value!r}")
    return value

def _build_layers(
    architecture: Architecture, state: Mapping[str, Array], *, source: str
) -> list[Layer]:
    try:
        layers = [
            Layer(state[f"W{idx}"], state[f"b{idx}"]) for idx in range(len(architecture) - 1)
        ]
        check_layer_shapes(architecture, layers)
    except ValueError as exc:
        raise CheckpointShapeMismatchError(f"{source}: {exc}") from exc
    return layers


def _default_file_mode() -> int:
    # mkstemp creates 0600 files; give checkpoints the mode open() would.
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def _atomic_write(path: Path, writer) -> None:
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            writer(handle)
        os.chmod(tmp_name, _default_file_mode())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


_DEFAULT_STORE = CheckpointStore()


def save(
    network: Network | Checkpoint,
    manifest_path: str | Path = DEFAULT_MANIFEST_PATH,
) -> Path:
    """Persist ``network`` at ``manifest_path`` using the default store."""

    return _DEFAULT_STORE.save(network, manifest_path)


def load(
    architecture: Iterable[int] | None,
    manifest_path: str | Path = DEFAULT_MANIFEST_PATH,
) -> Network:
    """Load the network stored at ``manifest_path`` using the default store."""

    return _DEFAULT_STORE.load(architecture, manifest_path)


__all__ = [
    "Checkpoint",
    "CheckpointStore",
    "DEFAULT_MANIFEST_PATH",
    "FORMAT_VERSION",
    "load",
    "save",
    "weights_path_for",
]
