"""Network configuration files.

A configuration file holds two sections::

    network:
      architecture: [784, 100, 10]
      activation: sigmoid
    training:
      learning_rate: 0.1
      epochs: 5
      resume: false
      mode: sample
      seed: 0

YAML (``.yaml``/``.yml``) and JSON (``.json``) files are accepted.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from .core.activations import get_activation
from .core.network import validate_architecture
from .core.types import Architecture, Hyperparameters

REQUIRED_SECTIONS = ("network", "training")


@dataclass(frozen=True)
class NetworkConfig:
    """Architecture plus the hyperparameters used to build and train it."""

    architecture: Architecture
    hyperparameters: Hyperparameters

    def to_dict(self) -> dict:
        hp = self.hyperparameters.to_dict()
        return {
            "network": {
                "architecture": list(self.architecture),
                "activation": hp.pop("activation"),
            },
            "training": hp,
        }


def _read_config_file(path: Path) -> Mapping[str, Any]:
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")
    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return data


def config_from_mapping(data: Mapping[str, Any]) -> NetworkConfig:
    missing = [name for name in REQUIRED_SECTIONS if name not in data]
    if missing:
        raise KeyError(f"Config is missing required sections: {', '.join(missing)}")
    network_cfg = dict(data["network"] or {})
    train_cfg = dict(data["training"] or {})

    if "architecture" not in network_cfg:
        raise KeyError("Config section 'network' must define 'architecture'")
    architecture = validate_architecture(network_cfg["architecture"])
    activation = get_activation(str(network_cfg.get("activation", "sigmoid"))).name

    for key in ("learning_rate", "epochs"):
        if key not in train_cfg:
            raise KeyError(f"Config section 'training' must define {key!r}")
    epochs = train_cfg["epochs"]
    if isinstance(epochs, bool) or not isinstance(epochs, int) or epochs <= 0:
        raise ValueError(f"training.epochs must be a positive integer, got {epochs!r}")
    seed = train_cfg.get("seed")

    hyperparameters = Hyperparameters(
        learning_rate=float(train_cfg["learning_rate"]),
        epochs=epochs,
        resume=bool(train_cfg.get("resume", False)),
        activation=activation,
        mode=str(train_cfg.get("mode", "sample")),
        seed=int(seed) if seed is not None else None,
    )
    return NetworkConfig(architecture=architecture, hyperparameters=hyperparameters)


def load_config(path: str | Path) -> NetworkConfig:
    """Read and validate the configuration file at ``path``."""

    return config_from_mapping(_read_config_file(Path(path)))


__all__ = ["NetworkConfig", "config_from_mapping", "load_config"]
