"""Dense feed-forward network: layers, construction and forward propagation."""

from __future__ import annotations

from dataclasses import dataclass, field
from numbers import Integral
from typing import Iterable, List, Mapping, Sequence

import numpy as np

from .activations import Activation, get_activation
from .errors import (
    DimensionMismatchError,
    InvalidArchitectureError,
    UninitializedNetworkError,
)
from .types import Architecture, Array, ForwardState, Hyperparameters


def validate_architecture(architecture: Iterable[int]) -> Architecture:
    """Return ``architecture`` as a tuple of ints or raise ``InvalidArchitectureError``."""

    dims = list(architecture)
    if len(dims) < 2:
        raise InvalidArchitectureError(
            f"architecture needs at least an input and an output width, got {dims}"
        )
    checked: list[int] = []
    for width in dims:
        if isinstance(width, bool) or not isinstance(width, Integral) or width <= 0:
            raise InvalidArchitectureError(f"layer widths must be positive integers, got {dims}")
        checked.append(int(width))
    return tuple(checked)


@dataclass(eq=False)
class Layer:
    """Weights ``(output_width, input_width)`` and biases ``(output_width,)``."""

    weights: Array
    biases: Array

    def __post_init__(self) -> None:
        self.weights = np.array(self.weights, dtype=np.float64)
        self.biases = np.array(self.biases, dtype=np.float64).reshape(-1)
        if self.weights.ndim != 2:
            raise ValueError(f"weights must be 2-D, got shape {self.weights.shape}")
        if self.biases.shape != (self.weights.shape[0],):
            raise ValueError(
                f"biases shape {self.biases.shape} does not match "
                f"{self.weights.shape[0]} outputs"
            )

    @property
    def input_width(self) -> int:
        return int(self.weights.shape[1])

    @property
    def output_width(self) -> int:
        return int(self.weights.shape[0])

    def transform(self, inputs: Array, activation: Activation) -> Array:
        """Apply the layer to one vector or to a matrix of row vectors."""

        if inputs.ndim == 1:
            return activation.fn(self.weights @ inputs + self.biases)
        return activation.fn(inputs @ self.weights.T + self.biases)

    def copy(self) -> "Layer":
        return Layer(self.weights.copy(), self.biases.copy())


@dataclass(eq=False)
class Network:
    """An ordered stack of dense layers sharing one activation kind."""

    architecture: Architecture
    hyperparameters: Hyperparameters
    layers: List[Layer]
    initialized: bool = False
    epochs_completed: int = 0
    activation: Activation = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.architecture = validate_architecture(self.architecture)
        self.activation = get_activation(self.hyperparameters.activation)
        check_layer_shapes(self.architecture, self.layers)

    @classmethod
    def from_layers(
        cls,
        architecture: Iterable[int],
        hyperparameters: Hyperparameters,
        weights: Sequence[Array],
        biases: Sequence[Array],
    ) -> "Network":
        """Build a network from explicit weights; it counts as initialised."""

        layers = [Layer(w, b) for w, b in zip(weights, biases)]
        return cls(tuple(architecture), hyperparameters, layers, initialized=True)

    @property
    def input_width(self) -> int:
        return self.architecture[0]

    @property
    def output_width(self) -> int:
        return self.architecture[-1]

    def forward_batch(self, features: Array) -> List[Array]:
        """Row-wise forward pass; returns the activations of every layer."""

        features = np.asarray(features, dtype=np.float64)
        if features.ndim != 2 or features.shape[1] != self.input_width:
            raise DimensionMismatchError(
                f"expected feature rows of width {self.input_width}, got shape {features.shape}"
            )
        activations = [features]
        x = features
        for layer in self.layers:
            x = layer.transform(x, self.activation)
            activations.append(x)
        return activations

    def state_dict(self) -> Mapping[str, Array]:
        state: dict[str, Array] = {}
        for idx, layer in enumerate(self.layers):
            state[f"W{idx}"] = layer.weights.copy()
            state[f"b{idx}"] = layer.biases.copy()
        return state

    def load_state_dict(self, state: Mapping[str, Array]) -> None:
        layers = []
        for idx in range(len(self.layers)):
            for key in (f"W{idx}", f"b{idx}"):
                if key not in state:
                    raise KeyError(f"Missing array {key} in state dict")
            layers.append(Layer(state[f"W{idx}"], state[f"b{idx}"]))
        check_layer_shapes(self.architecture, layers)
        self.layers = layers
        self.initialized = True

    def parameter_count(self) -> int:
        return int(sum(layer.weights.size + layer.biases.size for layer in self.layers))


def check_layer_shapes(architecture: Architecture, layers: Sequence[Layer]) -> None:
    """Raise ``ValueError`` unless ``layers`` chain exactly as ``architecture`` says."""

    if len(layers) != len(architecture) - 1:
        raise ValueError(
            f"architecture {list(architecture)} needs {len(architecture) - 1} layers, "
            f"got {len(layers)}"
        )
    for idx, layer in enumerate(layers):
        expected = (architecture[idx + 1], architecture[idx])
        if layer.weights.shape != expected:
            raise ValueError(
                f"layer {idx} weights have shape {layer.weights.shape}, expected {expected}"
            )


def new_network(
    architecture: Iterable[int],
    hyperparameters: Hyperparameters,
    *,
    seed: int | None = None,
) -> Network:
    """Create a network with small uniform random weights and biases.

    Each layer draws from ``Uniform(-1/sqrt(fan_in), 1/sqrt(fan_in))``. ``seed``
    defaults to ``hyperparameters.seed``; ``None`` draws fresh entropy.
    """

    dims = validate_architecture(architecture)
    if seed is None:
        seed = hyperparameters.seed
    rng = np.random.default_rng(seed)
    layers: list[Layer] = []
    for in_dim, out_dim in zip(dims[:-1], dims[1:]):
        limit = 1.0 / np.sqrt(in_dim)
        weights = rng.uniform(-limit, limit, size=(out_dim, in_dim))
        biases = rng.uniform(-limit, limit, size=out_dim)
        layers.append(Layer(weights, biases))
    return Network(dims, hyperparameters, layers)


def forward(network: Network, inputs: Array) -> ForwardState:
    """Propagate one input vector through every layer."""

    x = np.asarray(inputs, dtype=np.float64)
    if x.ndim == 2 and 1 in x.shape:
        x = x.reshape(-1)
    if x.ndim != 1 or x.shape[0] != network.input_width:
        raise DimensionMismatchError(
            f"expected an input vector of length {network.input_width}, got shape "
            f"{np.shape(inputs)}"
        )
    activations = [x]
    for layer in network.layers:
        x = layer.transform(x, network.activation)
        activations.append(x)
    return ForwardState(activations=activations)


def classify(network: Network, inputs: Array) -> Array:
    """Return the prediction vector for one input."""

    if not network.initialized:
        raise UninitializedNetworkError(
            "network has no trained or loaded weights; train it or load a checkpoint first"
        )
    return forward(network, inputs).output


def predict_label(network: Network, inputs: Array) -> int:
    output = classify(network, inputs)
    if output.shape[0] == 1:
        return int(output[0] >= 0.5)
    return int(np.argmax(output))


__all__ = [
    "Layer",
    "Network",
    "check_layer_shapes",
    "classify",
    "forward",
    "new_network",
    "predict_label",
    "validate_architecture",
]
