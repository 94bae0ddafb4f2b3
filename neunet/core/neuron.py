"""The atomic unit of the network."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

import numpy as np

from .activations import Activation
from .types import DEFAULT_DTYPE, Array

if TYPE_CHECKING:  # pragma: no cover
    from .layer import Layer

CostDerivative = Callable[[float, float], float]


class Neuron:
    """A bias, an activation, a backpropagated delta and one weight per input.

    ``weights`` always has one entry per neuron of the previous layer; input
    neurons have no weights and never run a forward pass.
    """

    __slots__ = ("bias", "activation", "delta", "weights", "activation_fn", "dtype")

    def __init__(
        self,
        input_count: int = 0,
        activation_fn: Activation | str = Activation.SIGMOID,
        dtype=DEFAULT_DTYPE,
    ) -> None:
        self.dtype = np.dtype(dtype)
        self.activation_fn = Activation.parse(activation_fn)
        self.bias = self.dtype.type(0.0)
        self.activation = self.dtype.type(0.0)
        self.delta = self.dtype.type(0.0)
        self.weights: Array = np.zeros(input_count, dtype=self.dtype)

    def __repr__(self) -> str:
        return (
            f"Neuron(inputs={self.weights.shape[0]}, fn={self.activation_fn.value}, "
            f"bias={float(self.bias):.4g}, activation={float(self.activation):.4g})"
        )

    @property
    def input_count(self) -> int:
        return int(self.weights.shape[0])

    def coefficient_count(self) -> int:
        return self.input_count + 1

    # ------------------------------------------------------------------
    # Structure

    def resize(self, input_count: int) -> None:
        """Resize the weight vector, keeping overlapping weights by index."""

        current = self.weights.shape[0]
        if input_count == current:
            return
        resized = np.zeros(input_count, dtype=self.dtype)
        keep = min(current, input_count)
        resized[:keep] = self.weights[:keep]
        self.weights = resized

    def randomize(self, rng: np.random.Generator, bias_magnitude: float, weight_magnitude: float) -> None:
        self.bias = self.dtype.type(rng.uniform(-bias_magnitude, bias_magnitude))
        self.weights = rng.uniform(
            -weight_magnitude, weight_magnitude, size=self.weights.shape[0]
        ).astype(self.dtype)

    # ------------------------------------------------------------------
    # Evaluation

    def forward_pass(self, previous_activations: Array) -> None:
        z = float(self.bias) + float(np.dot(self.weights, previous_activations))
        self.activation = self.dtype.type(self.activation_fn.apply(z))

    def compute_output_delta(self, target: float, cost_derivative: CostDerivative) -> None:
        a = float(self.activation)
        self.delta = self.dtype.type(cost_derivative(a, float(target)) * self.activation_fn.derivative(a))

    def compute_hidden_delta(self, next_layer: "Layer", own_index: int) -> None:
        back = next_layer.sum_weight_delta(own_index)
        self.delta = self.dtype.type(back * self.activation_fn.derivative(float(self.activation)))

    # ------------------------------------------------------------------
    # Coefficient marshalling: bias first, then weights in index order.

    def flatten_to(self, vector: Array, offset: int) -> int:
        vector[offset] = self.bias
        end = offset + 1 + self.weights.shape[0]
        vector[offset + 1 : end] = self.weights
        return end

    def load_from(self, vector: Array, offset: int) -> int:
        self.bias = self.dtype.type(vector[offset])
        end = offset + 1 + self.weights.shape[0]
        self.weights[:] = vector[offset + 1 : end]
        return end

    def accumulate_gradient(self, buffer: Array, offset: int, previous_activations: Array) -> int:
        buffer[offset] += self.delta
        end = offset + 1 + self.weights.shape[0]
        buffer[offset + 1 : end] += previous_activations * self.delta
        return end


__all__ = ["CostDerivative", "Neuron"]
