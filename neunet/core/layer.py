"""A layer: an ordered group of neurons fed by one previous layer."""

from __future__ import annotations

from concurrent.futures import Executor
from typing import Iterable, Iterator, List, MutableSequence, Optional

import numpy as np

from .activations import Activation
from .neuron import CostDerivative, Neuron
from .types import DEFAULT_DTYPE, Array


class Layer(MutableSequence[Neuron]):
    """Ordered neurons plus non-owning ``previous``/``next`` links.

    The links are assigned by the owning :class:`~neunet.core.network.Network`.
    Every neuron of a layer with a ``previous`` layer carries exactly
    ``len(previous)`` weights; structural edits here re-size the next layer.
    """

    def __init__(
        self,
        count: int = 0,
        activation_fn: Activation | str = Activation.SIGMOID,
        dtype=DEFAULT_DTYPE,
    ) -> None:
        self.dtype = np.dtype(dtype)
        self.activation_fn = Activation.parse(activation_fn)
        self._neurons: List[Neuron] = [
            Neuron(0, self.activation_fn, self.dtype) for _ in range(count)
        ]
        self._previous: Optional["Layer"] = None
        self.next: Optional["Layer"] = None

    def __repr__(self) -> str:
        return f"Layer({len(self)}, {self.activation_fn.value})"

    # ------------------------------------------------------------------
    # Sequence protocol

    def __getitem__(self, index):  # type: ignore[override]
        return self._neurons[index]

    def __setitem__(self, index, neuron):  # type: ignore[override]
        if isinstance(index, slice):
            raise TypeError("Layer does not support slice assignment")
        self._adopt(neuron)
        self._neurons[index] = neuron

    def __delitem__(self, index):  # type: ignore[override]
        del self._neurons[index]
        self._resize_next()

    def __len__(self) -> int:
        return len(self._neurons)

    def __iter__(self) -> Iterator[Neuron]:
        return iter(self._neurons)

    def insert(self, index: int, neuron: Neuron) -> None:
        self._adopt(neuron)
        self._neurons.insert(index, neuron)
        self._resize_next()

    def resize(self, count: int) -> None:
        """Grow with fresh neurons or truncate to ``count`` neurons."""

        if count < 0:
            raise ValueError(f"Layer size must be >= 0, got {count}")
        if count < len(self._neurons):
            del self._neurons[count:]
        while len(self._neurons) < count:
            self._neurons.append(Neuron(self.input_count, self.activation_fn, self.dtype))
        self._resize_next()

    def _adopt(self, neuron: Neuron) -> None:
        if neuron.dtype != self.dtype:
            raise TypeError(f"Neuron dtype {neuron.dtype} does not match layer dtype {self.dtype}")
        neuron.resize(self.input_count)

    def _resize_next(self) -> None:
        if self.next is not None:
            self.next.set_previous_layer(self)

    # ------------------------------------------------------------------
    # Links

    @property
    def previous(self) -> Optional["Layer"]:
        return self._previous

    @previous.setter
    def previous(self, layer: Optional["Layer"]) -> None:
        self.set_previous_layer(layer)

    def set_previous_layer(self, layer: Optional["Layer"]) -> None:
        self._previous = layer
        count = len(layer) if layer is not None else 0
        for neuron in self._neurons:
            neuron.resize(count)

    @property
    def input_count(self) -> int:
        return len(self._previous) if self._previous is not None else 0

    # ------------------------------------------------------------------
    # Activations

    def activations(self) -> Array:
        return np.fromiter((n.activation for n in self._neurons), dtype=self.dtype, count=len(self))

    def set_activations(self, values: Iterable[float]) -> None:
        for neuron, value in zip(self._neurons, values):
            neuron.activation = self.dtype.type(value)

    def get_activations(self, out: Array) -> None:
        for index, neuron in enumerate(self._neurons):
            out[index] = neuron.activation

    def sum_weight_delta(self, index: int) -> float:
        """Return ``sum_k self[k].weights[index] * self[k].delta``."""

        total = 0.0
        for neuron in self._neurons:
            total += float(neuron.weights[index]) * float(neuron.delta)
        return total

    # ------------------------------------------------------------------
    # Forward and backward passes

    def forward_pass(self, executor: Executor | None = None) -> None:
        if self._previous is None:
            raise ValueError("The first layer holds inputs and has no forward pass")
        inputs = self._previous.activations()
        if executor is None:
            for neuron in self._neurons:
                neuron.forward_pass(inputs)
        else:
            list(executor.map(lambda neuron: neuron.forward_pass(inputs), self._neurons))

    def compute_output_deltas(self, targets: Array, cost_derivative: CostDerivative) -> None:
        for neuron, target in zip(self._neurons, targets):
            neuron.compute_output_delta(target, cost_derivative)

    def compute_hidden_deltas(self, executor: Executor | None = None) -> None:
        following = self.next
        if following is None:
            raise ValueError("Hidden deltas require a next layer")
        if executor is None:
            for index, neuron in enumerate(self._neurons):
                neuron.compute_hidden_delta(following, index)
        else:
            list(
                executor.map(
                    lambda item: item[1].compute_hidden_delta(following, item[0]),
                    enumerate(self._neurons),
                )
            )

    # ------------------------------------------------------------------
    # Coefficients (offset threading is sequential by construction)

    def coefficient_count(self) -> int:
        return sum(neuron.coefficient_count() for neuron in self._neurons)

    def flatten_to(self, vector: Array, offset: int) -> int:
        for neuron in self._neurons:
            offset = neuron.flatten_to(vector, offset)
        return offset

    def load_from(self, vector: Array, offset: int) -> int:
        for neuron in self._neurons:
            offset = neuron.load_from(vector, offset)
        return offset

    def accumulate_gradient(self, buffer: Array, offset: int) -> int:
        inputs = self._previous.activations() if self._previous is not None else np.zeros(0, self.dtype)
        for neuron in self._neurons:
            offset = neuron.accumulate_gradient(buffer, offset, inputs)
        return offset

    def randomize(self, rng: np.random.Generator, bias_magnitude: float, weight_magnitude: float) -> None:
        for neuron in self._neurons:
            neuron.randomize(rng, bias_magnitude, weight_magnitude)


__all__ = ["Layer"]
