"""Dense feed-forward network: structure, backpropagation and training."""

from __future__ import annotations

import copy
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from contextlib import contextmanager
from typing import Iterator, List, MutableSequence, Optional, Sequence

import numpy as np

from . import losses
from .activations import Activation
from .arguments import CalculationArguments, StepResult, StepStatus
from .errors import NullArgumentError, ShapeError, StructureError
from .layer import Layer
from .minimization import Minimization, MinimizationResult
from .types import DEFAULT_DTYPE, Array, MeasurementList, ModelDescription, Sample, SampleList

logger = logging.getLogger(__name__)


def _as_generator(random: np.random.Generator | int | None) -> np.random.Generator:
    if isinstance(random, np.random.Generator):
        return random
    return np.random.default_rng(random)


class Network(MutableSequence[Layer]):
    """An ordered chain of layers.

    The first layer receives raw inputs and owns no coefficients; the last
    layer is the output. ``previous``/``next`` links of the layers are
    recomputed from the chain after every structural edit, so they never
    drift out of sync with the sequence. Structural edits must not overlap a
    running :meth:`learn` call.

    Coefficient layout: for every layer but the first, for every neuron in
    order, the bias followed by one weight per previous-layer neuron.
    """

    def __init__(self, layers: Sequence[Layer] = (), dtype=DEFAULT_DTYPE) -> None:
        self.dtype = np.dtype(dtype)
        self._layers: List[Layer] = []
        for layer in layers:
            self.append(layer)

    @classmethod
    def from_sizes(
        cls,
        sizes: Sequence[int],
        activation: Activation | str = Activation.SIGMOID,
        output_activation: Activation | str | None = None,
        dtype=DEFAULT_DTYPE,
    ) -> "Network":
        """Build a network with ``sizes[i]`` neurons in layer ``i``."""

        network = cls(dtype=dtype)
        last = len(sizes) - 1
        for index, size in enumerate(sizes):
            fn = output_activation if index == last and output_activation is not None else activation
            network.append(Layer(int(size), fn, dtype=dtype))
        return network

    def __repr__(self) -> str:
        return f"Network({[len(layer) for layer in self._layers]})"

    # ------------------------------------------------------------------
    # Sequence protocol

    def __getitem__(self, index):  # type: ignore[override]
        return self._layers[index]

    def __setitem__(self, index, layer):  # type: ignore[override]
        if isinstance(index, slice):
            raise TypeError("Network does not support slice assignment")
        self._check_layer(layer)
        self._detach(self._layers[index])
        self._layers[index] = layer
        self._relink()

    def __delitem__(self, index):  # type: ignore[override]
        removed = self._layers[index]
        for layer in removed if isinstance(index, slice) else [removed]:
            self._detach(layer)
        del self._layers[index]
        self._relink()

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[Layer]:
        return iter(self._layers)

    def insert(self, index: int, layer: Layer) -> None:
        self._check_layer(layer)
        self._layers.insert(index, layer)
        self._relink()

    def _check_layer(self, layer: Layer) -> None:
        if layer is None:
            raise NullArgumentError("layer")
        if layer.dtype != self.dtype:
            raise TypeError(f"Layer dtype {layer.dtype} does not match network dtype {self.dtype}")
        if any(existing is layer for existing in self._layers):
            raise StructureError("A layer can appear only once in a network")

    @staticmethod
    def _detach(layer: Layer) -> None:
        # Removed layers keep no links into the chain.
        layer.next = None
        layer.set_previous_layer(None)

    def _relink(self) -> None:
        previous: Optional[Layer] = None
        for layer in self._layers:
            layer.set_previous_layer(previous)
            if previous is not None:
                previous.next = layer
            previous = layer
        if previous is not None:
            previous.next = None

    # ------------------------------------------------------------------
    # Structure

    @property
    def first(self) -> Optional[Layer]:
        return self._layers[0] if self._layers else None

    @property
    def last(self) -> Optional[Layer]:
        return self._layers[-1] if self._layers else None

    @property
    def input_count(self) -> int:
        return len(self._layers[0]) if self._layers else 0

    @property
    def output_count(self) -> int:
        return len(self._layers[-1]) if self._layers else 0

    def describe(self) -> ModelDescription:
        return ModelDescription(
            layer_sizes=[len(layer) for layer in self._layers],
            activations=[layer.activation_fn.value for layer in self._layers],
        )

    def trainable_layers(self) -> List[Layer]:
        return self._layers[1:]

    def copy(self) -> "Network":
        return copy.deepcopy(self)

    def randomize(
        self,
        random: np.random.Generator | int | None,
        bias_magnitude: float = 1.0,
        weight_magnitude: float = 1.0,
    ) -> None:
        """Draw every trainable bias and weight uniformly from ``[-m, +m]``."""

        rng = _as_generator(random)
        for layer in self.trainable_layers():
            layer.randomize(rng, bias_magnitude, weight_magnitude)

    # ------------------------------------------------------------------
    # Coefficients

    def coefficient_count(self) -> int:
        return sum(layer.coefficient_count() for layer in self.trainable_layers())

    def create_coefficients(self) -> Array:
        return np.zeros(self.coefficient_count(), dtype=self.dtype)

    def get_coefficients(self, coefficients: Array | None = None) -> Array:
        if coefficients is None:
            coefficients = self.create_coefficients()
        self._check_coefficients("coefficients", coefficients)
        offset = 0
        for layer in self.trainable_layers():
            offset = layer.flatten_to(coefficients, offset)
        return coefficients

    def set_coefficients(self, coefficients: Array) -> None:
        if coefficients is None:
            raise NullArgumentError("coefficients")
        self._check_coefficients("coefficients", coefficients)
        offset = 0
        for layer in self.trainable_layers():
            offset = layer.load_from(coefficients, offset)

    def _check_coefficients(self, name: str, vector: Array) -> None:
        expected = self.coefficient_count()
        if vector.shape != (expected,):
            raise ShapeError(name, expected, int(vector.size))

    # ------------------------------------------------------------------
    # Evaluation

    def feed_forward(
        self, inputs: Array, outputs: Array | None = None, executor: Executor | None = None
    ) -> Array:
        """Evaluate the network for ``inputs`` and return the output vector."""

        if inputs is None:
            raise NullArgumentError("inputs")
        if not self._layers:
            raise StructureError("Cannot feed forward through an empty network")
        inputs = np.asarray(inputs).reshape(-1)
        if inputs.shape[0] != self.input_count:
            raise ShapeError("inputs", self.input_count, inputs.shape[0])
        if outputs is None:
            outputs = np.zeros(self.output_count, dtype=self.dtype)
        elif outputs.shape[0] != self.output_count:
            raise ShapeError("outputs", self.output_count, outputs.shape[0])

        self._layers[0].set_activations(inputs)
        for layer in self._layers[1:]:
            layer.forward_pass(executor)
        self._layers[-1].get_activations(outputs)
        return outputs

    def feed_backward(
        self,
        requirements: Array,
        cost_derivative,
        executor: Executor | None = None,
    ) -> None:
        """Compute every trainable neuron's delta, output layer first."""

        if requirements is None:
            raise NullArgumentError("requirements")
        if requirements.shape[0] != self.output_count:
            raise ShapeError("requirements", self.output_count, requirements.shape[0])
        self._layers[-1].compute_output_deltas(requirements, cost_derivative)
        for layer in reversed(self._layers[1:-1]):
            layer.compute_hidden_deltas(executor)

    def accumulate_gradient(self, gradient: Array) -> None:
        offset = 0
        for layer in self.trainable_layers():
            offset = layer.accumulate_gradient(gradient, offset)

    def evaluate(self, samples: SampleList, loss: str | losses.Loss = "mse") -> float:
        """Return the mean cost of ``samples`` without touching any gradient."""

        cost_fn = losses.resolve(loss)
        samples.validate(self.input_count, self.output_count)
        if not len(samples):
            return 0.0
        total = 0.0
        for sample in samples:
            outputs = self.feed_forward(sample.inputs)
            total += cost_fn.cost(outputs, sample.requirements)
        return total / len(samples)

    def compute_cost_and_gradient(
        self,
        samples: SampleList,
        gradient: Array,
        measurements: MeasurementList,
        arguments: CalculationArguments,
        executor: Executor | None = None,
    ) -> StepResult:
        """Full-batch mean cost; ``gradient`` receives the mean gradient.

        Samples are processed strictly in order because every sample adds
        into the same gradient buffer. On cancellation the partially
        accumulated gradient is meaningless and must be discarded.
        """

        if samples is None:
            raise NullArgumentError("samples")
        if gradient is None:
            raise NullArgumentError("gradient")
        self._check_coefficients("gradient", gradient)
        if len(measurements) != len(samples):
            raise ShapeError("measurements", len(samples), len(measurements))

        loss = losses.resolve(arguments.settings.loss)
        derivative = loss.derivative_for(self.output_count)
        total = len(samples)
        cost = 0.0
        gradient.fill(0)
        for index in range(total):
            if arguments.cancellation_requested():
                return StepResult(StepStatus.CANCELLED)
            sample: Sample = samples[index]
            measurement = measurements[index]
            self.feed_forward(sample.inputs, measurement, executor)
            cost += loss.cost(measurement, sample.requirements)
            self.feed_backward(sample.requirements, derivative, executor)
            self.accumulate_gradient(gradient)
            arguments.notify("report_progress", index + 1, total)

        if total:
            cost /= total
            gradient /= total
        return StepResult(StepStatus.OK, cost)

    # ------------------------------------------------------------------
    # Training

    def learn(self, samples: SampleList, arguments: CalculationArguments | None = None) -> MinimizationResult:
        """Train in place by steepest descent on the full sample batch."""

        if samples is None:
            raise NullArgumentError("samples")
        if len(self._layers) < 2:
            raise StructureError("Training needs an input layer and at least one trainable layer")
        arguments = arguments or CalculationArguments()
        samples.validate(self.input_count, self.output_count)
        settings = arguments.settings

        coefficients = self.get_coefficients()
        derivatives = self.create_coefficients()
        measurements = MeasurementList(len(samples), self.output_count, self.dtype)
        minimization = Minimization(settings.max_iter, settings.epsilon, settings.tolerance)
        logger.info(
            "learning %d coefficients on %d samples (max_iter=%d, learning_rate=%g)",
            coefficients.shape[0],
            len(samples),
            settings.max_iter,
            settings.learning_rate,
        )

        with self._executor(settings.parallel, settings.max_workers) as executor:

            def oracle(iteration: int) -> StepResult:
                self.set_coefficients(coefficients)
                arguments.notify("report_coefficients", coefficients)
                step = self.compute_cost_and_gradient(
                    samples, derivatives, measurements, arguments, executor
                )
                if not step.cancelled:
                    arguments.notify("report_cost_and_derivatives", step.cost, derivatives, measurements)
                return step

            result = minimization.steepest_descent(
                coefficients,
                derivatives,
                oracle,
                settings.learning_rate,
                cancellation=arguments.token,
                on_iteration=lambda i, n: arguments.notify("report_iteration", i, n),
            )

        self.set_coefficients(coefficients)
        if result.cancelled:
            logger.info("training stopped early after %d iterations", result.iterations)
        else:
            logger.info(
                "training finished: %s after %d iterations, cost %.6g",
                result.outcome.value,
                result.iterations,
                result.cost,
            )
        return result

    @staticmethod
    @contextmanager
    def _executor(parallel: bool, max_workers: int) -> Iterator[Executor | None]:
        if not parallel:
            yield None
            return
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="neunet") as pool:
            yield pool


__all__ = ["Network"]
