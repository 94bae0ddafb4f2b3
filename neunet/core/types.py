"""Core typing contracts for neunet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Sequence, Tuple, overload

import numpy as np

from .errors import NullArgumentError, ShapeError

Array = np.ndarray

DEFAULT_DTYPE = np.float32


def _frozen_vector(values: Sequence[float] | Array, dtype=DEFAULT_DTYPE) -> Array:
    vector = np.array(values, dtype=dtype).reshape(-1)
    vector.setflags(write=False)
    return vector


@dataclass(frozen=True, eq=False)
class Sample:
    """A single training example: an input vector and its required output."""

    inputs: Array
    requirements: Array

    def __post_init__(self) -> None:
        if self.inputs is None:
            raise NullArgumentError("inputs")
        if self.requirements is None:
            raise NullArgumentError("requirements")
        object.__setattr__(self, "inputs", _frozen_vector(self.inputs))
        object.__setattr__(self, "requirements", _frozen_vector(self.requirements))


class SampleList(Sequence[Sample]):
    """Immutable ordered collection of :class:`Sample` objects."""

    def __init__(self, samples: Iterable[Sample] = ()) -> None:
        self._samples: Tuple[Sample, ...] = tuple(samples)

    @classmethod
    def from_arrays(cls, inputs: Array, requirements: Array) -> "SampleList":
        """Build a list from row-aligned 2-D ``inputs`` and ``requirements``."""

        if inputs is None:
            raise NullArgumentError("inputs")
        if requirements is None:
            raise NullArgumentError("requirements")
        x = np.asarray(inputs)
        y = np.asarray(requirements)
        if x.ndim == 1:
            x = x.reshape(-1, 1)
        if y.ndim == 1:
            y = y.reshape(-1, 1)
        if x.shape[0] != y.shape[0]:
            raise ShapeError("requirements", x.shape[0], y.shape[0])
        return cls(Sample(xi, yi) for xi, yi in zip(x, y))

    @overload
    def __getitem__(self, index: int) -> Sample: ...

    @overload
    def __getitem__(self, index: slice) -> "SampleList": ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return SampleList(self._samples[index])
        return self._samples[index]

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(self._samples)

    def __repr__(self) -> str:
        return f"SampleList(n={len(self)}, inputs={self.input_count}, outputs={self.output_count})"

    @property
    def input_count(self) -> int:
        return int(self._samples[0].inputs.shape[0]) if self._samples else 0

    @property
    def output_count(self) -> int:
        return int(self._samples[0].requirements.shape[0]) if self._samples else 0

    def validate(self, input_count: int, output_count: int) -> None:
        """Raise :class:`ShapeError` unless every sample fits the topology."""

        for index, sample in enumerate(self._samples):
            if sample.inputs.shape[0] != input_count:
                raise ShapeError(f"samples[{index}].inputs", input_count, sample.inputs.shape[0])
            if sample.requirements.shape[0] != output_count:
                raise ShapeError(
                    f"samples[{index}].requirements", output_count, sample.requirements.shape[0]
                )

    def as_arrays(self, dtype=DEFAULT_DTYPE) -> Tuple[Array, Array]:
        x = np.stack([s.inputs for s in self._samples]).astype(dtype)
        y = np.stack([s.requirements for s in self._samples]).astype(dtype)
        return x, y


class MeasurementList(Sequence[Array]):
    """Reusable per-sample output buffers, index aligned with a sample list."""

    def __init__(self, sample_count: int, output_count: int, dtype=DEFAULT_DTYPE) -> None:
        self._buffer = np.zeros((sample_count, output_count), dtype=dtype)

    def __getitem__(self, index):  # type: ignore[override]
        return self._buffer[index]

    def __len__(self) -> int:
        return int(self._buffer.shape[0])

    def __iter__(self) -> Iterator[Array]:
        return iter(self._buffer)

    @property
    def output_count(self) -> int:
        return int(self._buffer.shape[1])

    def to_array(self) -> Array:
        return self._buffer.copy()


@dataclass(frozen=True)
class ModelDescription:
    """Description of the feed-forward network architecture."""

    layer_sizes: List[int]
    activations: List[str]


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`neunet.training.pipelines.run_pipeline`."""

    iterations: int
    outcome: str
    cost: float
    metrics_path: str
    manifest_path: str
    network_path: str = ""
