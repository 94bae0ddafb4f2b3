"""Numeric settings, cancellation and progress reporting for a training run."""

from __future__ import annotations

import enum
import threading
from dataclasses import dataclass, fields
from typing import Mapping, Protocol

from .types import Array, MeasurementList


@dataclass(frozen=True)
class CalculationSettings:
    """Numeric settings of one :meth:`Network.learn` call."""

    max_iter: int = 1000
    epsilon: float = 1e-10
    tolerance: float = 1e-7
    learning_rate: float = 0.5
    loss: str = "mse"
    parallel: bool = False
    max_workers: int = 4

    def __post_init__(self) -> None:
        if self.max_iter < 0:
            raise ValueError(f"max_iter must be >= 0, got {self.max_iter}")
        if self.learning_rate <= 0.0:
            raise ValueError(f"learning_rate must be positive, got {self.learning_rate}")
        if self.tolerance < 0.0 or self.epsilon < 0.0:
            raise ValueError("tolerance and epsilon must be >= 0")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, object]) -> "CalculationSettings":
        known = {f.name for f in fields(cls)}
        unknown = set(mapping) - set(known)
        if unknown:
            raise KeyError(
                f"Unknown calculation settings: {', '.join(sorted(unknown))}. "
                f"Available settings: {', '.join(sorted(known))}"
            )
        converted = {}
        for name, value in mapping.items():
            default = getattr(cls, name)
            if isinstance(default, bool):
                converted[name] = bool(value)
            else:
                converted[name] = type(default)(value)
        return cls(**converted)


class CancellationToken:
    """Poll-able cancellation flag shared between a worker and its caller."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"


class ProgressReporter(Protocol):
    """Optional progress callbacks; implement any subset of these methods."""

    def report_progress(self, done: int, total: int) -> None:
        """Samples processed so far in the current evaluation."""

    def report_iteration(self, iteration: int, max_iter: int) -> None:
        """Optimizer iteration about to be evaluated."""

    def report_coefficients(self, coefficients: Array) -> None:
        """Trial coefficient vector written into the network."""

    def report_cost_and_derivatives(
        self, cost: float, derivatives: Array, measurements: MeasurementList
    ) -> None:
        """Cost, averaged gradient and outputs of one full-batch evaluation."""


class StepStatus(enum.Enum):
    OK = "ok"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class StepResult:
    """Result of one cost-and-gradient evaluation."""

    status: StepStatus
    cost: float = float("nan")

    @property
    def cancelled(self) -> bool:
        return self.status is StepStatus.CANCELLED


class CalculationArguments:
    """Bundle of settings, a cancellation token and an optional reporter."""

    def __init__(
        self,
        settings: CalculationSettings | None = None,
        token: CancellationToken | None = None,
        reporter: object | None = None,
    ) -> None:
        self.settings = settings or CalculationSettings()
        self.token = token or CancellationToken()
        self.reporter = reporter

    def cancellation_requested(self) -> bool:
        return self.token.cancelled

    def notify(self, event: str, *payload: object) -> None:
        """Forward ``payload`` to ``reporter.<event>`` when it is implemented."""

        if self.reporter is None:
            return
        callback = getattr(self.reporter, event, None)
        if callable(callback):
            callback(*payload)


__all__ = [
    "CalculationArguments",
    "CalculationSettings",
    "CancellationToken",
    "ProgressReporter",
    "StepResult",
    "StepStatus",
]
