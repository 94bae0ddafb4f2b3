"""Progress reporter that forwards training events to metric sinks."""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

import numpy as np

from ..core.types import Array, MeasurementList

logger = logging.getLogger(__name__)


class SinkReporter:
    """Turn per-iteration cost reports into ``on_step`` calls on ``sinks``.

    Sinks are objects with an ``on_step(step, metrics)`` method or plain
    callables with the same signature. ``log_every`` controls how often an
    INFO line is logged; 0 disables it.
    """

    def __init__(self, sinks: Sequence[object] = (), *, log_every: int = 0) -> None:
        self.sinks = list(sinks)
        self.log_every = int(log_every)
        self.iteration = 0
        self.max_iter = 0
        self.samples_done = 0
        self.samples_total = 0
        self.last_cost: float | None = None

    def report_iteration(self, iteration: int, max_iter: int) -> None:
        self.iteration = iteration
        self.max_iter = max_iter

    def report_progress(self, done: int, total: int) -> None:
        self.samples_done = done
        self.samples_total = total

    def report_cost_and_derivatives(
        self, cost: float, derivatives: Array, measurements: MeasurementList
    ) -> None:
        self.last_cost = float(cost)
        metrics = {
            "cost": float(cost),
            "grad_norm": float(np.linalg.norm(derivatives.astype(np.float64))),
            "samples": float(len(measurements)),
        }
        self._emit(self.iteration, metrics)
        if self.log_every and self.iteration % self.log_every == 0:
            logger.info(
                "iteration %d/%d cost=%.6g grad_norm=%.3g",
                self.iteration,
                self.max_iter,
                metrics["cost"],
                metrics["grad_norm"],
            )

    def _emit(self, step: int, metrics: Mapping[str, float]) -> None:
        for sink in self.sinks:
            if hasattr(sink, "on_step"):
                sink.on_step(step, metrics)  # type: ignore[attr-defined]
            elif callable(sink):
                sink(step, metrics)


__all__ = ["SinkReporter"]
