"""Fixed-step steepest descent over an opaque coefficient vector."""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, field
from typing import Callable, List

from .arguments import CancellationToken, StepResult
from .types import Array

logger = logging.getLogger(__name__)

Oracle = Callable[[int], StepResult]


class State(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    CONVERGED = "converged"
    ITERATION_LIMIT = "iteration_limit"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in {State.CONVERGED, State.ITERATION_LIMIT, State.CANCELLED}


# Terminal states double as run outcomes.
Outcome = State


@dataclass
class MinimizationResult:
    """How a :meth:`Minimization.steepest_descent` call ended."""

    outcome: State
    iterations: int
    cost: float
    initial_cost: float
    history: List[float] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        return self.outcome is State.CONVERGED

    @property
    def cancelled(self) -> bool:
        return self.outcome is State.CANCELLED


class Minimization:
    """Full-batch gradient descent with a fixed learning rate.

    ``iterations`` in the result counts oracle evaluations that completed.
    The run stops with :attr:`State.CONVERGED` when, from the second
    evaluation on,

        2 * |cost_k - cost_{k-1}| <= tol * (|cost_k| + |cost_{k-1}| + eps)

    holds; ``tol == 0`` therefore only stops on an exactly repeated cost.
    The vector is not updated after the evaluation that satisfied the test.
    """

    def __init__(self, max_iter: int = 1000, eps: float = 1e-10, tol: float = 1e-7) -> None:
        self.max_iter = int(max_iter)
        self.eps = float(eps)
        self.tol = float(tol)
        self.state = State.IDLE

    def __repr__(self) -> str:
        return f"Minimization(max_iter={self.max_iter}, eps={self.eps}, tol={self.tol}, state={self.state.value})"

    def has_converged(self, cost: float, previous: float) -> bool:
        return 2.0 * abs(cost - previous) <= self.tol * (abs(cost) + abs(previous) + self.eps)

    def steepest_descent(
        self,
        x: Array,
        g: Array,
        oracle: Oracle,
        learning_rate: float,
        cancellation: CancellationToken | None = None,
        on_iteration: Callable[[int, int], None] | None = None,
    ) -> MinimizationResult:
        """Minimize in place; ``oracle`` must refresh ``g`` at the current ``x``."""

        if x.shape != g.shape:
            raise ValueError(f"Gradient shape {g.shape} does not match coefficients {x.shape}")
        if learning_rate <= 0.0:
            raise ValueError(f"learning_rate must be positive, got {learning_rate}")

        self.state = State.RUNNING
        history: List[float] = []
        previous = math.nan
        outcome = State.ITERATION_LIMIT
        for iteration in range(self.max_iter):
            if cancellation is not None and cancellation.cancelled:
                outcome = State.CANCELLED
                break
            if on_iteration is not None:
                on_iteration(iteration, self.max_iter)
            step = oracle(iteration)
            if step.cancelled:
                outcome = State.CANCELLED
                break
            cost = float(step.cost)
            if not math.isfinite(cost):
                self.state = State.IDLE
                raise FloatingPointError(f"Cost became non-finite at iteration {iteration}: {cost}")
            history.append(cost)
            if iteration > 0 and self.has_converged(cost, previous):
                outcome = State.CONVERGED
                break
            previous = cost
            x -= learning_rate * g

        self.state = outcome
        result = MinimizationResult(
            outcome=outcome,
            iterations=len(history),
            cost=history[-1] if history else math.nan,
            initial_cost=history[0] if history else math.nan,
            history=history,
        )
        logger.debug("steepest descent stopped: %s after %d iterations", outcome.value, result.iterations)
        return result


__all__ = ["Minimization", "MinimizationResult", "Oracle", "Outcome", "State"]
