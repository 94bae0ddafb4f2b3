"""Per-sample cost functions used by the backward pass."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable

import numpy as np

from .errors import ShapeError
from .types import Array

CostFn = Callable[[Array, Array], float]
DerivativeFn = Callable[[float, float, int], float]

_CLIP = 1e-7


@dataclass(frozen=True)
class Loss:
    """Cost of one sample plus its derivative with respect to one output.

    ``derivative(a, t, n)`` is the partial derivative of ``cost`` with respect
    to output activation ``a`` given target ``t`` and ``n`` outputs.
    """

    name: str
    cost_fn: CostFn
    derivative_fn: DerivativeFn

    def cost(self, outputs: Array, targets: Array) -> float:
        if outputs.shape[0] != targets.shape[0]:
            raise ShapeError("targets", outputs.shape[0], targets.shape[0])
        return self.cost_fn(outputs, targets)

    def derivative_for(self, output_count: int) -> Callable[[float, float], float]:
        derivative = self.derivative_fn
        return lambda a, t: derivative(a, t, output_count)


class LossRegistry:
    """Central registry for cost functions."""

    def __init__(self) -> None:
        self._registry: Dict[str, Loss] = {}

    def register(self, name: str, cost_fn: CostFn, derivative_fn: DerivativeFn) -> None:
        self._registry[name] = Loss(name, cost_fn, derivative_fn)

    def names(self) -> Iterable[str]:
        return sorted(self._registry)

    def resolve(self, name: str | Loss) -> Loss:
        if isinstance(name, Loss):
            return name
        if name not in self._registry:
            available = ", ".join(sorted(self._registry))
            raise KeyError(f"Unknown loss {name!r}. Available losses: {available}")
        return self._registry[name]


REGISTRY = LossRegistry()


def _mse(outputs: Array, targets: Array) -> float:
    diff = outputs.astype(np.float64) - targets
    return float(np.dot(diff, diff) / (2.0 * diff.shape[0]))


def _mse_derivative(a: float, t: float, n: int) -> float:
    return (a - t) / n


def _cross_entropy(outputs: Array, targets: Array) -> float:
    y = np.clip(outputs.astype(np.float64), _CLIP, 1.0 - _CLIP)
    t = targets.astype(np.float64)
    return float(-np.sum(t * np.log(y) + (1.0 - t) * np.log(1.0 - y)) / y.shape[0])


def _cross_entropy_derivative(a: float, t: float, n: int) -> float:
    # the clipped cost is flat outside the clip range
    if a < _CLIP or a > 1.0 - _CLIP:
        return 0.0
    return (a - t) / (a * (1.0 - a) * n)


REGISTRY.register("mse", _mse, _mse_derivative)
REGISTRY.register("cross_entropy", _cross_entropy, _cross_entropy_derivative)


def resolve(name: str | Loss) -> Loss:
    return REGISTRY.resolve(name)


__all__ = ["Loss", "LossRegistry", "REGISTRY", "resolve"]
