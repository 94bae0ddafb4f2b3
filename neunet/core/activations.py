"""Activation functions available to neurons."""

from __future__ import annotations

import enum
import math


def _sigmoid(z: float) -> float:
    if z >= 0.0:
        return 1.0 / (1.0 + math.exp(-z))
    e = math.exp(z)
    return e / (1.0 + e)


class Activation(enum.Enum):
    """Closed set of activation functions.

    Derivatives are expressed in terms of the activation *output* ``a``
    rather than the pre-activation sum, which is all a neuron keeps after
    its forward pass.
    """

    SIGMOID = "sigmoid"
    TANH = "tanh"
    RELU = "relu"
    IDENTITY = "identity"

    def apply(self, z: float) -> float:
        if self is Activation.SIGMOID:
            return _sigmoid(z)
        if self is Activation.TANH:
            return math.tanh(z)
        if self is Activation.RELU:
            return z if z > 0.0 else 0.0
        return z

    def derivative(self, a: float) -> float:
        if self is Activation.SIGMOID:
            return a * (1.0 - a)
        if self is Activation.TANH:
            return 1.0 - a * a
        if self is Activation.RELU:
            return 1.0 if a > 0.0 else 0.0
        return 1.0

    @property
    def code(self) -> int:
        return _CODES[self]

    @classmethod
    def from_code(cls, code: int) -> "Activation":
        for member, value in _CODES.items():
            if value == code:
                return member
        raise ValueError(f"Unknown activation code: {code}")

    @classmethod
    def parse(cls, value: "Activation | str") -> "Activation":
        """Resolve ``value`` (a member or its config name) to a member."""

        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError as exc:
            available = ", ".join(member.value for member in cls)
            raise ValueError(
                f"Unknown activation {value!r}. Available activations: {available}"
            ) from exc


# Persisted in network files; never renumber.
_CODES = {
    Activation.SIGMOID: 1,
    Activation.TANH: 2,
    Activation.RELU: 3,
    Activation.IDENTITY: 4,
}


__all__ = ["Activation"]
