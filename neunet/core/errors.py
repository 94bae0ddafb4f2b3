"""Exception types raised by the network core."""

from __future__ import annotations


class NeunetError(Exception):
    """Base class for all errors raised by :mod:`neunet`."""


class ShapeError(NeunetError, ValueError):
    """A vector length does not match the network topology."""

    def __init__(self, name: str, expected: int, actual: int) -> None:
        super().__init__(f"{name} has length {actual}, expected {expected}")
        self.name = name
        self.expected = expected
        self.actual = actual


class NullArgumentError(NeunetError, TypeError):
    """A required argument was ``None``."""

    def __init__(self, name: str) -> None:
        super().__init__(f"{name} must not be None")
        self.name = name


class StructureError(NeunetError, ValueError):
    """The network structure (or a persisted copy of it) is unusable."""


__all__ = ["NeunetError", "NullArgumentError", "ShapeError", "StructureError"]
