"""Core numerical primitives for neunet."""

from . import activations, arguments, errors, losses, minimization, types
from .activations import Activation
from .arguments import (
    CalculationArguments,
    CalculationSettings,
    CancellationToken,
    ProgressReporter,
    StepResult,
    StepStatus,
)
from .errors import NeunetError, NullArgumentError, ShapeError, StructureError
from .layer import Layer
from .minimization import Minimization, MinimizationResult, Outcome
from .network import Network
from .neuron import Neuron
from .types import MeasurementList, Sample, SampleList

__all__ = [
    "Activation",
    "CalculationArguments",
    "CalculationSettings",
    "CancellationToken",
    "Layer",
    "MeasurementList",
    "Minimization",
    "MinimizationResult",
    "Network",
    "NeunetError",
    "Neuron",
    "NullArgumentError",
    "Outcome",
    "ProgressReporter",
    "Sample",
    "SampleList",
    "ShapeError",
    "StepResult",
    "StepStatus",
    "StructureError",
    "activations",
    "arguments",
    "errors",
    "losses",
    "minimization",
    "types",
]
