"""neunet public API."""

from .core import (
    Activation,
    CalculationArguments,
    CalculationSettings,
    CancellationToken,
    Layer,
    MeasurementList,
    Minimization,
    MinimizationResult,
    Network,
    NeunetError,
    Neuron,
    NullArgumentError,
    Outcome,
    Sample,
    SampleList,
    ShapeError,
    StructureError,
)
from .persistence import load_network, read_structure, save_network, write_structure
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import BackgroundTrainer, Trainer

__version__ = "0.1.0"

__all__ = [
    "Activation",
    "BackgroundTrainer",
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
    "Sample",
    "SampleList",
    "ShapeError",
    "StructureError",
    "Trainer",
    "load_network",
    "load_preset",
    "presets",
    "read_structure",
    "run_pipeline",
    "save_network",
    "write_structure",
]
