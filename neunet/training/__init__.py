"""Training orchestration for neunet."""

from .pipelines import load_preset, presets, run_pipeline
from .trainer import BackgroundTrainer, Trainer

__all__ = ["BackgroundTrainer", "Trainer", "load_preset", "presets", "run_pipeline"]
