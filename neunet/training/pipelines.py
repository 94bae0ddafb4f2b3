"""Preset-driven training pipeline."""

from __future__ import annotations

import json
import logging
from copy import deepcopy
from pathlib import Path
from typing import Dict, List, Mapping

import numpy as np

from ..core.arguments import CalculationSettings
from ..core.network import Network
from ..core.types import RunResult
from ..data import get_dataset
from ..persistence import save_network
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from .trainer import Trainer

logger = logging.getLogger(__name__)

_PRESETS: Dict[str, Mapping[str, object]] = {
    "xor": {
        "data": {"name": "xor", "options": {}},
        "model": {
            "hidden": [4],
            "activation": "tanh",
            "output_activation": "sigmoid",
            "bias_magnitude": 1.0,
            "weight_magnitude": 1.0,
        },
        "train": {
            "seed": 7,
            "max_iter": 3000,
            "learning_rate": 2.0,
            "tolerance": 0.0,
            "run_dir": "runs/xor",
            "enable_plots": False,
        },
    },
    "sine": {
        "data": {"name": "sine", "options": {"n_points": 32, "freq": 1.0}},
        "model": {
            "hidden": [8],
            "activation": "tanh",
            "output_activation": "sigmoid",
            "bias_magnitude": 0.5,
            "weight_magnitude": 1.0,
        },
        "train": {
            "seed": 1,
            "max_iter": 2000,
            "learning_rate": 1.0,
            "tolerance": 1e-9,
            "run_dir": "runs/sine",
            "enable_plots": False,
        },
    },
    "circle": {
        "data": {"name": "circle", "options": {"n_points": 25, "radius": 0.35, "seed": 0}},
        "model": {
            "hidden": [6],
            "activation": "sigmoid",
            "output_activation": "sigmoid",
            "bias_magnitude": 1.0,
            "weight_magnitude": 1.0,
        },
        "train": {
            "seed": 3,
            "max_iter": 2000,
            "learning_rate": 1.0,
            "tolerance": 1e-9,
            "run_dir": "runs/circle",
            "enable_plots": False,
        },
    },
}

# Keys of the ``train`` section that map one-to-one onto CalculationSettings.
_SETTINGS_KEYS = ("max_iter", "epsilon", "tolerance", "learning_rate", "loss", "parallel", "max_workers")


def presets() -> Mapping[str, Mapping[str, object]]:
    return {name: deepcopy(cfg) for name, cfg in _PRESETS.items()}


def load_preset(name: str) -> Dict[str, object]:
    try:
        return deepcopy(dict(_PRESETS[name]))
    except KeyError as exc:
        available = ", ".join(sorted(_PRESETS))
        raise KeyError(f"Unknown preset: {name!r}. Available presets: {available}") from exc


def load_config_file(path: str | Path) -> Dict[str, object]:
    """Read a JSON or YAML config (override) file."""

    path = Path(path)
    text = path.read_text()
    if path.suffix.lower() in {".yml", ".yaml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    elif path.suffix.lower() == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")
    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return dict(data)


def merge_config(base: Mapping[str, object], override: Mapping[str, object]) -> Dict[str, object]:
    merged = deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge_config(merged[key], value)  # type: ignore[arg-type]
        else:
            merged[key] = deepcopy(value)
    return merged


def build_network(model_cfg: Mapping[str, object], d_in: int, d_out: int) -> Network:
    hidden = [int(size) for size in model_cfg.get("hidden", [])]  # type: ignore[union-attr]
    sizes = [int(d_in), *hidden, int(d_out)]
    activation = str(model_cfg.get("activation", "sigmoid"))
    output_activation = str(model_cfg.get("output_activation", activation))
    dtype = np.dtype(str(model_cfg.get("dtype", "float32")))
    return Network.from_sizes(sizes, activation, output_activation, dtype=dtype)


def build_settings(train_cfg: Mapping[str, object]) -> CalculationSettings:
    return CalculationSettings.from_mapping({k: train_cfg[k] for k in _SETTINGS_KEYS if k in train_cfg})


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config.get("model", {}))  # type: ignore[arg-type]
    train_cfg = dict(config.get("train", {}))  # type: ignore[arg-type]

    dataset = get_dataset(str(data_cfg["name"]), **dict(data_cfg.get("options", {})))
    network = build_network(model_cfg, dataset.data_spec.d_in, dataset.data_spec.d_out)
    settings = build_settings(train_cfg)
    seed = int(train_cfg.get("seed", 0))

    run_dir = Path(str(train_cfg.get("run_dir", f"runs/{dataset.name}")))
    run_dir.mkdir(parents=True, exist_ok=True)

    _print_startup_summary(
        dataset_name=dataset.name,
        samples=len(dataset),
        sizes=network.describe().layer_sizes,
        activations=network.describe().activations,
        settings=settings,
        coefficient_count=network.coefficient_count(),
    )

    jsonl = JsonlSink(run_dir / "metrics.jsonl", seed=seed)
    csv_sink = CsvSink(run_dir / "metrics.csv")
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))

    trainer = Trainer(
        network,
        settings,
        callbacks=[jsonl, csv_sink, plots],
        log_every=int(train_cfg.get("log_every", 0)),
    )
    result = trainer.run(
        dataset.samples,
        seed,
        bias_magnitude=float(model_cfg.get("bias_magnitude", 1.0)),
        weight_magnitude=float(model_cfg.get("weight_magnitude", 1.0)),
        background=bool(train_cfg.get("background", False)),
        checkpoint_dir=run_dir,
    )
    plots.close()

    network_path = save_network(run_dir / "network.bin", network)
    final_cost = network.evaluate(dataset.samples, settings.loss)
    outcome = {
        "outcome": result.outcome.value,
        "iterations": result.iterations,
        "initial_cost": result.initial_cost,
        "final_cost": final_cost,
    }
    manifest_path = write_manifest(
        run_dir / "manifest.json",
        config=json.loads(json.dumps(config)),
        dataset_provenance=dataset.provenance,
        outcome=outcome,
        network=network,
    )
    logger.info("run finished: %s", outcome)
    return RunResult(
        iterations=result.iterations,
        outcome=result.outcome.value,
        cost=final_cost,
        metrics_path=str(jsonl.path),
        manifest_path=manifest_path,
        network_path=network_path,
    )


def _print_startup_summary(
    *,
    dataset_name: str,
    samples: int,
    sizes: List[int],
    activations: List[str],
    settings: CalculationSettings,
    coefficient_count: int,
) -> None:
    print("=== neunet run ===")
    print(f"Dataset       : {dataset_name} ({samples} samples)")
    print(f"Layers        : {sizes}")
    print(f"Activations   : {activations}")
    print(f"Loss          : {settings.loss}")
    print(f"Learning rate : {settings.learning_rate}")
    print(f"Max iter      : {settings.max_iter}")
    print(f"Coefficients  : {coefficient_count}")
    print("==================")


__all__ = [
    "build_network",
    "build_settings",
    "load_config_file",
    "load_preset",
    "merge_config",
    "presets",
    "run_pipeline",
]
