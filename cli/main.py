"""Command line entry point for neunet training runs."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Iterable

from neunet.training import pipelines


def _format_result(result) -> str:
    payload = {
        "iterations": result.iterations,
        "outcome": result.outcome,
        "cost": result.cost,
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
        "network": result.network_path,
    }
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="xor",
        help="Preset configuration to execute",
    )
    parser.add_argument(
        "--config", type=Path, help="Optional JSON/YAML config override"
    )
    parser.add_argument("--seed", type=int, help="Seed used for initialisation")
    parser.add_argument("--max-iter", type=int, help="Override the iteration cap")
    parser.add_argument("--learning-rate", type=float, help="Override the learning rate")
    parser.add_argument("--run-dir", type=Path, help="Directory receiving run artifacts")
    parser.add_argument(
        "--background",
        action="store_true",
        help="Train on a worker thread; Ctrl-C cancels cooperatively",
    )
    parser.add_argument(
        "--enable-plots", action="store_true", help="Write a cost curve to loss.png"
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser.parse_args(argv)


def resolve_config(args: argparse.Namespace) -> dict:
    config = pipelines.load_preset(args.preset)
    if args.config:
        override = pipelines.load_config_file(args.config)
        if {"data", "model", "train"} <= set(override.keys()):
            config = override
        else:
            config = pipelines.merge_config(config, override)

    train = config.setdefault("train", {})
    if args.seed is not None:
        train["seed"] = int(args.seed)
    if args.max_iter is not None:
        train["max_iter"] = int(args.max_iter)
    if args.learning_rate is not None:
        train["learning_rate"] = float(args.learning_rate)
    if args.run_dir is not None:
        train["run_dir"] = str(args.run_dir)
    if args.background:
        train["background"] = True
    if args.enable_plots:
        train["enable_plots"] = True
    return json.loads(json.dumps(config))


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    config = resolve_config(args)

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    result = pipelines.run_pipeline(config)
    print(_format_result(result))


if __name__ == "__main__":
    main()
