"""Utility for running small hyper-parameter sweeps over presets."""

from __future__ import annotations

import argparse
import itertools
import json
from pathlib import Path
from typing import Iterable, Sequence

from neunet.training import pipelines


def _parse_int_list(values: Sequence[str]) -> list[int]:
    return [int(v) for v in values]


def _parse_float_list(values: Sequence[str]) -> list[float]:
    return [float(v) for v in values]


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--preset", required=True, help="Preset name to sweep over")
    parser.add_argument(
        "--lr",
        nargs="+",
        default=["0.5", "1.0", "2.0"],
        help="Learning rates to evaluate",
    )
    parser.add_argument(
        "--hidden",
        nargs="+",
        default=["2", "4", "8"],
        help="Hidden layer widths to evaluate",
    )
    parser.add_argument("--max-iter", type=int, help="Override the iteration cap of every run")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("runs/sweeps"),
        help="Directory to store sweep run outputs",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the resolved configurations without executing them",
    )
    return parser.parse_args(argv)


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    base = pipelines.load_preset(args.preset)
    base_hidden = list(dict(base.get("model", {})).get("hidden", []))
    depth = len(base_hidden) if base_hidden else 1

    lr_values = _parse_float_list(args.lr)
    hidden_values = _parse_int_list(args.hidden)

    output_root = Path(args.output_dir) / args.preset
    output_root.mkdir(parents=True, exist_ok=True)

    for lr, hidden in itertools.product(lr_values, hidden_values):
        config = json.loads(json.dumps(base))
        model_cfg = config.setdefault("model", {})
        train_cfg = config.setdefault("train", {})

        layer_widths = [hidden for _ in range(depth)]
        model_cfg["hidden"] = layer_widths
        train_cfg["learning_rate"] = float(lr)
        if args.max_iter is not None:
            train_cfg["max_iter"] = int(args.max_iter)

        run_name = f"lr-{lr:g}_hidden-{hidden}"
        run_dir = output_root / run_name.replace(".", "p")
        train_cfg["run_dir"] = str(run_dir)

        if args.dry_run:
            payload = {
                "preset": args.preset,
                "learning_rate": lr,
                "hidden": layer_widths,
                "run_dir": str(run_dir),
            }
            print(json.dumps({"run": run_name, "config": payload}, sort_keys=True))
            continue

        result = pipelines.run_pipeline(config)
        print(
            json.dumps(
                {
                    "run": run_name,
                    "outcome": result.outcome,
                    "iterations": result.iterations,
                    "cost": result.cost,
                    "metrics": result.metrics_path,
                    "manifest": result.manifest_path,
                },
                sort_keys=True,
            )
        )


if __name__ == "__main__":
    main()
