"""Manifest describing one training run and the network it produced."""

from __future__ import annotations

import json
import platform
import subprocess
import time
from pathlib import Path
from typing import Mapping

import numpy as np

from ..core.network import Network


def _git_sha() -> str:
    try:
        out = subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL)
    except (OSError, subprocess.CalledProcessError):  # pragma: no cover - not a checkout
        return "unknown"
    return out.decode().strip()


def describe_network(network: Network) -> dict:
    """Topology summary stored next to the binary network file."""

    description = network.describe()
    return {
        "layer_sizes": description.layer_sizes,
        "activations": description.activations,
        "coefficients": network.coefficient_count(),
        "dtype": network.dtype.name,
    }


def write_manifest(
    path: str | Path,
    *,
    config: Mapping[str, object],
    dataset_provenance: Mapping[str, object],
    outcome: Mapping[str, object],
    network: Network | None = None,
) -> str:
    """Write ``manifest.json``: config, data provenance, network and optimizer outcome."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    manifest = {
        "created": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "git_sha": _git_sha(),
        "config": config,
        "dataset": dict(dataset_provenance),
        "network": describe_network(network) if network is not None else None,
        "outcome": dict(outcome),
        "environment": {"python": platform.python_version(), "numpy": np.__version__},
    }
    path.write_text(json.dumps(manifest, indent=2))
    return str(path)
