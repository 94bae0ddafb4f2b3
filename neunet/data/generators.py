"""Built-in in-memory sample sets."""

from __future__ import annotations

import numpy as np

from ..core.types import SampleList
from .registry import DatasetSpec, DataSpec, register_dataset

XOR_INPUTS = np.array([[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]], dtype=np.float32)
XOR_TARGETS = np.array([[0.0], [1.0], [1.0], [0.0]], dtype=np.float32)


@register_dataset("xor")
def make_xor(repeat: int = 1, noise: float = 0.0, seed: int = 0) -> DatasetSpec:
    """The four XOR corners, optionally repeated with Gaussian input jitter."""

    rng = np.random.default_rng(seed)
    x = np.tile(XOR_INPUTS, (max(1, int(repeat)), 1))
    y = np.tile(XOR_TARGETS, (max(1, int(repeat)), 1))
    if noise > 0.0:
        x = x + noise * rng.standard_normal(x.shape).astype(np.float32)
    return DatasetSpec(
        name="xor",
        samples=SampleList.from_arrays(x, y),
        data_spec=DataSpec(d_in=2, d_out=1),
        provenance={"type": "xor", "repeat": repeat, "noise": noise, "seed": seed},
    )


@register_dataset("sine")
def make_sine(n_points: int = 32, freq: float = 1.0, noise: float = 0.0, seed: int = 0) -> DatasetSpec:
    """``x`` on ``[-1, 1]`` mapped to ``(sin(freq*pi*x) + 1) / 2`` so targets fit a sigmoid."""

    rng = np.random.default_rng(seed)
    x = np.linspace(-1.0, 1.0, int(n_points), dtype=np.float32).reshape(-1, 1)
    y = 0.5 * (np.sin(freq * np.pi * x) + 1.0)
    if noise > 0.0:
        y = np.clip(y + noise * rng.standard_normal(y.shape), 0.0, 1.0)
    return DatasetSpec(
        name="sine",
        samples=SampleList.from_arrays(x, y.astype(np.float32)),
        data_spec=DataSpec(d_in=1, d_out=1),
        provenance={"type": "sine", "n_points": n_points, "freq": freq, "noise": noise, "seed": seed},
    )


@register_dataset("circle")
def make_circle(n_points: int = 25, radius: float = 0.35, seed: int = 0) -> DatasetSpec:
    """Random points in the unit square labelled 1 inside a centred circle."""

    rng = np.random.default_rng(seed)
    x = rng.uniform(0.0, 1.0, size=(int(n_points), 2)).astype(np.float32)
    inside = np.linalg.norm(x - 0.5, axis=1) < radius
    y = inside.astype(np.float32).reshape(-1, 1)
    return DatasetSpec(
        name="circle",
        samples=SampleList.from_arrays(x, y),
        data_spec=DataSpec(d_in=2, d_out=1),
        provenance={"type": "circle", "n_points": n_points, "radius": radius, "seed": seed},
    )
