"""CSV sample sets scaled into the unit interval."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import numpy as np
import pandas as pd

from ..core.types import SampleList
from .registry import DatasetSpec, DataSpec, register_dataset


def _min_max(values: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    lo = values.min(axis=0)
    hi = values.max(axis=0)
    span = np.where(hi > lo, hi - lo, 1.0)
    return (values - lo) / span, lo, hi


@register_dataset("csv")
def load_csv(
    csv_path: str | Path,
    target_cols: Sequence[str] | str = ("target",),
    scale_inputs: bool = True,
    max_rows: int | None = None,
) -> DatasetSpec:
    """Read ``csv_path``; ``target_cols`` become requirements, the rest inputs.

    Requirements are always min-max scaled so a sigmoid output can reach
    them; inputs only when ``scale_inputs`` is set.
    """

    path = Path(csv_path)
    df = pd.read_csv(path, nrows=max_rows)
    targets = [target_cols] if isinstance(target_cols, str) else list(target_cols)
    missing = [col for col in targets if col not in df.columns]
    if missing:
        raise KeyError(f"Target column(s) {missing} not found in {path.name}")
    y = df[targets].to_numpy(dtype=np.float64)
    x = df.drop(columns=targets).to_numpy(dtype=np.float64)

    extra: dict[str, object] = {"input_columns": [c for c in df.columns if c not in targets]}
    y, y_lo, y_hi = _min_max(y)
    extra["targets"] = {"min": y_lo.tolist(), "max": y_hi.tolist()}
    if scale_inputs:
        x, x_lo, x_hi = _min_max(x)
        extra["inputs"] = {"min": x_lo.tolist(), "max": x_hi.tolist()}

    return DatasetSpec(
        name="csv",
        samples=SampleList.from_arrays(x.astype(np.float32), y.astype(np.float32)),
        data_spec=DataSpec(d_in=int(x.shape[1]), d_out=int(y.shape[1]), extra=extra),
        provenance={"type": "csv", "path": str(path), "rows": int(df.shape[0]), "targets": targets},
    )
