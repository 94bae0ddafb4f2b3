import time
from pathlib import Path

import pytest

from neunet.training import pipelines


@pytest.mark.perf
def test_xor_baseline_runtime(tmp_path):
    config = pipelines.load_preset("xor")
    config["train"]["max_iter"] = 200
    config["train"]["run_dir"] = str(tmp_path / "run")

    start = time.perf_counter()
    result = pipelines.run_pipeline(config)
    duration = time.perf_counter() - start

    assert duration <= 10.0
    assert result.iterations <= 200
    assert Path(result.metrics_path).exists()


@pytest.mark.perf
def test_parallel_pipeline_runs(tmp_path):
    config = pipelines.load_preset("sine")
    config["model"]["hidden"] = [16, 16]
    config["train"].update(
        {"max_iter": 10, "parallel": True, "max_workers": 4, "run_dir": str(tmp_path / "par")}
    )
    result = pipelines.run_pipeline(config)
    assert result.iterations == 10
