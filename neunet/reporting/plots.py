"""Cost and gradient-norm curves of a training run."""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping


class PlotAdapter:
    """Metric sink that records cost and gradient norm per iteration.

    Nothing is recorded unless ``enable_plots`` is set. :meth:`close` renders
    ``loss.png`` with the Agg backend so runs work without a display.
    """

    def __init__(self, run_dir: str | Path, enable_plots: bool = False):
        self.run_dir = Path(run_dir)
        self.enable_plots = enable_plots
        self.iterations: List[int] = []
        self.costs: List[float] = []
        self.grad_norms: List[float] = []

    def on_step(self, step: int, metrics: Mapping[str, float]) -> None:
        if not self.enable_plots:
            return
        self.iterations.append(int(step))
        self.costs.append(float(metrics["cost"]))
        self.grad_norms.append(float(metrics.get("grad_norm", float("nan"))))

    __call__ = on_step

    def close(self) -> Path | None:
        if not self.iterations:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt

        fig, (cost_ax, grad_ax) = plt.subplots(2, 1, sharex=True, figsize=(6, 6))
        cost_ax.semilogy(self.iterations, self.costs)
        cost_ax.set_ylabel("Cost")
        cost_ax.set_title(f"Final cost {self.costs[-1]:.4g} after {len(self.costs)} iterations")
        grad_ax.semilogy(self.iterations, self.grad_norms)
        grad_ax.set_ylabel("|gradient|")
        grad_ax.set_xlabel("Iteration")

        self.run_dir.mkdir(parents=True, exist_ok=True)
        target = self.run_dir / "loss.png"
        fig.savefig(target)
        plt.close(fig)
        return target
