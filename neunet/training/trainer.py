"""Training loops: a foreground orchestrator and a background worker."""

from __future__ import annotations

import logging
import random
from concurrent import futures
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Sequence

import numpy as np

from ..core.arguments import CalculationArguments, CalculationSettings, CancellationToken
from ..core.minimization import MinimizationResult
from ..core.network import Network
from ..core.types import SampleList
from ..persistence import save_checkpoint
from ..reporting.progress import SinkReporter

logger = logging.getLogger(__name__)


class BackgroundTrainer:
    """Run :meth:`Network.learn` on a single worker thread.

    The caller keeps control: :meth:`start` returns immediately, progress is
    observed through the reporter and :meth:`cancel` requests a cooperative
    stop. The network must not be edited structurally while running.
    Restarting after a finished run uses a fresh cancellation token.
    """

    def __init__(
        self,
        network: Network,
        samples: SampleList,
        arguments: CalculationArguments | None = None,
    ) -> None:
        self.network = network
        self.samples = samples
        self.arguments = arguments or CalculationArguments()
        self._executor: ThreadPoolExecutor | None = None
        self._future: Future | None = None

    @property
    def token(self) -> CancellationToken:
        return self.arguments.token

    @property
    def running(self) -> bool:
        return self._future is not None and not self._future.done()

    def start(self) -> Future:
        if self.running:
            raise RuntimeError("Training is already running")
        if self._future is not None:
            self.arguments = CalculationArguments(
                self.arguments.settings, CancellationToken(), self.arguments.reporter
            )
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="neunet-learn")
        self._future = self._executor.submit(self.network.learn, self.samples, self.arguments)
        self._executor.shutdown(wait=False)
        return self._future

    def cancel(self) -> None:
        self.token.cancel()

    def result(self, timeout: float | None = None) -> MinimizationResult:
        if self._future is None:
            raise RuntimeError("Training has not been started")
        return self._future.result(timeout=timeout)


class Trainer:
    """Seed, initialise and train a network while feeding metric callbacks."""

    def __init__(
        self,
        network: Network,
        settings: CalculationSettings,
        callbacks: Sequence[object] | None = None,
        *,
        log_every: int = 0,
    ) -> None:
        self.network = network
        self.settings = settings
        self.callbacks = list(callbacks or [])
        self.log_every = log_every
        self.token = CancellationToken()

    def run(
        self,
        samples: SampleList,
        seed: int,
        *,
        bias_magnitude: float = 1.0,
        weight_magnitude: float = 1.0,
        randomize: bool = True,
        background: bool = False,
        checkpoint_dir: str | Path | None = None,
    ) -> MinimizationResult:
        self.token = CancellationToken()
        self._set_seed(seed)
        if randomize:
            self.network.randomize(np.random.default_rng(seed), bias_magnitude, weight_magnitude)

        reporter = SinkReporter(self.callbacks, log_every=self.log_every)
        arguments = CalculationArguments(self.settings, self.token, reporter)
        if background:
            result = self._run_background(samples, arguments)
        else:
            result = self.network.learn(samples, arguments)

        if checkpoint_dir is not None:
            save_checkpoint(Path(checkpoint_dir) / "last.ckpt", self.network)
        return result

    def cancel(self) -> None:
        self.token.cancel()

    def _run_background(self, samples: SampleList, arguments: CalculationArguments) -> MinimizationResult:
        worker = BackgroundTrainer(self.network, samples, arguments)
        future = worker.start()
        try:
            while True:
                try:
                    return future.result(timeout=0.1)
                except futures.TimeoutError:
                    continue
        except KeyboardInterrupt:
            logger.info("interrupt received, cancelling training")
            worker.cancel()
            return future.result()

    @staticmethod
    def _set_seed(seed: int) -> None:
        random.seed(seed)
        np.random.seed(seed % (2**32 - 1))


__all__ = ["BackgroundTrainer", "Trainer"]
