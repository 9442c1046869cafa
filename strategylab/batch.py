"""
Batch execution for running several independent backtests over one series.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import ray

from strategylab.backtester.engine import run_backtest
from strategylab.backtester.results import BacktestReport
from strategylab.config import BacktestConfig
from strategylab.data.candles import Candle

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Result from a single backtest run."""
    name: str
    config: BacktestConfig
    report: Optional[BacktestReport]
    error: Optional[str] = None


def _run_single(args: Tuple[str, Sequence[Candle], BacktestConfig]) -> RunResult:
    name, candles, config = args
    try:
        report = run_backtest(candles, config)
        return RunResult(name=name, config=config, report=report)
    except Exception as e:
        logger.exception("Run %s failed", name)
        return RunResult(name=name, config=config, report=None, error=str(e))


class BatchRunner:
    """
    Runs one backtest per configuration. Runs share no mutable state, so
    they may be executed in separate worker processes.
    """

    def __init__(
        self,
        candles: Sequence[Candle],
        configs: Sequence[BacktestConfig],
        names: Optional[Sequence[str]] = None,
        parallel: bool = False,
        max_workers: Optional[int] = None,
    ):
        if names is not None and len(names) != len(configs):
            raise ValueError("names and configs must have the same length")
        self.candles = list(candles)
        self.configs = list(configs)
        self.names = list(names) if names is not None else [f"Run {i + 1}" for i in range(len(configs))]
        self.parallel = parallel
        self.max_workers = max_workers

    def run_all(self) -> List[RunResult]:
        """Runs every configuration and returns the results in input order."""
        logger.info("Batch run: %d configurations (parallel: %s)", len(self.configs), self.parallel)
        args_list = [(name, self.candles, config) for name, config in zip(self.names, self.configs)]

        if self.parallel:
            results = self._run_parallel(args_list)
        else:
            results = [_run_single(args) for args in args_list]

        failed = [r for r in results if r.error is not None]
        if failed:
            logger.warning("%d of %d runs failed", len(failed), len(results))
        return results

    def _run_parallel(self, args_list: List[Tuple[str, Sequence[Candle], BacktestConfig]]) -> List[RunResult]:
        """Runs every configuration as a Ray task; results keep the input order."""
        if not ray.is_initialized():
            ray.init(num_cpus=self.max_workers, ignore_reinit_error=True)

        @ray.remote
        def run_single_remote(name: str, candles: Sequence[Candle], config: BacktestConfig) -> RunResult:
            return _run_single((name, candles, config))

        # One shared copy of the series in the object store
        candles_ref = ray.put(self.candles)
        futures = [run_single_remote.remote(name, candles_ref, config) for name, _, config in args_list]
        logger.info("Submitted %d parallel tasks", len(futures))
        return ray.get(futures)
