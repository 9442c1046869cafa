"""
This __init__.py file exposes the public API of StrategyLab.
"""

from .config import BacktestConfig
from .io import load_config
from .backtester.engine import StepBacktester, run_backtest
from .backtester.results import BacktestReport
from .results import RunRecord
from .comparator import compare_runs
from .batch import BatchRunner
from .metrics import register_metric
from .errors import DataQualityError, InsufficientDataError

__all__ = [
    "BacktestConfig",
    "load_config",
    "StepBacktester",
    "run_backtest",
    "BacktestReport",
    "RunRecord",
    "compare_runs",
    "BatchRunner",
    "register_metric",
    "DataQualityError",
    "InsufficientDataError",
]
