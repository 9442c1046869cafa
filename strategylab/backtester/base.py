"""
Abstract base class for backtesting engines.
"""
from abc import ABC, abstractmethod
from typing import List, Sequence

import pandas as pd

from strategylab.backtester.results import BacktestReport
from strategylab.config import BacktestConfig
from strategylab.data.candles import Candle, candles_to_frame, validate_series
from strategylab.errors import InsufficientDataError


class BaseBacktester(ABC):
    """
    Abstract base class for all backtesting engines.

    It defines the common interface for running a backtest of a given
    configuration against a candle series.
    """

    def __init__(self, candles: Sequence[Candle]):
        """
        Initializes the backtester.

        Args:
            candles (Sequence[Candle]): The candle series of one instrument,
                in ascending timestamp order.

        Raises:
            DataQualityError: If the series breaks the input contract.
        """
        validate_series(candles)
        self._candles: List[Candle] = list(candles)
        self._data: pd.DataFrame = candles_to_frame(self._candles)

    @property
    def candles(self) -> List[Candle]:
        return self._candles

    def _check_length(self, config: BacktestConfig):
        """
        Rejects a series too short for the indicator warm-up.

        Raises:
            InsufficientDataError: If fewer than `config.min_candles` candles
                are available.
        """
        if len(self._candles) < config.min_candles:
            raise InsufficientDataError(
                f"Need at least {config.min_candles} candles to backtest, got {len(self._candles)}."
            )

    @abstractmethod
    def run(self, config: BacktestConfig) -> BacktestReport:
        """
        Runs a backtest for the given configuration.

        Args:
            config (BacktestConfig): The strategy parameters.

        Returns:
            BacktestReport: The results of the backtest.
        """
        raise NotImplementedError
