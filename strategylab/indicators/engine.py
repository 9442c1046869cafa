"""
The indicator engine: computes the configured indicators over a candle window
and exposes the latest readings as a snapshot.
"""
import math
from typing import Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict

from strategylab.config import BacktestConfig
from strategylab.indicators import factory


class IndicatorSnapshot(BaseModel):
    """
    Indicator readings at one step, plus the previous step's readings where a
    crossing has to be detected. A None field means "no value": the indicator
    is disabled, still warming up, or its inputs were NaN.

    Args:
        rsi (Optional[float]): Current RSI.
        macd_hist (Optional[float]): Current MACD histogram.
        prev_macd_hist (Optional[float]): Previous MACD histogram.
        sma_short (Optional[float]): Current short SMA.
        sma_long (Optional[float]): Current long SMA.
        prev_sma_short (Optional[float]): Previous short SMA.
        prev_sma_long (Optional[float]): Previous long SMA.
    """
    model_config = ConfigDict(frozen=True)

    rsi: Optional[float] = None
    macd_hist: Optional[float] = None
    prev_macd_hist: Optional[float] = None
    sma_short: Optional[float] = None
    sma_long: Optional[float] = None
    prev_sma_short: Optional[float] = None
    prev_sma_long: Optional[float] = None


def _value(indicators: pd.DataFrame, column: str, index: int) -> Optional[float]:
    if column not in indicators.columns or index < 0:
        return None
    value = float(indicators[column].iloc[index])
    return None if math.isnan(value) else value


class IndicatorEngine:
    """
    Computes RSI, MACD histogram and short/long SMA for a candle window.

    All indicators are causal, so computing them once over a full series and
    reading row `i` gives the same result as computing them over the window
    that ends at row `i`.
    """

    def __init__(self, config: BacktestConfig):
        """
        Initializes the engine.

        Args:
            config (BacktestConfig): Supplies the enabled indicators, their
                periods and the warm-up length.
        """
        self._config = config

    def compute(self, frame: pd.DataFrame) -> pd.DataFrame:
        """
        Computes every enabled indicator over an OHLCV frame.

        Args:
            frame (pd.DataFrame): The candle window, with a 'close' column.

        Returns:
            pd.DataFrame: One row per candle, with a column for each enabled
            indicator ('rsi', 'macd_hist', 'sma_short', 'sma_long').
        """
        cfg = self._config
        close = frame["close"].astype(float)
        out = pd.DataFrame(index=frame.index)

        if cfg.rsi_enabled:
            values = factory.rsi(close, length=cfg.rsi_period)
            out["rsi"] = values if values is not None else float("nan")

        if cfg.macd_enabled:
            out["macd_hist"] = factory.macd(
                close, fast=cfg.macd_fast, slow=cfg.macd_slow, signal=cfg.macd_signal
            )["histogram"]

        if cfg.sma_enabled:
            short = factory.sma(close, length=cfg.sma_short)
            long_ = factory.sma(close, length=cfg.sma_long)
            out["sma_short"] = short if short is not None else float("nan")
            out["sma_long"] = long_ if long_ is not None else float("nan")

        return out

    def snapshot(self, indicators: pd.DataFrame, index: int) -> IndicatorSnapshot:
        """
        Reads the readings at row `index` and the row before it.

        Only rows up to and including `index` are read. Before the warm-up
        of `min_candles` rows is reached, an empty snapshot is returned.

        Args:
            indicators (pd.DataFrame): Output of `compute`.
            index (int): Positional row of the current step.

        Returns:
            IndicatorSnapshot: The readings for this step.
        """
        if index + 1 < self._config.min_candles:
            return IndicatorSnapshot()
        return IndicatorSnapshot(
            rsi=_value(indicators, "rsi", index),
            macd_hist=_value(indicators, "macd_hist", index),
            prev_macd_hist=_value(indicators, "macd_hist", index - 1),
            sma_short=_value(indicators, "sma_short", index),
            sma_long=_value(indicators, "sma_long", index),
            prev_sma_short=_value(indicators, "sma_short", index - 1),
            prev_sma_long=_value(indicators, "sma_long", index - 1),
        )

    def evaluate(self, window: pd.DataFrame) -> IndicatorSnapshot:
        """
        Computes the snapshot for the last candle of a window.

        Args:
            window (pd.DataFrame): The candles available at the current step.

        Returns:
            IndicatorSnapshot: The readings for the window's last candle.
        """
        if window.empty:
            return IndicatorSnapshot()
        return self.snapshot(self.compute(window), len(window) - 1)
