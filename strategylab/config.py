"""
Configuration model for StrategyLab backtest runs.

This module defines the Pydantic model that validates a backtest's parameters.
The configuration is typically loaded from a YAML file or built directly from
keyword arguments. Validation is atomic: either every field is valid and a
frozen config object is produced, or a ValidationError is raised.
"""
from datetime import timedelta
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BacktestConfig(BaseModel):
    """
    Parameters for a single backtest run.

    Args:
        symbol (str): The instrument to backtest (e.g., 'BTC/USD').
        timeframe (str): The candle timeframe (e.g., '1h').
        days (int): The lookback window, in days, of candle history to use.
        capital (float): The starting capital.
        position_size_pct (float): Percentage of available cash committed
            to each new position, in (0, 100].
        rsi_enabled (bool): Whether RSI signals are generated.
        rsi_period (int): The RSI lookback period.
        rsi_oversold (float): RSI level below which a bullish signal fires.
        rsi_overbought (float): RSI level above which a bearish signal fires.
        macd_enabled (bool): Whether MACD crossover signals are generated.
        macd_fast (int): Fast EMA span for MACD.
        macd_slow (int): Slow EMA span for MACD.
        macd_signal (int): Signal line span for MACD.
        sma_enabled (bool): Whether SMA crossover signals are generated.
        sma_short (int): Short SMA window.
        sma_long (int): Long SMA window.
        stop_loss_pct (Optional[float]): Force-close a position once its
            unrealized loss exceeds this percentage.
        take_profit_pct (Optional[float]): Force-close a position once its
            unrealized gain exceeds this percentage.
        min_candles (int): Indicator warm-up; no decisions are taken before
            this many candles are available.
        min_trade_amount (float): A buy is skipped unless its amount exceeds
            this value.
        signal_ttl (timedelta): Lifetime stamped on each generated signal.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    symbol: str = Field("BTC/USD", min_length=1, description="Instrument to backtest.")
    timeframe: str = Field("1h", min_length=1, description="Candle timeframe.")
    days: int = Field(90, gt=0, description="Lookback window in days.")
    capital: float = Field(1000.0, gt=0, description="Starting capital.")
    position_size_pct: float = Field(20.0, gt=0, le=100, description="Cash fraction per buy, in percent.")

    rsi_enabled: bool = True
    rsi_period: int = Field(14, gt=0)
    rsi_oversold: float = Field(30.0, ge=0, le=100)
    rsi_overbought: float = Field(70.0, ge=0, le=100)

    macd_enabled: bool = True
    macd_fast: int = Field(12, gt=0)
    macd_slow: int = Field(26, gt=0)
    macd_signal: int = Field(9, gt=0)

    sma_enabled: bool = True
    sma_short: int = Field(10, gt=0)
    sma_long: int = Field(20, gt=0)

    stop_loss_pct: Optional[float] = Field(None, gt=0, description="Stop-loss threshold in percent.")
    take_profit_pct: Optional[float] = Field(None, gt=0, description="Take-profit threshold in percent.")

    min_candles: int = Field(30, ge=2, description="Indicator warm-up length.")
    min_trade_amount: float = Field(1.0, ge=0, description="Smallest amount a buy may commit.")
    signal_ttl: timedelta = Field(timedelta(hours=1), description="Expiry offset stamped on signals.")

    @model_validator(mode="after")
    def _check_orderings(self) -> "BacktestConfig":
        if self.rsi_oversold >= self.rsi_overbought:
            raise ValueError("rsi_oversold must be lower than rsi_overbought")
        if self.macd_fast >= self.macd_slow:
            raise ValueError("macd_fast must be lower than macd_slow")
        if self.sma_short >= self.sma_long:
            raise ValueError("sma_short must be lower than sma_long")
        return self

    def strategy_params(self) -> Dict[str, Any]:
        """
        Returns the configuration as a JSON-compatible dictionary, suitable
        for the `params` document of a persisted run record.
        """
        return self.model_dump(mode="json")
