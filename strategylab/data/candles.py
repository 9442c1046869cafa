"""
The Candle model and conversions between candle lists and DataFrames.
"""
from datetime import datetime
from typing import List, Sequence

import pandas as pd
from pydantic import BaseModel, ConfigDict

from strategylab.errors import DataQualityError


class Candle(BaseModel):
    """
    One OHLCV bar of a single instrument and timeframe.

    Args:
        instrument (str): The instrument symbol (e.g., 'BTC/USD').
        timeframe (str): The bar timeframe (e.g., '1h').
        open (float): Opening price.
        high (float): Highest price.
        low (float): Lowest price.
        close (float): Closing price.
        volume (float): Traded volume.
        timestamp (datetime): The bar's timestamp.
    """
    model_config = ConfigDict(frozen=True)

    instrument: str
    timeframe: str
    open: float
    high: float
    low: float
    close: float
    volume: float
    timestamp: datetime


def validate_series(candles: Sequence[Candle]) -> None:
    """
    Checks the input contract of a candle series: a single instrument with
    strictly ascending timestamps. Gaps between timestamps are allowed.

    Raises:
        DataQualityError: If the series mixes instruments or is out of order.
    """
    instruments = {c.instrument for c in candles}
    if len(instruments) > 1:
        raise DataQualityError(f"Candle series mixes instruments: {sorted(instruments)}")

    for prev, curr in zip(candles, candles[1:]):
        if curr.timestamp <= prev.timestamp:
            raise DataQualityError(
                f"Candle timestamps must be strictly ascending; "
                f"{curr.timestamp} follows {prev.timestamp}"
            )


def candles_to_frame(candles: Sequence[Candle]) -> pd.DataFrame:
    """
    Converts candles into an OHLCV DataFrame indexed by timestamp.
    """
    index = pd.DatetimeIndex([c.timestamp for c in candles], name="timestamp")
    return pd.DataFrame(
        {
            "open": [c.open for c in candles],
            "high": [c.high for c in candles],
            "low": [c.low for c in candles],
            "close": [c.close for c in candles],
            "volume": [c.volume for c in candles],
        },
        index=index,
        dtype=float,
    )


def frame_to_candles(df: pd.DataFrame, instrument: str, timeframe: str) -> List[Candle]:
    """
    Converts an OHLCV DataFrame with a DatetimeIndex into candles.

    Args:
        df (pd.DataFrame): Frame with open/high/low/close/volume columns.
        instrument (str): Instrument stamped on every candle.
        timeframe (str): Timeframe stamped on every candle.

    Returns:
        List[Candle]: One candle per row, in the frame's order.
    """
    return [
        Candle(
            instrument=instrument,
            timeframe=timeframe,
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
            timestamp=ts.to_pydatetime(),
        )
        for ts, row in zip(df.index, df.itertuples(index=False))
    ]
