"""
Shared fixtures for building candle series.
"""
from datetime import datetime, timedelta
from typing import List, Sequence

import pytest

from strategylab.data.candles import Candle


@pytest.fixture
def make_candles():
    """
    Returns a factory building hourly candles from a sequence of closes.
    Open, high and low equal the close.
    """
    def _make(
        closes: Sequence[float],
        instrument: str = "BTC/USD",
        timeframe: str = "1h",
        start: datetime = datetime(2024, 1, 1),
    ) -> List[Candle]:
        return [
            Candle(
                instrument=instrument,
                timeframe=timeframe,
                open=float(close),
                high=float(close),
                low=float(close),
                close=float(close),
                volume=1.0,
                timestamp=start + timedelta(hours=i),
            )
            for i, close in enumerate(closes)
        ]
    return _make
