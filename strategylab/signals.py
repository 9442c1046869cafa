"""
Turns indicator readings into directional trading signals.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from strategylab.config import BacktestConfig
from strategylab.indicators.engine import IndicatorSnapshot

BULLISH = "bullish"
BEARISH = "bearish"

RSI_OVERSOLD = "rsi-oversold"
RSI_OVERBOUGHT = "rsi-overbought"
MACD_CROSSOVER = "macd-crossover"
MACD_CROSSUNDER = "macd-crossunder"
SMA_GOLDEN_CROSS = "sma-golden-cross"
SMA_DEATH_CROSS = "sma-death-cross"

# RSI points of distance past a threshold are scaled by this to get confidence.
RSI_CONFIDENCE_SCALE = 3.3
MACD_CONFIDENCE_SCALE = 1000
MACD_MIN_CONFIDENCE = 30
SMA_CROSS_CONFIDENCE = 55


class Signal(BaseModel):
    """
    A directional hint produced by one indicator at one step.

    Args:
        instrument (str): The instrument the signal is about.
        direction (str): 'bullish' or 'bearish'.
        confidence (int): Strength of the signal, from 0 to 100.
        source (str): Tag naming the rule that fired (e.g., 'rsi-oversold').
        timestamp (datetime): The step at which the signal fired.
        expires_at (datetime): When the signal would lapse in a live feed.
            Backtests carry this field but never act on it.
    """
    model_config = ConfigDict(frozen=True)

    instrument: str
    direction: Literal["bullish", "bearish"]
    confidence: int = Field(..., ge=0, le=100)
    source: str
    timestamp: datetime
    expires_at: datetime

    @property
    def family(self) -> str:
        """The indicator family of the source tag ('rsi', 'macd' or 'sma')."""
        return self.source.split("-", 1)[0]


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


class SignalGenerator:
    """
    Evaluates each enabled indicator independently against its thresholds.
    """

    def __init__(self, config: BacktestConfig):
        self._config = config

    def generate(
        self,
        snapshot: IndicatorSnapshot,
        instrument: str,
        timestamp: datetime,
    ) -> List[Signal]:
        """
        Produces every signal that fires for the given readings.

        Args:
            snapshot (IndicatorSnapshot): Indicator readings for the step.
            instrument (str): The instrument being evaluated.
            timestamp (datetime): The step's timestamp.

        Returns:
            List[Signal]: Zero or more signals, at most one per indicator.
        """
        cfg = self._config
        candidates = []
        if cfg.rsi_enabled:
            candidates.append(self._rsi(snapshot))
        if cfg.macd_enabled:
            candidates.append(self._macd(snapshot))
        if cfg.sma_enabled:
            candidates.append(self._sma(snapshot))

        expires_at = timestamp + cfg.signal_ttl
        return [
            Signal(
                instrument=instrument,
                direction=direction,
                confidence=confidence,
                source=source,
                timestamp=timestamp,
                expires_at=expires_at,
            )
            for direction, confidence, source in filter(None, candidates)
        ]

    def _rsi(self, snapshot: IndicatorSnapshot) -> Optional[tuple]:
        value = snapshot.rsi
        if value is None:
            return None
        if value < self._config.rsi_oversold:
            confidence = min(100, round((self._config.rsi_oversold - value) * RSI_CONFIDENCE_SCALE))
            return BULLISH, confidence, RSI_OVERSOLD
        if value > self._config.rsi_overbought:
            confidence = min(100, round((value - self._config.rsi_overbought) * RSI_CONFIDENCE_SCALE))
            return BEARISH, confidence, RSI_OVERBOUGHT
        return None

    def _macd(self, snapshot: IndicatorSnapshot) -> Optional[tuple]:
        prev, curr = snapshot.prev_macd_hist, snapshot.macd_hist
        if prev is None or curr is None:
            return None
        confidence = _clamp(round(abs(curr) * MACD_CONFIDENCE_SCALE), MACD_MIN_CONFIDENCE, 100)
        if prev < 0 < curr:
            return BULLISH, confidence, MACD_CROSSOVER
        if prev > 0 > curr:
            return BEARISH, confidence, MACD_CROSSUNDER
        return None

    def _sma(self, snapshot: IndicatorSnapshot) -> Optional[tuple]:
        values = (snapshot.prev_sma_short, snapshot.prev_sma_long, snapshot.sma_short, snapshot.sma_long)
        if any(v is None for v in values):
            return None
        prev_short, prev_long, short, long_ = values
        if prev_short <= prev_long and short > long_:
            return BULLISH, SMA_CROSS_CONFIDENCE, SMA_GOLDEN_CROSS
        if prev_short >= prev_long and short < long_:
            return BEARISH, SMA_CROSS_CONFIDENCE, SMA_DEATH_CROSS
        return None
