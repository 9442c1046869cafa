"""
The decision policy: picks one dominant signal per step, sizes entries, and
applies the stop-loss and take-profit overlays.
"""
from typing import Dict, List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from strategylab.backtester.portfolio import Portfolio
from strategylab.config import BacktestConfig
from strategylab.signals import BEARISH, BULLISH, Signal

# Earlier families win confidence ties.
SOURCE_PRIORITY = ("rsi", "macd", "sma")

STOP_LOSS = "stop-loss"
TAKE_PROFIT = "take-profit"


class Decision(BaseModel):
    """
    An order the policy wants executed.

    Args:
        action (str): 'buy' or 'sell'.
        instrument (str): The instrument to trade.
        amount (float): Cash to commit for a buy; 0 for a sell, which always
            closes the whole position.
        reason (str): Source tag of the dominant signal, or the overlay name.
    """
    model_config = ConfigDict(frozen=True)

    action: Literal["buy", "sell"]
    instrument: str
    amount: float = 0.0
    reason: str


def _priority(signal: Signal) -> int:
    try:
        return SOURCE_PRIORITY.index(signal.family)
    except ValueError:
        return len(SOURCE_PRIORITY)


def select_dominant(signals: Sequence[Signal]) -> Optional[Signal]:
    """
    Selects the signal with the highest confidence. Equal confidences are
    resolved by SOURCE_PRIORITY, so the result never depends on the order
    of `signals`.

    Args:
        signals (Sequence[Signal]): The signals fired in this step.

    Returns:
        Optional[Signal]: The dominant signal, or None if there are none.
    """
    if not signals:
        return None
    return min(signals, key=lambda s: (-s.confidence, _priority(s), s.source))


class DecisionPolicy:
    """
    Maps signals and portfolio state to at most one order per instrument.
    """

    def __init__(self, config: BacktestConfig):
        self._config = config

    def risk_exits(self, portfolio: Portfolio, prices: Dict[str, float]) -> List[Decision]:
        """
        Evaluates the stop-loss and take-profit overlays for every open
        position, independently of any signal.

        Args:
            portfolio (Portfolio): The current portfolio.
            prices (Dict[str, float]): Current close price per instrument.

        Returns:
            List[Decision]: A sell for each position that breached a limit.
        """
        cfg = self._config
        if cfg.stop_loss_pct is None and cfg.take_profit_pct is None:
            return []

        exits = []
        for instrument, position in sorted(portfolio.positions.items()):
            price = prices.get(instrument)
            if price is None or position.entry_price <= 0:
                continue
            change_pct = (price - position.entry_price) / position.entry_price * 100
            if cfg.stop_loss_pct is not None and -change_pct > cfg.stop_loss_pct:
                exits.append(Decision(action="sell", instrument=instrument, reason=STOP_LOSS))
            elif cfg.take_profit_pct is not None and change_pct > cfg.take_profit_pct:
                exits.append(Decision(action="sell", instrument=instrument, reason=TAKE_PROFIT))
        return exits

    def decide(self, signals: Sequence[Signal], portfolio: Portfolio) -> Optional[Decision]:
        """
        Converts this step's signals into an order.

        A bullish dominant signal opens a position sized at
        `position_size_pct` of cash when no position is open and the amount
        exceeds `min_trade_amount`. A bearish dominant signal closes an open
        position in full. Anything else is a no-op.

        Args:
            signals (Sequence[Signal]): The signals fired in this step.
            portfolio (Portfolio): The current portfolio.

        Returns:
            Optional[Decision]: The order to execute, if any.
        """
        dominant = select_dominant(signals)
        if dominant is None:
            return None

        instrument = dominant.instrument
        is_open = portfolio.has_open_position(instrument)

        if dominant.direction == BULLISH and not is_open:
            amount = min(portfolio.cash, portfolio.cash * self._config.position_size_pct / 100)
            if amount > self._config.min_trade_amount:
                return Decision(action="buy", instrument=instrument, amount=amount, reason=dominant.source)
        elif dominant.direction == BEARISH and is_open:
            return Decision(action="sell", instrument=instrument, reason=dominant.source)
        return None
