"""
Data structures for holding the results of a backtest.
"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Trade(BaseModel):
    """
    Represents a single executed order. Trades are immutable once logged.

    Args:
        instrument (str): The traded instrument.
        side (str): 'buy' or 'sell'.
        quantity (float): Units bought or sold.
        price (float): Execution price.
        amount (float): Cash value of the order (quantity * price).
        timestamp (datetime): When the order was executed.
    """
    model_config = ConfigDict(frozen=True)

    instrument: str
    side: Literal["buy", "sell"]
    quantity: float
    price: float
    amount: float
    timestamp: datetime


class Position(BaseModel):
    """
    A holding in one instrument. A position is opened by a buy and closed
    exactly once by a sell; a closed position is never reopened.

    Args:
        instrument (str): The held instrument.
        entry_price (float): Price paid per unit.
        quantity (float): Units held.
        opened_at (datetime): Time of the opening buy.
        closed_at (Optional[datetime]): Time of the closing sell.
        exit_price (Optional[float]): Price received per unit on close.
        realized_pnl (Optional[float]): quantity * (exit_price - entry_price).
    """
    instrument: str
    entry_price: float
    quantity: float
    opened_at: datetime
    closed_at: Optional[datetime] = None
    exit_price: Optional[float] = None
    realized_pnl: Optional[float] = None

    @property
    def status(self) -> str:
        return "open" if self.closed_at is None else "closed"

    @property
    def is_open(self) -> bool:
        return self.closed_at is None

    def market_value(self, price: float) -> float:
        """Returns the position's value marked at `price`."""
        return self.quantity * price

    def close(self, exit_price: float, timestamp: datetime) -> float:
        """
        Marks the position as closed and records the realized P&L.

        Args:
            exit_price (float): The price received per unit.
            timestamp (datetime): The time of the closing sell.

        Returns:
            float: The realized P&L.

        Raises:
            ValueError: If the position has already been closed.
        """
        if not self.is_open:
            raise ValueError(f"Position in {self.instrument} is already closed.")
        self.exit_price = exit_price
        self.closed_at = timestamp
        self.realized_pnl = self.quantity * (exit_price - self.entry_price)
        return self.realized_pnl


class PositionSnapshot(Position):
    """
    A read-only copy of a position as it stood when a run finished.
    """
    model_config = ConfigDict(frozen=True)


class EquityPoint(BaseModel):
    """One point of the equity curve."""
    model_config = ConfigDict(frozen=True)

    time: datetime
    value: float


class BacktestReport(BaseModel):
    """
    The final outcome of one backtest run.

    Args:
        starting_capital (float): Cash at the start of the run.
        final_value (float): Cash plus open positions marked at the last close.
        cash (float): Cash at the end of the run.
        total_return_pct (float): Strategy return over the run, in percent.
        buy_hold_return_pct (float): Return of holding the instrument from
            the first to the last close, in percent.
        trade_count (int): Number of executed orders (buys and sells).
        win_count (int): Closed round trips sold above their buy price.
        loss_count (int): Closed round trips sold at or below their buy price.
        win_rate (float): win_count / (win_count + loss_count), or 0.0.
        max_drawdown_pct (float): Largest decline from a running peak, in percent.
        equity_curve (Tuple[EquityPoint, ...]): Portfolio value over time.
        trades (Tuple[Trade, ...]): The trade log, in execution order.
        positions (Tuple[PositionSnapshot, ...]): Every position of the run,
            closed ones first and then those still open.
    """
    model_config = ConfigDict(frozen=True)

    starting_capital: float
    final_value: float
    cash: float
    total_return_pct: float
    buy_hold_return_pct: float
    trade_count: int = Field(..., ge=0)
    win_count: int = Field(..., ge=0)
    loss_count: int = Field(..., ge=0)
    win_rate: float = Field(..., ge=0, le=1)
    max_drawdown_pct: float = Field(..., ge=0)
    equity_curve: Tuple[EquityPoint, ...]
    trades: Tuple[Trade, ...]
    positions: Tuple[PositionSnapshot, ...] = ()

    @property
    def open_positions(self) -> List[PositionSnapshot]:
        return [p for p in self.positions if p.is_open]

    def summary(self) -> Dict[str, Any]:
        """
        Returns the report without its equity curve, trades and positions,
        as shown in run listings.
        """
        return self.model_dump(mode="json", exclude={"equity_curve", "trades", "positions"})
