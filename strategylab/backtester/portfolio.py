"""
The portfolio aggregate and the execution simulator that mutates it.
"""
import logging
from datetime import datetime
from typing import Dict, List, Tuple

from strategylab.backtester.results import Position, Trade

logger = logging.getLogger(__name__)


class Portfolio:
    """
    Cash plus at most one open position per instrument.

    The `positions` mapping holds open positions only; a position leaves it
    when closed and is kept in `closed_positions`.
    """

    def __init__(self, cash: float):
        """
        Initializes the portfolio.

        Args:
            cash (float): The starting cash balance.
        """
        if cash < 0:
            raise ValueError("Starting cash cannot be negative.")
        self.cash = float(cash)
        self.positions: Dict[str, Position] = {}
        self.closed_positions: List[Position] = []

    def has_open_position(self, instrument: str) -> bool:
        return instrument in self.positions

    def market_value(self, prices: Dict[str, float]) -> float:
        """
        Returns cash plus every open position marked at the given prices.

        Args:
            prices (Dict[str, float]): Current price per instrument.

        Raises:
            KeyError: If an open position has no price.
        """
        return self.cash + sum(
            position.market_value(prices[instrument])
            for instrument, position in sorted(self.positions.items())
        )

    def all_positions(self) -> List[Position]:
        """Closed positions in closing order, followed by open ones."""
        return list(self.closed_positions) + [p for _, p in sorted(self.positions.items())]


class ExecutionSimulator:
    """
    Executes buys and sells against a portfolio at a given price, with no
    leverage, no shorting and no partial fills, and keeps the trade log.
    """

    def __init__(self, portfolio: Portfolio):
        self._portfolio = portfolio
        self._trades: List[Trade] = []

    @property
    def portfolio(self) -> Portfolio:
        return self._portfolio

    @property
    def trades(self) -> Tuple[Trade, ...]:
        return tuple(self._trades)

    def buy(self, instrument: str, amount: float, price: float, timestamp: datetime) -> Trade:
        """
        Opens a position by spending `amount` of cash at `price`.

        Args:
            instrument (str): The instrument to buy.
            amount (float): Cash to spend.
            price (float): Execution price.
            timestamp (datetime): Execution time.

        Returns:
            Trade: The logged buy.

        Raises:
            ValueError: If a position is already open, the amount or price is
                not positive, or the amount exceeds available cash.
        """
        portfolio = self._portfolio
        if portfolio.has_open_position(instrument):
            raise ValueError(f"A position in {instrument} is already open.")
        if amount <= 0 or price <= 0:
            raise ValueError(f"Cannot buy {instrument}: amount={amount}, price={price}.")
        if amount > portfolio.cash:
            raise ValueError(f"Cannot spend {amount:.2f}; only {portfolio.cash:.2f} cash available.")

        quantity = amount / price
        portfolio.cash -= amount
        portfolio.positions[instrument] = Position(
            instrument=instrument,
            entry_price=price,
            quantity=quantity,
            opened_at=timestamp,
        )
        trade = Trade(
            instrument=instrument,
            side="buy",
            quantity=quantity,
            price=price,
            amount=amount,
            timestamp=timestamp,
        )
        self._trades.append(trade)
        logger.debug("BUY %s qty=%.8f @ %.2f (%.2f)", instrument, quantity, price, amount)
        return trade

    def sell(self, instrument: str, price: float, timestamp: datetime) -> Trade:
        """
        Closes the open position in `instrument` in full at `price`.

        Args:
            instrument (str): The instrument to sell.
            price (float): Execution price.
            timestamp (datetime): Execution time.

        Returns:
            Trade: The logged sell.

        Raises:
            ValueError: If no position is open in `instrument`.
        """
        portfolio = self._portfolio
        position = portfolio.positions.pop(instrument, None)
        if position is None:
            raise ValueError(f"No open position in {instrument} to sell.")

        proceeds = position.quantity * price
        pnl = position.close(exit_price=price, timestamp=timestamp)
        portfolio.cash += proceeds
        portfolio.closed_positions.append(position)

        trade = Trade(
            instrument=instrument,
            side="sell",
            quantity=position.quantity,
            price=price,
            amount=proceeds,
            timestamp=timestamp,
        )
        self._trades.append(trade)
        logger.debug("SELL %s qty=%.8f @ %.2f pnl=%.2f", instrument, position.quantity, price, pnl)
        return trade
