"""
Functions for calculating performance metrics of a backtest.

The drawdown is computed as a pure left fold over the equity values, so it
can be tested without running a simulation. The metric registry lists the
report figures shown side by side when runs are compared.
"""
from collections import defaultdict, deque
from functools import reduce
from itertools import accumulate
from typing import Callable, Deque, Dict, Iterable, List, NamedTuple, Sequence, Tuple

from strategylab.backtester.results import BacktestReport, Trade
from strategylab.errors import DataQualityError

# Registry for comparison metrics
METRIC_REGISTRY: Dict[str, Callable[[BacktestReport], float]] = {}


def register_metric(name: str, func: Callable[[BacktestReport], float]):
    """
    Registers a new metric for the run comparison table.

    Args:
        name (str): The name of the metric.
        func (Callable[[BacktestReport], float]): Extracts the metric from a report.
    """
    if name in METRIC_REGISTRY:
        raise ValueError(f"Metric '{name}' is already registered.")
    METRIC_REGISTRY[name] = func


def get_metric(name: str) -> Callable[[BacktestReport], float]:
    """
    Retrieves a metric from the registry.

    Args:
        name (str): The name of the metric to retrieve.

    Returns:
        Callable[[BacktestReport], float]: The requested metric.
    """
    if name not in METRIC_REGISTRY:
        raise ValueError(f"Metric '{name}' is not registered. Available: {list(METRIC_REGISTRY.keys())}")
    return METRIC_REGISTRY[name]


class DrawdownState(NamedTuple):
    """Accumulator of the drawdown fold."""
    peak: float
    max_drawdown_pct: float


def _drawdown_step(state: DrawdownState, value: float) -> DrawdownState:
    peak = max(state.peak, value)
    drawdown = (peak - value) / peak * 100 if peak > 0 else 0.0
    return DrawdownState(peak=peak, max_drawdown_pct=max(state.max_drawdown_pct, drawdown))


def drawdown_fold(values: Iterable[float]) -> DrawdownState:
    """
    Folds an equity sequence into its running peak and maximum drawdown.

    Args:
        values (Iterable[float]): Equity values in time order.

    Returns:
        DrawdownState: The final peak and the maximum drawdown in percent.
        An empty sequence yields a peak of -inf and a drawdown of 0.
    """
    return reduce(_drawdown_step, values, DrawdownState(peak=float("-inf"), max_drawdown_pct=0.0))


def drawdown_series(values: Sequence[float]) -> List[float]:
    """
    Calculates the drawdown from the running peak at each point, in percent.
    """
    peaks = accumulate(values, max)
    return [(peak - value) / peak * 100 if peak > 0 else 0.0 for peak, value in zip(peaks, values)]


def total_return_pct(final_value: float, starting_capital: float) -> float:
    """
    Calculates the strategy return relative to the starting capital.

    Args:
        final_value (float): The portfolio value at the end of the run.
        starting_capital (float): The portfolio value at the start.

    Returns:
        float: The return in percent.
    """
    if starting_capital <= 0:
        raise ValueError("Starting capital must be positive.")
    return (final_value - starting_capital) / starting_capital * 100


def buy_and_hold_return_pct(first_close: float, last_close: float) -> float:
    """
    Calculates the return of holding the instrument over the whole series.

    Args:
        first_close (float): The first close of the series.
        last_close (float): The last close of the series.

    Returns:
        float: The benchmark return in percent.

    Raises:
        DataQualityError: If the first close is not positive.
    """
    if not first_close > 0:
        raise DataQualityError(f"Buy-and-hold benchmark is undefined for a first close of {first_close}.")
    return (last_close - first_close) / first_close * 100


def count_wins_losses(trades: Iterable[Trade]) -> Tuple[int, int]:
    """
    Classifies closed round trips by matching each sell with the oldest
    unmatched buy of the same instrument.

    A sell above its buy's price is a win; anything else is a loss. Buys
    without a matching sell are ignored, as are sells without a buy.

    Args:
        trades (Iterable[Trade]): The trade log in execution order.

    Returns:
        Tuple[int, int]: (win_count, loss_count).
    """
    open_buys: Dict[str, Deque[Trade]] = defaultdict(deque)
    wins = losses = 0
    for trade in trades:
        if trade.side == "buy":
            open_buys[trade.instrument].append(trade)
            continue
        queue = open_buys[trade.instrument]
        if not queue:
            continue
        buy = queue.popleft()
        if trade.price > buy.price:
            wins += 1
        else:
            losses += 1
    return wins, losses


def win_rate(win_count: int, loss_count: int) -> float:
    """Returns the fraction of closed round trips that were wins."""
    closed = win_count + loss_count
    return win_count / closed if closed else 0.0


# Register the default comparison metrics
register_metric("total_return_pct", lambda report: report.total_return_pct)
register_metric("buy_hold_return_pct", lambda report: report.buy_hold_return_pct)
register_metric("final_value", lambda report: report.final_value)
register_metric("max_drawdown_pct", lambda report: report.max_drawdown_pct)
register_metric("trade_count", lambda report: report.trade_count)
register_metric("win_rate", lambda report: report.win_rate)
