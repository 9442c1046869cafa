"""
An event-by-event backtesting engine.

The engine replays a candle series one step at a time. At each step it only
reads candles up to and including the current one, applies the risk overlays,
turns the indicator readings into signals, executes at most one decision,
and marks the portfolio to market. The report is assembled after the last
step and never changes afterwards.
"""
import logging
from typing import Sequence

from strategylab.backtester.base import BaseBacktester
from strategylab.backtester.portfolio import ExecutionSimulator, Portfolio
from strategylab.backtester.results import BacktestReport, EquityPoint, PositionSnapshot
from strategylab.config import BacktestConfig
from strategylab.data.candles import Candle
from strategylab.indicators.engine import IndicatorEngine
from strategylab.metrics import (
    buy_and_hold_return_pct,
    count_wins_losses,
    drawdown_fold,
    total_return_pct,
    win_rate,
)
from strategylab.policy import Decision, DecisionPolicy
from strategylab.signals import SignalGenerator

logger = logging.getLogger(__name__)


class StepBacktester(BaseBacktester):
    """
    A sequential backtesting engine for path-dependent strategies.
    """

    def run(self, config: BacktestConfig) -> BacktestReport:
        """
        Runs the step loop for the given configuration.

        Candles before index `config.min_candles` only warm up the
        indicators. The equity curve starts with the starting capital at the
        first candle's timestamp and gains one point per decision step.

        Args:
            config (BacktestConfig): The strategy parameters.

        Returns:
            BacktestReport: An object containing the results of the backtest.

        Raises:
            InsufficientDataError: If the series is shorter than the warm-up.
            DataQualityError: If the buy-and-hold benchmark is undefined.
        """
        self._check_length(config)
        candles = self._candles
        instrument = candles[0].instrument
        benchmark = buy_and_hold_return_pct(candles[0].close, candles[-1].close)

        logger.info(
            "Backtesting %s %s over %d candles (%s to %s)",
            instrument, config.timeframe, len(candles), candles[0].timestamp, candles[-1].timestamp,
        )

        portfolio = Portfolio(cash=config.capital)
        simulator = ExecutionSimulator(portfolio)
        indicator_engine = IndicatorEngine(config)
        generator = SignalGenerator(config)
        policy = DecisionPolicy(config)

        # Indicators are causal, so one pass over the series reads the same
        # values as recomputing them on every growing window.
        indicators = indicator_engine.compute(self._data)

        equity_curve = [EquityPoint(time=candles[0].timestamp, value=config.capital)]
        for i in range(config.min_candles, len(candles)):
            candle = candles[i]
            prices = {instrument: candle.close}

            forced_exits = policy.risk_exits(portfolio, prices)
            for decision in forced_exits:
                self._execute(simulator, decision, candle)

            snapshot = indicator_engine.snapshot(indicators, i)
            signals = generator.generate(snapshot, instrument, candle.timestamp)
            decision = policy.decide(signals, portfolio)
            # A position closed by an overlay is not reopened within the same step.
            if decision is not None and not any(d.instrument == decision.instrument for d in forced_exits):
                self._execute(simulator, decision, candle)

            equity_curve.append(EquityPoint(time=candle.timestamp, value=portfolio.market_value(prices)))

        final_value = portfolio.market_value({instrument: candles[-1].close})
        trades = list(simulator.trades)
        wins, losses = count_wins_losses(trades)
        drawdown = drawdown_fold(point.value for point in equity_curve)

        report = BacktestReport(
            starting_capital=config.capital,
            final_value=final_value,
            cash=portfolio.cash,
            total_return_pct=total_return_pct(final_value, config.capital),
            buy_hold_return_pct=benchmark,
            trade_count=len(trades),
            win_count=wins,
            loss_count=losses,
            win_rate=win_rate(wins, losses),
            max_drawdown_pct=drawdown.max_drawdown_pct,
            equity_curve=equity_curve,
            trades=trades,
            positions=[PositionSnapshot(**p.model_dump()) for p in portfolio.all_positions()],
        )
        logger.info(
            "Backtest finished: return %.2f%% (buy & hold %.2f%%), %d trades, max drawdown %.2f%%",
            report.total_return_pct, report.buy_hold_return_pct, report.trade_count, report.max_drawdown_pct,
        )
        return report

    @staticmethod
    def _execute(simulator: ExecutionSimulator, decision: Decision, candle: Candle):
        if decision.action == "buy":
            simulator.buy(decision.instrument, decision.amount, candle.close, candle.timestamp)
        else:
            simulator.sell(decision.instrument, candle.close, candle.timestamp)
        logger.debug("%s %s at %s (%s)", decision.action, decision.instrument, candle.timestamp, decision.reason)


def run_backtest(candles: Sequence[Candle], config: BacktestConfig) -> BacktestReport:
    """
    Runs a single backtest of `config` over `candles`.

    Args:
        candles (Sequence[Candle]): The candle series.
        config (BacktestConfig): The strategy parameters.

    Returns:
        BacktestReport: The completed report.
    """
    return StepBacktester(candles).run(config)
