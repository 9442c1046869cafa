"""
Tests for dominant-signal selection, sizing and the risk overlays.
"""
import itertools
from datetime import datetime, timedelta

import pytest

from strategylab.backtester.portfolio import ExecutionSimulator, Portfolio
from strategylab.config import BacktestConfig
from strategylab.policy import SOURCE_PRIORITY, DecisionPolicy, select_dominant
from strategylab.signals import Signal

T0 = datetime(2024, 1, 1)


def _signal(source: str, confidence: int, direction: str = "bullish") -> Signal:
    return Signal(
        instrument="BTC/USD",
        direction=direction,
        confidence=confidence,
        source=source,
        timestamp=T0,
        expires_at=T0 + timedelta(hours=1),
    )


def _portfolio_with_position(entry_price: float = 100.0) -> Portfolio:
    portfolio = Portfolio(cash=1000.0)
    ExecutionSimulator(portfolio).buy("BTC/USD", 500.0, entry_price, T0)
    return portfolio


def test_priority_order():
    assert SOURCE_PRIORITY == ("rsi", "macd", "sma")


def test_highest_confidence_wins():
    signals = [_signal("sma-golden-cross", 55), _signal("macd-crossunder", 80, "bearish"), _signal("rsi-oversold", 40)]
    assert select_dominant(signals).source == "macd-crossunder"


@pytest.mark.parametrize("signals, expected", [
    ([_signal("sma-golden-cross", 55), _signal("rsi-oversold", 55)], "rsi-oversold"),
    ([_signal("sma-death-cross", 55, "bearish"), _signal("macd-crossover", 55)], "macd-crossover"),
    ([_signal("macd-crossover", 55), _signal("rsi-overbought", 55, "bearish")], "rsi-overbought"),
])
def test_confidence_ties_follow_source_priority(signals, expected):
    """
    Tests that equal confidences resolve RSI > MACD > SMA, whatever order
    the signals arrive in.
    """
    for ordering in itertools.permutations(signals):
        assert select_dominant(list(ordering)).source == expected


def test_no_signals_no_dominant():
    assert select_dominant([]) is None


def test_bullish_opens_sized_position():
    policy = DecisionPolicy(BacktestConfig(position_size_pct=25))
    decision = policy.decide([_signal("rsi-oversold", 50)], Portfolio(cash=1000.0))

    assert decision.action == "buy"
    assert decision.amount == pytest.approx(250.0)
    assert decision.reason == "rsi-oversold"


def test_full_cash_position_does_not_exceed_cash():
    policy = DecisionPolicy(BacktestConfig(position_size_pct=100))
    portfolio = Portfolio(cash=1234.567)
    decision = policy.decide([_signal("rsi-oversold", 50)], portfolio)
    assert decision.amount <= portfolio.cash


def test_buy_below_min_trade_amount_is_skipped():
    policy = DecisionPolicy(BacktestConfig(position_size_pct=10, min_trade_amount=1.0))
    assert policy.decide([_signal("rsi-oversold", 50)], Portfolio(cash=10.0)) is None
    assert policy.decide([_signal("rsi-oversold", 50)], Portfolio(cash=10.5)) is not None


def test_bearish_closes_open_position():
    policy = DecisionPolicy(BacktestConfig())
    decision = policy.decide([_signal("sma-death-cross", 55, "bearish")], _portfolio_with_position())

    assert decision.action == "sell"
    assert decision.instrument == "BTC/USD"


def test_redundant_signals_are_no_ops():
    policy = DecisionPolicy(BacktestConfig())
    assert policy.decide([_signal("sma-death-cross", 55, "bearish")], Portfolio(cash=1000.0)) is None
    assert policy.decide([_signal("rsi-oversold", 90)], _portfolio_with_position()) is None


def test_dominant_signal_decides_even_when_weaker_one_could_act():
    """
    A dominant bullish signal with a position already open does nothing,
    even though a weaker bearish signal fired in the same step.
    """
    policy = DecisionPolicy(BacktestConfig())
    signals = [_signal("rsi-oversold", 90), _signal("sma-death-cross", 55, "bearish")]
    assert policy.decide(signals, _portfolio_with_position()) is None


def test_risk_exits_disabled_by_default():
    policy = DecisionPolicy(BacktestConfig())
    assert policy.risk_exits(_portfolio_with_position(), {"BTC/USD": 1.0}) == []


@pytest.mark.parametrize("price, reason", [
    (89.0, "stop-loss"),
    (90.0, None),
    (95.0, None),
    (120.0, None),
    (121.0, "take-profit"),
])
def test_risk_exits(price, reason):
    policy = DecisionPolicy(BacktestConfig(stop_loss_pct=10, take_profit_pct=20))
    exits = policy.risk_exits(_portfolio_with_position(100.0), {"BTC/USD": price})

    if reason is None:
        assert exits == []
    else:
        assert [(d.action, d.reason) for d in exits] == [("sell", reason)]
