"""
Tests for the performance metric calculation functions.
"""
from datetime import datetime, timedelta

import pytest

from strategylab import metrics
from strategylab.backtester.results import Trade
from strategylab.errors import DataQualityError

T0 = datetime(2024, 1, 1)


def _trade(side: str, price: float, hour: int, instrument: str = "BTC/USD") -> Trade:
    return Trade(
        instrument=instrument,
        side=side,
        quantity=1.0,
        price=price,
        amount=price,
        timestamp=T0 + timedelta(hours=hour),
    )


def test_drawdown_fold_tracks_peak_and_max_drawdown():
    """
    Tests the fold on a curve that rises, falls, recovers and falls again.
    """
    state = metrics.drawdown_fold([100.0, 120.0, 90.0, 130.0, 117.0])

    assert state.peak == 130.0
    # 120 -> 90 is the deepest drop: 25%
    assert state.max_drawdown_pct == pytest.approx(25.0)


def test_drawdown_fold_is_zero_for_non_decreasing_curve():
    state = metrics.drawdown_fold([100.0, 100.0, 101.0, 150.0])
    assert state.max_drawdown_pct == 0.0


def test_drawdown_fold_empty():
    state = metrics.drawdown_fold([])
    assert state.max_drawdown_pct == 0.0


def test_drawdown_fold_accepts_a_generator():
    values = (v for v in [10.0, 5.0, 10.0])
    assert metrics.drawdown_fold(values).max_drawdown_pct == pytest.approx(50.0)


def test_drawdown_series_matches_fold():
    values = [100.0, 120.0, 90.0, 130.0, 117.0]
    series = metrics.drawdown_series(values)

    assert series == pytest.approx([0.0, 0.0, 25.0, 0.0, 10.0])
    assert max(series) == pytest.approx(metrics.drawdown_fold(values).max_drawdown_pct)


def test_total_return_pct():
    assert metrics.total_return_pct(1100.0, 1000.0) == pytest.approx(10.0)
    assert metrics.total_return_pct(900.0, 1000.0) == pytest.approx(-10.0)
    assert metrics.total_return_pct(1000.0, 1000.0) == 0.0


def test_buy_and_hold_return_pct():
    assert metrics.buy_and_hold_return_pct(100.0, 150.0) == pytest.approx(50.0)
    assert metrics.buy_and_hold_return_pct(100.0, 100.0) == 0.0


@pytest.mark.parametrize("first_close", [0.0, -5.0])
def test_buy_and_hold_rejects_degenerate_first_close(first_close):
    with pytest.raises(DataQualityError):
        metrics.buy_and_hold_return_pct(first_close, 100.0)


def test_count_wins_losses_fifo():
    """
    Tests FIFO matching: each sell is paired with the oldest open buy.
    """
    trades = [
        _trade("buy", 100.0, 0),
        _trade("sell", 110.0, 1),   # win
        _trade("buy", 120.0, 2),
        _trade("sell", 120.0, 3),   # equal price counts as a loss
        _trade("buy", 130.0, 4),
        _trade("sell", 125.0, 5),   # loss
        _trade("buy", 90.0, 6),     # still open, not counted
    ]
    assert metrics.count_wins_losses(trades) == (1, 2)


def test_count_wins_losses_per_instrument():
    trades = [
        _trade("buy", 100.0, 0, "BTC/USD"),
        _trade("buy", 10.0, 1, "ETH/USD"),
        _trade("sell", 9.0, 2, "ETH/USD"),
        _trade("sell", 101.0, 3, "BTC/USD"),
    ]
    assert metrics.count_wins_losses(trades) == (1, 1)


def test_unmatched_sell_is_ignored():
    assert metrics.count_wins_losses([_trade("sell", 100.0, 0)]) == (0, 0)


def test_win_rate():
    assert metrics.win_rate(3, 1) == pytest.approx(0.75)
    assert metrics.win_rate(0, 0) == 0.0
