"""
Tests for comparing finished runs.
"""
from datetime import datetime

import numpy as np
import pytest

from strategylab.backtester.engine import run_backtest
from strategylab.backtester.results import BacktestReport
from strategylab.batch import BatchRunner
from strategylab.comparator import compare_runs, diff_params
from strategylab.config import BacktestConfig
from strategylab.metrics import METRIC_REGISTRY
from strategylab.results import RunRecord


def _empty_report() -> BacktestReport:
    return BacktestReport(
        starting_capital=1000.0, final_value=1000.0, cash=1000.0,
        total_return_pct=0.0, buy_hold_return_pct=0.0,
        trade_count=0, win_count=0, loss_count=0, win_rate=0.0,
        max_drawdown_pct=0.0, equity_curve=[], trades=[],
    )


@pytest.fixture
def candles(make_candles):
    rng = np.random.default_rng(3)
    return make_candles(20000 + np.cumsum(rng.normal(0, 150, 200)))


@pytest.fixture
def rsi_sweep(candles):
    """Three runs that differ only in the RSI oversold threshold."""
    configs = [BacktestConfig(rsi_oversold=level) for level in (25, 30, 35)]
    results = BatchRunner(candles, configs).run_all()
    return [RunRecord.create(r.config, r.report) for r in results]


def test_parameter_sweep(rsi_sweep):
    comparison = compare_runs(rsi_sweep)

    assert comparison.labels == ["Run 1", "Run 2", "Run 3"]
    assert comparison.param_diff == ["rsi_oversold"]
    assert list(comparison.metrics_table.columns) == comparison.labels
    assert list(comparison.metrics_table.index) == list(METRIC_REGISTRY.keys())
    assert comparison.param_table.loc["rsi_oversold"].tolist() == [25, 30, 35]


def test_metrics_table_reads_reports(rsi_sweep):
    comparison = compare_runs(rsi_sweep)
    for label, record in zip(comparison.labels, rsi_sweep):
        column = comparison.metrics_table[label]
        assert column["total_return_pct"] == record.results.total_return_pct
        assert column["trade_count"] == record.results.trade_count


def test_identical_runs_have_no_param_diff(candles):
    report = run_backtest(candles, BacktestConfig())
    records = [RunRecord.create(BacktestConfig(), report) for _ in range(2)]

    comparison = compare_runs(records)
    assert comparison.param_diff == []
    assert comparison.param_table.empty


def test_diff_params_compares_string_forms():
    """
    Tests that values with the same string form are treated as equal, and
    that a key missing from one run counts as a difference.
    """
    report = _empty_report()
    a = RunRecord(id="a", symbol="X", timeframe="1h", days=1, params={"n": 1, "m": 2}, results=report)
    b = RunRecord(id="b", symbol="X", timeframe="1h", days=1, params={"n": "1"}, results=report)
    assert diff_params([a, b]) == ["m"]
    assert diff_params([a, b], keys=["n"]) == []


def test_merged_curve_leaves_gaps(make_candles):
    """
    Tests that runs over different periods are merged on the union of their
    timestamps, with no value where a run has no point.
    """
    first = make_candles([100.0] * 40)
    second = make_candles([100.0] * 40, start=datetime(2024, 1, 1, 5))
    records = [
        RunRecord.create(BacktestConfig(), run_backtest(series, BacktestConfig()), name=name)
        for series, name in ((first, "early"), (second, "late"))
    ]

    merged = compare_runs(records).merged_curve
    times = [entry["time"] for entry in merged]

    assert times == sorted(times)
    assert len(merged) == 17
    assert merged[0] == {"time": first[0].timestamp, "early": 1000.0}
    assert merged[1] == {"time": second[0].timestamp, "late": 1000.0}
    overlap = [entry for entry in merged if "early" in entry and "late" in entry]
    assert [entry["time"] for entry in overlap] == [first[i].timestamp for i in range(35, 40)]


def test_duplicate_names_get_distinct_labels(candles):
    report = run_backtest(candles, BacktestConfig())
    records = [RunRecord.create(BacktestConfig(), report, name="baseline") for _ in range(3)]
    assert compare_runs(records).labels == ["baseline", "baseline (2)", "baseline (3)"]


def test_needs_two_runs(rsi_sweep):
    with pytest.raises(ValueError):
        compare_runs(rsi_sweep[:1])


def test_missing_key_differs_from_none():
    report = _empty_report()
    a = RunRecord(id="a", symbol="X", timeframe="1h", days=1, params={"stop_loss_pct": None}, results=report)
    b = RunRecord(id="b", symbol="X", timeframe="1h", days=1, params={}, results=report)
    c = RunRecord(id="c", symbol="X", timeframe="1h", days=1, params={"stop_loss_pct": None}, results=report)

    assert diff_params([a, b]) == ["stop_loss_pct"]
    assert diff_params([a, c]) == []
