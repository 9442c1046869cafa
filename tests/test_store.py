"""
Tests for the RunStore and run record persistence.
"""
import os
from datetime import datetime, timedelta, timezone

import pytest

from strategylab.backtester.engine import run_backtest
from strategylab.config import BacktestConfig
from strategylab.io import load_record, save_record
from strategylab.results import RunRecord
from strategylab.store import RunStore


@pytest.fixture
def record(make_candles) -> RunRecord:
    candles = make_candles([50000 - 500 * i for i in range(40)])
    config = BacktestConfig(macd_enabled=False, sma_enabled=False)
    return RunRecord.create(config, run_backtest(candles, config), name="falling")


def test_record_file_round_trip(record, tmp_path):
    path = str(tmp_path / "record.json")
    save_record(record, path)
    assert load_record(path) == record


def test_save_and_get(record, tmp_path):
    store = RunStore(str(tmp_path / "runs"))
    run_id = store.save(record)

    assert run_id == record.id
    assert store.get(run_id) == record
    assert os.listdir(tmp_path / "runs") == [f"{run_id}.json"]


def test_list_is_compact_and_newest_first(record, tmp_path):
    store = RunStore(str(tmp_path))
    now = datetime(2024, 6, 1, tzinfo=timezone.utc)
    older = record.model_copy(update={"id": "older", "created_at": now - timedelta(days=1)})
    newer = record.model_copy(update={"id": "newer", "created_at": now})
    store.save(older)
    store.save(newer)

    listing = store.list()

    assert [entry["id"] for entry in listing] == ["newer", "older"]
    for entry in listing:
        assert entry["name"] == "falling"
        assert "equity_curve" not in entry["results"]
        assert "trades" not in entry["results"]
        assert entry["results"]["trade_count"] == record.results.trade_count


def test_get_unknown_run(tmp_path):
    store = RunStore(str(tmp_path))
    with pytest.raises(KeyError):
        store.get("missing")
    with pytest.raises(KeyError):
        store.get("../escape")
