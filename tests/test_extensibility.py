"""
Tests for the extensibility and plugin registration mechanism.
"""
import pytest
from strategylab import metrics


def test_default_metrics_registered():
    for name in ["total_return_pct", "buy_hold_return_pct", "final_value",
                 "max_drawdown_pct", "trade_count", "win_rate"]:
        assert callable(metrics.get_metric(name))


def test_metric_registration():
    """
    Tests the registration of a custom comparison metric.
    """
    def excess_return(report) -> float:
        return report.total_return_pct - report.buy_hold_return_pct

    # Check that it's not already there
    with pytest.raises(ValueError):
        metrics.get_metric("excess_return")

    try:
        # Register and retrieve
        metrics.register_metric("excess_return", excess_return)
        retrieved_func = metrics.get_metric("excess_return")
        assert retrieved_func == excess_return

        # Check for duplicate registration
        with pytest.raises(ValueError):
            metrics.register_metric("excess_return", excess_return)
    finally:
        metrics.METRIC_REGISTRY.pop("excess_return", None)
