"""
The RunRecord object for storing, reporting and comparing backtest runs.
"""
import os
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import matplotlib.pyplot as plt
import pandas as pd
from pydantic import BaseModel, Field

from strategylab.backtester.results import BacktestReport
from strategylab.config import BacktestConfig
from strategylab.metrics import drawdown_series


class RunRecord(BaseModel):
    """
    A completed backtest together with the parameters that produced it.

    Args:
        id (str): Unique identifier of the run.
        name (Optional[str]): Optional human-readable name.
        symbol (str): The backtested instrument.
        timeframe (str): The candle timeframe.
        days (int): The lookback window in days.
        params (Dict[str, Any]): The configuration document.
        results (BacktestReport): The report document.
        created_at (datetime): When the record was created.
    """
    id: str
    name: Optional[str] = None
    symbol: str
    timeframe: str
    days: int
    params: Dict[str, Any]
    results: BacktestReport
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(
        cls,
        config: BacktestConfig,
        report: BacktestReport,
        name: Optional[str] = None,
    ) -> "RunRecord":
        """
        Builds a record for a finished run with a fresh identifier.

        Args:
            config (BacktestConfig): The configuration of the run.
            report (BacktestReport): The report the run produced.
            name (Optional[str]): Optional display name.

        Returns:
            RunRecord: The new record.
        """
        return cls(
            id=uuid.uuid4().hex,
            name=name or None,
            symbol=config.symbol,
            timeframe=config.timeframe,
            days=config.days,
            params=config.strategy_params(),
            results=report,
        )

    def label(self, index: int) -> str:
        """The record's name, or 'Run N' for the run at position `index`."""
        return self.name or f"Run {index + 1}"

    def summary(self) -> Dict[str, Any]:
        """
        Returns the list-view form of the record: everything except the
        equity curve, trades and positions.
        """
        data = self.model_dump(mode="json", exclude={"results"})
        data["results"] = self.results.summary()
        return data

    def generate_report(self, output_dir: str):
        """
        Generates a collection of static report files (plots, tables) in the
        specified output directory.
        """
        os.makedirs(output_dir, exist_ok=True)

        # 1. Equity curve and drawdown plot
        self._plot_equity_curve(output_dir)

        # 2. Full record as JSON
        with open(os.path.join(output_dir, "report.json"), 'w') as f:
            f.write(self.model_dump_json(indent=2))

        # 3. Trade log
        self._save_trades(output_dir)

    def _plot_equity_curve(self, output_dir: str):
        """Plots the equity curve with the running drawdown underneath."""
        curve = self.results.equity_curve
        if not curve:
            return

        times = [point.time for point in curve]
        values = [point.value for point in curve]

        fig, (ax_equity, ax_drawdown) = plt.subplots(
            2, 1, figsize=(10, 7), sharex=True, gridspec_kw={"height_ratios": [3, 1]}
        )
        ax_equity.plot(times, values, linestyle='-')
        ax_equity.set_ylabel("Portfolio Value")
        ax_equity.set_title(f"Equity Curve: {self.name or self.symbol}")
        ax_equity.grid(True)

        ax_drawdown.fill_between(times, [-d for d in drawdown_series(values)], 0, color="tab:red", alpha=0.4)
        ax_drawdown.set_ylabel("Drawdown (%)")
        ax_drawdown.set_xlabel("Time")
        ax_drawdown.grid(True)

        fig.autofmt_xdate()
        plt.savefig(os.path.join(output_dir, "equity_curve.png"))
        plt.close(fig)

    def _save_trades(self, output_dir: str):
        """Writes the trade log as CSV."""
        columns = ["timestamp", "instrument", "side", "quantity", "price", "amount"]
        df = pd.DataFrame([t.model_dump() for t in self.results.trades], columns=columns)
        df.to_csv(os.path.join(output_dir, "trades.csv"), index=False)
