"""
Command line entry point for StrategyLab.

- `run`: backtest one configuration against a CSV or Parquet candle file.
- `compare`: compare two or more stored runs.
"""
import argparse
import logging
from typing import List, Optional

import pandas as pd

from strategylab.backtester.engine import run_backtest
from strategylab.comparator import compare_runs
from strategylab.data.provider import get_provider
from strategylab.io import load_config
from strategylab.log import setup_logger
from strategylab.results import RunRecord
from strategylab.store import RunStore

logger = logging.getLogger("strategylab.cli")


def build_parser() -> argparse.ArgumentParser:
    """
    Builds the command line parser.

    Returns:
        argparse.ArgumentParser: The configured parser.
    """
    parser = argparse.ArgumentParser(prog="strategylab", description="Strategy backtesting engine")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every executed trade.")
    sub = parser.add_subparsers(dest="task", required=True)

    p_run = sub.add_parser("run", help="Run a single backtest")
    p_run.add_argument("--config", required=True, help="Path to the YAML configuration.")
    p_run.add_argument("--data", required=True, help="Path to a CSV or Parquet OHLCV file.")
    p_run.add_argument("--name", default=None, help="Optional run name.")
    p_run.add_argument("--output", default=None, help="Directory for charts and tables.")
    p_run.add_argument("--store", default=None, help="Run store directory to save the record in.")

    p_compare = sub.add_parser("compare", help="Compare stored runs")
    p_compare.add_argument("--store", required=True, help="Run store directory.")
    p_compare.add_argument("ids", nargs="+", help="Ids of the runs to compare (at least two).")

    return parser


def _run(args: argparse.Namespace) -> RunRecord:
    config = load_config(args.config)
    candles = get_provider(args.data).load_candles(config.symbol, config.timeframe, days=config.days)
    report = run_backtest(candles, config)
    record = RunRecord.create(config, report, name=args.name)

    for key, value in report.summary().items():
        logger.info("%s: %s", key, value)
    if args.output:
        record.generate_report(args.output)
        logger.info("Report written to '%s'", args.output)
    if args.store:
        RunStore(args.store).save(record)
    return record


def _compare(args: argparse.Namespace):
    store = RunStore(args.store)
    comparison = compare_runs([store.get(run_id) for run_id in args.ids])
    with pd.option_context("display.width", 160):
        print(comparison.metrics_table.to_string())
        if comparison.param_diff:
            print()
            print(comparison.param_table.to_string())
    return comparison


def main(argv: Optional[List[str]] = None):
    """
    Main execution function.
    """
    args = build_parser().parse_args(argv)
    setup_logger(level=logging.DEBUG if args.verbose else logging.INFO)

    if args.task == "run":
        return _run(args)
    return _compare(args)


if __name__ == "__main__":
    main()
