"""
Side-by-side comparison of finished backtest runs.

The comparator only reads completed run records; it never touches engine
state.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
from pydantic import BaseModel, ConfigDict

from strategylab.metrics import METRIC_REGISTRY
from strategylab.results import RunRecord


class Comparison(BaseModel):
    """
    The merged view of two or more runs.

    Args:
        labels (List[str]): Column label of each run, in input order.
        merged_curve (List[Dict[str, Any]]): One entry per timestamp in the
            union of all equity curves, sorted by time. Each entry has a
            'time' key plus one key per run that has a point at that time;
            runs without a point are left out rather than interpolated.
        param_diff (List[str]): Sorted configuration keys whose values differ
            between at least two runs.
        metrics_table (pd.DataFrame): One row per registered metric, one
            column per run.
        param_table (pd.DataFrame): One row per differing parameter, one
            column per run.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    labels: List[str]
    merged_curve: List[Dict[str, Any]]
    param_diff: List[str]
    metrics_table: pd.DataFrame
    param_table: pd.DataFrame


def _unique_labels(records: Sequence[RunRecord]) -> List[str]:
    labels: List[str] = []
    seen: Dict[str, int] = {}
    for i, record in enumerate(records):
        label = record.label(i)
        seen[label] = seen.get(label, 0) + 1
        labels.append(label if seen[label] == 1 else f"{label} ({seen[label]})")
    return labels


def merge_equity_curves(records: Sequence[RunRecord], labels: Sequence[str]) -> List[Dict[str, Any]]:
    """
    Merges the equity curves of several runs on the union of their timestamps.
    """
    by_time: Dict[datetime, Dict[str, Any]] = {}
    for label, record in zip(labels, records):
        for point in record.results.equity_curve:
            by_time.setdefault(point.time, {"time": point.time})[label] = point.value
    return [by_time[t] for t in sorted(by_time)]


# Stands in for a parameter a run does not have
_MISSING = object()


def _param_form(params: Dict[str, Any], key: str) -> Any:
    return str(params[key]) if key in params else _MISSING


def diff_params(records: Sequence[RunRecord], keys: Optional[Sequence[str]] = None) -> List[str]:
    """
    Finds configuration keys whose values are not identical across runs.

    Args:
        records (Sequence[RunRecord]): The runs to compare.
        keys (Optional[Sequence[str]]): Keys to consider; defaults to every
            key present in any run's parameters.

    Returns:
        List[str]: The differing keys, sorted. A key missing from some runs
        differs even when the others hold None.
    """
    if keys is None:
        keys = sorted({key for record in records for key in record.params})
    return sorted(
        key for key in keys
        if len({_param_form(record.params, key) for record in records}) > 1
    )


def compare_runs(records: Sequence[RunRecord]) -> Comparison:
    """
    Compares two or more finished runs.

    Args:
        records (Sequence[RunRecord]): The runs, in display order.

    Returns:
        Comparison: Merged curves, parameter differences and metrics table.

    Raises:
        ValueError: If fewer than two runs are given.
    """
    if len(records) < 2:
        raise ValueError("At least two runs are needed for a comparison.")

    labels = _unique_labels(records)
    param_diff = diff_params(records)
    metrics_table = pd.DataFrame(
        {
            label: [func(record.results) for func in METRIC_REGISTRY.values()]
            for label, record in zip(labels, records)
        },
        index=pd.Index(list(METRIC_REGISTRY.keys()), name="metric"),
    )
    param_table = pd.DataFrame(
        {
            label: [record.params.get(key) for key in param_diff]
            for label, record in zip(labels, records)
        },
        index=pd.Index(param_diff, name="parameter"),
        dtype=object,
    )
    return Comparison(
        labels=labels,
        merged_curve=merge_equity_curves(records, labels),
        param_diff=param_diff,
        metrics_table=metrics_table,
        param_table=param_table,
    )
