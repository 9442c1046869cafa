"""
Input/Output operations for StrategyLab.

This module provides utility functions for loading and saving framework
objects, such as configurations and run records.
"""

import yaml
from strategylab.config import BacktestConfig
from strategylab.results import RunRecord


def load_config(path: str) -> BacktestConfig:
    """
    Loads a YAML configuration file and parses it into a strongly-typed
    BacktestConfig object.

    Args:
        path (str): The path to the YAML configuration file.

    Returns:
        BacktestConfig: A Pydantic BacktestConfig object with the validated
        configuration.
    """
    with open(path, 'r') as f:
        raw_config = yaml.safe_load(f) or {}
    return BacktestConfig(**raw_config)


def save_record(record: RunRecord, path: str):
    """
    Writes a run record to a JSON file.

    Args:
        record (RunRecord): The record to save.
        path (str): Destination file path.
    """
    with open(path, 'w') as f:
        f.write(record.model_dump_json(indent=2))


def load_record(path: str) -> RunRecord:
    """
    Reads a run record from a JSON file.

    Args:
        path (str): The path to the JSON file.

    Returns:
        RunRecord: The validated record.
    """
    with open(path, 'r') as f:
        return RunRecord.model_validate_json(f.read())
