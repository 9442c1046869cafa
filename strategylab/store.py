"""
A directory-backed store of run records, one JSON file per run.
"""
import logging
import os
from typing import Any, Dict, List

from strategylab.io import load_record, save_record
from strategylab.results import RunRecord

logger = logging.getLogger(__name__)


class RunStore:
    """
    Persists finished runs and serves them in list and detail form.

    List entries omit the equity curve and trade log to stay compact;
    `get` returns the full record.
    """

    def __init__(self, root: str):
        """
        Initializes the store, creating its directory if needed.

        Args:
            root (str): Directory holding the record files.
        """
        self._root = root
        os.makedirs(root, exist_ok=True)

    def _path(self, run_id: str) -> str:
        if not run_id or os.sep in run_id or run_id.startswith("."):
            raise KeyError(run_id)
        return os.path.join(self._root, f"{run_id}.json")

    def save(self, record: RunRecord) -> str:
        """
        Stores a record, replacing any earlier record with the same id.

        Returns:
            str: The record id.
        """
        path = self._path(record.id)
        tmp_path = path + ".tmp"
        save_record(record, tmp_path)
        os.replace(tmp_path, path)
        logger.info("Saved run %s to %s", record.id, path)
        return record.id

    def get(self, run_id: str) -> RunRecord:
        """
        Returns the full record for `run_id`.

        Raises:
            KeyError: If no such run exists.
        """
        path = self._path(run_id)
        if not os.path.exists(path):
            raise KeyError(run_id)
        return load_record(path)

    def list(self) -> List[Dict[str, Any]]:
        """
        Returns every stored run in list form, newest first.
        """
        records = [
            load_record(os.path.join(self._root, name))
            for name in os.listdir(self._root)
            if name.endswith(".json")
        ]
        records.sort(key=lambda r: (r.created_at, r.id), reverse=True)
        return [r.summary() for r in records]
