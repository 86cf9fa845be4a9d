"""
JSON-lines dataset sink with CSV export.
"""

from __future__ import annotations

import json
import os
import threading
from typing import Any, Dict, IO, List, Optional, Protocol

import pandas as pd

from jobharvest.models import Record


class RecordSink(Protocol):
    def push(self, record: Record) -> None: ...


class DatasetWriter:
    """
    Appends one JSON object per Record to a ``.jsonl`` file.
    """

    def __init__(self, path: str, truncate: bool = False):
        """
        Args:
            path: Dataset file path
            truncate: Start from an empty file instead of appending
        """
        self.path = path
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        self._lock = threading.Lock()
        self._fh: Optional[IO[str]] = open(self.path, "w" if truncate else "a", encoding="utf-8")
        self.count = 0

    def __enter__(self) -> "DatasetWriter":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def push(self, record: Record) -> None:
        """Write one record and flush."""
        line = json.dumps(record.to_dict(), ensure_ascii=False)
        with self._lock:
            if self._fh is None:
                raise ValueError(f"Dataset {self.path} is closed")
            self._fh.write(line + "\n")
            self._fh.flush()
            self.count += 1

    def close(self) -> None:
        with self._lock:
            if self._fh is not None:
                self._fh.close()
                self._fh = None


def read_dataset(path: str) -> List[Dict[str, Any]]:
    """Load every record of a dataset file."""
    if not os.path.exists(path):
        return []
    rows = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                rows.append(json.loads(line))
    return rows


def export_to_csv(dataset_path: str, csv_path: str) -> int:
    """
    Export a dataset file to CSV.

    Returns number of rows exported.
    """
    rows = read_dataset(dataset_path)
    if not rows:
        return 0

    df = pd.DataFrame(rows, columns=Record.get_export_columns())
    df["job_types"] = df["job_types"].apply(lambda x: "; ".join(x) if isinstance(x, list) else "")

    os.makedirs(os.path.dirname(csv_path) or ".", exist_ok=True)
    df.to_csv(csv_path, index=False, encoding="utf-8")
    return len(df)
