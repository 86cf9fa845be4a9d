"""
Output sink for JobHarvest.

Provides:
- JSON-lines dataset writer (one Record per line)
- Export to CSV
"""

from jobharvest.storage.dataset import DatasetWriter, RecordSink, export_to_csv, read_dataset

__all__ = ["DatasetWriter", "RecordSink", "export_to_csv", "read_dataset"]
