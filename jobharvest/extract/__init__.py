"""
Extraction utilities for JobHarvest.

Provides:
- HTML text helpers and the thin-document heuristic
- The default detail-page parser (document -> Record)
"""

from jobharvest.extract.html import visible_text, is_thin_document
from jobharvest.extract.detail import parse_detail

__all__ = [
    "visible_text",
    "is_thin_document",
    "parse_detail",
]
