"""
JobHarvest: resilient job-posting discovery and retrieval.

Finds job keys on a listings site through several independent channels
(mobile/desktop search pages, embedded page state, RSS) and retrieves
each posting's detail page under global pacing, proxy rotation and
backoff.
"""

__version__ = "1.0.0"

from jobharvest.config import Settings
from jobharvest.models import DetailTarget, Record, RunStats, SeedRecord
from jobharvest.orchestrator import discover_targets, run_harvest

__all__ = [
    "Settings",
    "DetailTarget",
    "Record",
    "RunStats",
    "SeedRecord",
    "discover_targets",
    "run_harvest",
]
