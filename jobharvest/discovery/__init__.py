"""
Job-key discovery for JobHarvest.

Listing pages are mined by three independent strategies and paginated
surface by surface; the RSS feed is the last-resort surface.
"""

from jobharvest.discovery.strategies import (
    AnchorStrategy,
    DEFAULT_STRATEGIES,
    EmbeddedStateStrategy,
    KeyStrategy,
    ListingPage,
    RegexStrategy,
    discover_keys,
    harvest_seeds,
)
from jobharvest.discovery.paginator import KeyAccumulator, Paginator, SurfaceResult, next_page_url
from jobharvest.discovery.feed import FeedDiscovery, parse_feed

__all__ = [
    "AnchorStrategy",
    "DEFAULT_STRATEGIES",
    "EmbeddedStateStrategy",
    "KeyStrategy",
    "ListingPage",
    "RegexStrategy",
    "discover_keys",
    "harvest_seeds",
    "KeyAccumulator",
    "Paginator",
    "SurfaceResult",
    "next_page_url",
    "FeedDiscovery",
    "parse_feed",
]
