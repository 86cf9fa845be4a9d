"""
Listing-surface pagination.

Per surface: fetch page -> run strategies -> merge keys, until the
accumulator is full, no next page exists, or the page budget runs out.
"""

from __future__ import annotations

import logging
import urllib.parse
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, TYPE_CHECKING

from jobharvest.discovery.strategies import (
    DEFAULT_STRATEGIES,
    KeyStrategy,
    ListingPage,
    discover_keys,
    harvest_seeds,
    ordered_keys,
)
from jobharvest.models import DetailTarget, FetchRequest, SeedRecord, Surface

if TYPE_CHECKING:
    from jobharvest.fetchers.http import HttpFetcher

logger = logging.getLogger(__name__)

NEXT_PAGE_SELECTORS = 'a[aria-label="Next"], a[aria-label="Next Page"], a[data-testid="pagination-page-next"]'


class KeyAccumulator:
    """
    Per-run deduplicating, order-preserving set of discovered targets,
    capped at ``wanted``.
    """

    def __init__(self, wanted: int):
        self.wanted = wanted
        self._targets: Dict[str, DetailTarget] = {}

    def __len__(self) -> int:
        return len(self._targets)

    def __contains__(self, job_key: str) -> bool:
        return job_key in self._targets

    @property
    def full(self) -> bool:
        return len(self._targets) >= self.wanted

    def add(self, job_key: str, seed: Optional[SeedRecord] = None) -> bool:
        """Add a key; returns False for duplicates or once full."""
        if job_key in self._targets or self.full:
            return False
        self._targets[job_key] = DetailTarget(job_key=job_key, seed=seed)
        return True

    def targets(self) -> List[DetailTarget]:
        return list(self._targets.values())


@dataclass
class SurfaceResult:
    """What one discovery surface contributed."""
    surface: str
    pages_fetched: int = 0
    keys_added: int = 0
    stop_reason: str = ""


def next_page_url(page: ListingPage, page_size: int = 10) -> Optional[str]:
    """
    Prefer the explicit pagination control; otherwise bump the ``start``
    offset by one page.
    """
    control = page.soup.select_one(NEXT_PAGE_SELECTORS)
    if control is not None and control.get("href"):
        return urllib.parse.urljoin(page.url, control["href"])

    parts = urllib.parse.urlsplit(page.url)
    query = urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
    start = 0
    for k, v in query:
        if k == "start":
            try:
                start = int(v)
            except ValueError:
                start = 0
    query = [(k, v) for k, v in query if k != "start"]
    query.append(("start", str(start + page_size)))
    return urllib.parse.urlunsplit(parts._replace(query=urllib.parse.urlencode(query)))


class Paginator:
    """Drives listing-page fetches for one surface at a time."""

    def __init__(
        self,
        fetcher: "HttpFetcher",
        strategies: Sequence[KeyStrategy] = DEFAULT_STRATEGIES,
        attempts: int = 4,
        timeout_s: float = 45,
        page_size: int = 10,
    ):
        self.fetcher = fetcher
        self.strategies = strategies
        self.attempts = attempts
        self.timeout_s = timeout_s
        self.page_size = page_size

    async def collect(
        self,
        start_url: str,
        surface: Surface,
        accumulator: KeyAccumulator,
        max_pages: int,
        label: str = "",
    ) -> SurfaceResult:
        label = label or surface.value
        result = SurfaceResult(surface=label)
        url = start_url

        for page_index in range(max_pages):
            if accumulator.full:
                result.stop_reason = "target count reached"
                break

            outcome = await self.fetcher.fetch(
                FetchRequest(url=url, surface=surface, attempts=self.attempts, timeout_s=self.timeout_s)
            )
            if not outcome.ok:
                logger.warning("%s page %d fetch failed: %s", label, page_index, outcome.describe())
                result.stop_reason = "fetch failed"
                break
            result.pages_fetched += 1

            page = ListingPage(url=url, text=outcome.body, surface=surface, page_index=page_index)
            keys = discover_keys(page, self.strategies)
            seeds = harvest_seeds(page)
            added = 0
            for key in ordered_keys(page, keys):
                if accumulator.add(key, seeds.get(key)):
                    added += 1
            result.keys_added += added
            logger.info(
                "%s page %d: %d keys on page, %d new (total %d/%d)",
                label, page_index, len(keys), added, len(accumulator), accumulator.wanted,
            )
            if accumulator.full:
                result.stop_reason = "target count reached"
                break

            next_url = next_page_url(page, self.page_size)
            if not next_url or next_url == url:
                result.stop_reason = "no next page"
                break
            url = next_url
        else:
            result.stop_reason = "page budget exhausted"

        return result
