"""
RSS feed surface: last-resort discovery from structured feed entries.

Feed items look like::

    <item>
      <title>Office Manager - Acme Corp - Austin, TX</title>
      <link>https://www.indeed.com/viewjob?jk=0123456789abcdef</link>
      <pubDate>Mon, 06 Oct 2025 12:00:00 GMT</pubDate>
    </item>
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple, TYPE_CHECKING

from bs4 import BeautifulSoup

from jobharvest.discovery.paginator import KeyAccumulator, SurfaceResult
from jobharvest.discovery.strategies import is_job_key
from jobharvest.fetchers.identity import FEED_ACCEPT
from jobharvest.models import FetchRequest, SeedRecord, Surface, job_key_from_url, normalize_text

if TYPE_CHECKING:
    from jobharvest.fetchers.http import HttpFetcher

logger = logging.getLogger(__name__)


def split_feed_title(raw_title: str) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """``"Title - Company - Location"`` -> (title, company, location)."""
    raw_title = normalize_text(raw_title)
    parts = [normalize_text(p) for p in raw_title.split(" - ")]
    parts = [p for p in parts if p]
    title = parts[0] if parts else (raw_title or None)
    company = parts[1] if len(parts) == 2 else (parts[-2] if len(parts) >= 3 else None)
    location = parts[-1] if len(parts) >= 3 else None
    return title, company, location


def parse_feed(xml: str) -> List[Tuple[str, SeedRecord]]:
    """Job keys and seeds from an RSS document, in feed order."""
    soup = BeautifulSoup(xml or "", "xml")
    entries: List[Tuple[str, SeedRecord]] = []
    for item in soup.find_all("item"):
        link_tag = item.find("link")
        link = normalize_text(link_tag.get_text() if link_tag else "")
        jk = job_key_from_url(link)
        if not is_job_key(jk):
            continue

        title_tag = item.find("title")
        pub_tag = item.find("pubDate")
        title, company, location = split_feed_title(title_tag.get_text() if title_tag else "")
        pub_date = normalize_text(pub_tag.get_text() if pub_tag else "")
        entries.append((jk, SeedRecord(
            title=title,
            company=company,
            location=location,
            date_posted=pub_date or None,
        )))
    return entries


class FeedDiscovery:
    """
    Fetches the search feed and yields its keys directly.

    The feed is re-requested (new pacer slot, proxy and identity each
    time) up to ``feed_attempts`` times while it has produced no entries;
    a terminal HTTP error ends the loop at once.
    """

    def __init__(
        self,
        fetcher: "HttpFetcher",
        attempts: int = 4,
        timeout_s: float = 45,
        feed_attempts: int = 5,
    ):
        self.fetcher = fetcher
        self.attempts = attempts
        self.timeout_s = timeout_s
        self.feed_attempts = max(1, feed_attempts)

    async def collect(self, url: str, accumulator: KeyAccumulator, label: str = "feed") -> SurfaceResult:
        result = SurfaceResult(surface=label, stop_reason="fetch failed")
        entries: List[Tuple[str, SeedRecord]] = []

        for i in range(1, self.feed_attempts + 1):
            outcome = await self.fetcher.fetch(FetchRequest(
                url=url,
                surface=Surface.SECONDARY,
                attempts=self.attempts,
                timeout_s=self.timeout_s,
                accept=FEED_ACCEPT,
            ))
            if not outcome.ok:
                logger.warning("Feed fetch %d/%d failed: %s", i, self.feed_attempts, outcome.describe())
                result.stop_reason = "fetch failed"
                if not outcome.failure.retryable:
                    break
                continue
            result.pages_fetched += 1

            try:
                entries = parse_feed(outcome.body)
            except Exception as e:
                logger.warning("Feed parsing failed: %s", e)
                entries = []
            if entries:
                break
            logger.warning("Feed %d/%d had no entries", i, self.feed_attempts)
            result.stop_reason = "no entries"

        if not entries:
            return result

        for jk, seed in entries:
            if accumulator.add(jk, seed):
                result.keys_added += 1
        result.stop_reason = "target count reached" if accumulator.full else "feed exhausted"
        logger.info("Feed: %d entries, %d new", len(entries), result.keys_added)
        return result
