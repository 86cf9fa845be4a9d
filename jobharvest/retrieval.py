"""
Detail retrieval: mobile detail page first, desktop as fallback.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, TYPE_CHECKING

from jobharvest.extract.detail import parse_detail
from jobharvest.extract.html import is_thin_document
from jobharvest.fallback import run_with_fallback
from jobharvest.models import DetailTarget, FetchOutcome, FetchRequest, Record, SeedRecord, Surface
from jobharvest.surfaces import SiteUrls

if TYPE_CHECKING:
    from jobharvest.fetchers.http import HttpFetcher

logger = logging.getLogger(__name__)

DetailParser = Callable[[str, str, Optional[SeedRecord]], Record]


class DetailRetriever:
    """
    Turns one DetailTarget into at most one Record.

    - primary fetch failed -> full desktop fetch (``attempts`` budget)
    - primary fetched but thin -> one desktop refetch (``thin_refetch_attempts``);
      if that fails the primary document is kept
    """

    def __init__(
        self,
        fetcher: "HttpFetcher",
        urls: SiteUrls,
        parse: DetailParser = parse_detail,
        attempts: int = 4,
        thin_refetch_attempts: int = 3,
        timeout_s: float = 60,
        thin_text_threshold: int = 80,
    ):
        self.fetcher = fetcher
        self.urls = urls
        self.parse = parse
        self.attempts = attempts
        self.thin_refetch_attempts = thin_refetch_attempts
        self.timeout_s = timeout_s
        self.thin_text_threshold = thin_text_threshold

    @classmethod
    def from_settings(cls, settings, fetcher: "HttpFetcher", **kwargs) -> "DetailRetriever":
        return cls(
            fetcher,
            SiteUrls.from_settings(settings),
            attempts=settings.fetch_attempts,
            thin_refetch_attempts=settings.thin_refetch_attempts,
            timeout_s=settings.detail_timeout_s,
            thin_text_threshold=settings.thin_text_threshold,
            **kwargs,
        )

    def is_thin(self, outcome: FetchOutcome) -> bool:
        return outcome.ok and is_thin_document(outcome.body, self.thin_text_threshold)

    async def retrieve(self, target: DetailTarget) -> Optional[Record]:
        key = target.job_key

        async def primary(_prev: Optional[FetchOutcome]) -> FetchOutcome:
            return await self.fetcher.fetch(FetchRequest(
                url=self.urls.detail_url(Surface.PRIMARY, key),
                surface=Surface.PRIMARY,
                attempts=self.attempts,
                timeout_s=self.timeout_s,
            ))

        async def secondary(prev: Optional[FetchOutcome]) -> FetchOutcome:
            thin_refetch = prev is not None and prev.ok
            if thin_refetch:
                logger.debug("Thin mobile detail for %s; refetching desktop", key)
            return await self.fetcher.fetch(FetchRequest(
                url=self.urls.detail_url(Surface.SECONDARY, key),
                surface=Surface.SECONDARY,
                attempts=self.thin_refetch_attempts if thin_refetch else self.attempts,
                timeout_s=self.timeout_s,
            ))

        result = await run_with_fallback(
            [("mobile", primary), ("desktop", secondary)],
            needs_fallback=lambda o: not o.ok or self.is_thin(o),
            usable=lambda o: o.ok,
        )
        if result.value is None:
            last = result.tried[-1][1]
            logger.warning("Detail failed: %s - %s", self.urls.canonical_url(key), last.describe())
            return None

        return self.parse(result.value.body, self.urls.canonical_url(key), target.seed)
