"""
Main orchestrator for JobHarvest runs.

Two sequential phases:
1. Discovery: mobile listings -> desktop listings -> RSS feed, stopping
   at the first surface that yields any job keys.
2. Retrieval: the capped target list is drained by the worker pool,
   each target through the detail retriever into the output sink.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from jobharvest.config import Settings, get_settings
from jobharvest.discovery.feed import FeedDiscovery
from jobharvest.discovery.paginator import KeyAccumulator, Paginator, SurfaceResult
from jobharvest.discovery.strategies import DEFAULT_STRATEGIES, KeyStrategy
from jobharvest.extract.detail import parse_detail
from jobharvest.fallback import run_with_fallback
from jobharvest.fetchers.http import HttpFetcher
from jobharvest.models import DetailTarget, RunStats, Surface, now_utc_iso
from jobharvest.pool import WorkerPool
from jobharvest.retrieval import DetailParser, DetailRetriever
from jobharvest.storage.dataset import DatasetWriter, RecordSink, export_to_csv
from jobharvest.surfaces import SiteUrls

logger = logging.getLogger(__name__)


async def discover_targets(
    settings: Settings,
    fetcher: "HttpFetcher",
    strategies: Sequence[KeyStrategy] = DEFAULT_STRATEGIES,
) -> Tuple[List[DetailTarget], Optional[str]]:
    """
    Collect up to ``results_wanted`` targets, falling back surface by
    surface while nothing has been found.

    Returns (targets, label of the surface that produced them).
    """
    urls = SiteUrls.from_settings(settings)
    accumulator = KeyAccumulator(settings.results_wanted)
    paginator = Paginator(
        fetcher,
        strategies=strategies,
        attempts=settings.fetch_attempts,
        timeout_s=settings.listing_timeout_s,
        page_size=settings.page_size,
    )
    feed = FeedDiscovery(
        fetcher,
        attempts=settings.fetch_attempts,
        timeout_s=settings.listing_timeout_s,
        feed_attempts=settings.feed_attempts,
    )
    query = (settings.keyword, settings.location, settings.fromage)

    async def mobile(_prev) -> SurfaceResult:
        return await paginator.collect(
            urls.listing_url(Surface.PRIMARY, *query), Surface.PRIMARY, accumulator,
            max_pages=settings.mobile_max_pages, label="mobile listings",
        )

    async def desktop(_prev) -> SurfaceResult:
        logger.warning("Mobile listings yielded 0 - trying desktop listings...")
        return await paginator.collect(
            urls.listing_url(Surface.SECONDARY, *query), Surface.SECONDARY, accumulator,
            max_pages=settings.desktop_max_pages, label="desktop listings",
        )

    async def rss(_prev) -> SurfaceResult:
        logger.warning("Desktop listings yielded 0 - trying RSS feed...")
        return await feed.collect(urls.feed_url(*query), accumulator, label="rss feed")

    result = await run_with_fallback(
        [("mobile listings", mobile), ("desktop listings", desktop), ("rss feed", rss)],
        needs_fallback=lambda r: r.keys_added == 0,
        usable=lambda r: r.keys_added > 0,
    )
    for label, surface_result in result.tried:
        logger.info(
            "%s: %d page(s), %d key(s) (%s)",
            label, surface_result.pages_fetched, surface_result.keys_added, surface_result.stop_reason,
        )

    targets = accumulator.targets()[:settings.results_wanted]
    return targets, result.label


async def run_harvest(
    settings: Optional[Settings] = None,
    sink: Optional[RecordSink] = None,
    fetcher: Optional[HttpFetcher] = None,
    parse: DetailParser = parse_detail,
    strategies: Sequence[KeyStrategy] = DEFAULT_STRATEGIES,
) -> RunStats:
    """
    Run a complete discovery + retrieval session.

    Args:
        settings: Run configuration (defaults to environment settings)
        sink: Receives one Record per retrieved target
              (defaults to a DatasetWriter on ``settings.output_path``)
        fetcher: HTTP fetcher (defaults to one built from settings)
        parse: Detail document -> Record function
        strategies: Job-key discovery strategies

    Returns:
        RunStats with discovery and retrieval counters
    """
    settings = settings or get_settings()
    stats = RunStats(keyword=settings.keyword, location=settings.location)

    logger.info(
        'Harvest: keyword="%s" location="%s" postedWithin="%s" wanted=%d',
        settings.keyword, settings.location, settings.posted_within, settings.results_wanted,
    )

    owned_sink: Optional[DatasetWriter] = None
    if sink is None:
        # dataset holds this run only, so CSV rows match RunStats
        owned_sink = DatasetWriter(settings.output_path, truncate=True)
        sink = owned_sink

    fetcher = fetcher or HttpFetcher.from_settings(settings)

    try:
        async with fetcher:
            # ===================== Discovery =====================
            targets, surface = await discover_targets(settings, fetcher, strategies)
            stats.discovery_surface = surface or ""
            stats.keys_discovered = len(targets)

            if not targets:
                logger.error("No jobs discovered after all strategies. Check proxies and inputs.")
                return stats

            # ===================== Retrieval =====================
            retriever = DetailRetriever.from_settings(settings, fetcher, parse=parse)

            async def handle(target: DetailTarget):
                record = await retriever.retrieve(target)
                if record is not None:
                    sink.push(record)
                return record

            pool = WorkerPool(settings.max_concurrency)
            pool_stats = await pool.run(targets, handle, limit=settings.results_wanted)
            stats.targets_enqueued = pool_stats.submitted
            stats.records_emitted = pool_stats.succeeded
            stats.failures = pool_stats.failed

    finally:
        stats.finished_at = now_utc_iso()
        if owned_sink is not None:
            owned_sink.close()

    if settings.csv_path and owned_sink is not None:
        count = export_to_csv(owned_sink.path, settings.csv_path)
        logger.info("Exported %d rows to %s", count, settings.csv_path)

    logger.info("Done. Attempted %d details, %d records.", stats.targets_enqueued, stats.records_emitted)
    return stats
