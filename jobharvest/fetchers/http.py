"""
HTTP fetcher with per-attempt proxy/identity rotation, global pacing,
response classification and exponential backoff.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, Tuple

import aiohttp

from jobharvest.fetchers.identity import browser_headers
from jobharvest.fetchers.pacer import Pacer
from jobharvest.fetchers.proxy import ProxyRotator
from jobharvest.models import FailureKind, FetchOutcome, FetchRequest

logger = logging.getLogger(__name__)

BLOCKED_STATUSES = (403, 429)


def classify_response(status: int, body: str, min_body_bytes: int = 80) -> Optional[FailureKind]:
    """Map one HTTP response to a failure kind, or None when usable."""
    if status in BLOCKED_STATUSES:
        return FailureKind.BLOCKED
    if status >= 500:
        return FailureKind.SERVER_ERROR
    if status >= 400:
        return FailureKind.TERMINAL_HTTP_ERROR
    if not body or len(body.encode("utf-8", errors="replace")) < min_body_bytes:
        return FailureKind.THIN
    return None


class HttpFetcher:
    """
    Async fetcher implementing ``fetch(request) -> FetchOutcome``.

    Each logical fetch runs an explicit attempt state machine::

        Attempting(n) -> Success
                      -> Retry(kind) -> Attempting(n + 1)
                      -> Exhausted (last classified failure)

    Every attempt waits on the shared Pacer, takes a fresh proxy endpoint
    and a fresh browser identity for the request's device class.
    Failures are returned as values; nothing network-related is raised.
    """

    def __init__(
        self,
        pacer: Optional[Pacer] = None,
        proxies: Optional[ProxyRotator] = None,
        min_body_bytes: int = 80,
        backoff_base_ms: int = 700,
        backoff_cap_ms: int = 7000,
        backoff_jitter_ms: int = 250,
        session: Optional[aiohttp.ClientSession] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        self.pacer = pacer or Pacer()
        self.proxies = proxies or ProxyRotator()
        self.min_body_bytes = min_body_bytes
        self.backoff_base_ms = backoff_base_ms
        self.backoff_cap_ms = backoff_cap_ms
        self.backoff_jitter_ms = backoff_jitter_ms
        self._session = session
        self._owns_session = session is None
        self._sleep = sleep
        self._rng = rng or random.Random()

    @classmethod
    def from_settings(cls, settings, **kwargs) -> "HttpFetcher":
        return cls(
            pacer=Pacer(settings.min_request_interval_s),
            proxies=ProxyRotator(settings.proxy_urls),
            min_body_bytes=settings.min_body_bytes,
            backoff_base_ms=settings.backoff_base_ms,
            backoff_cap_ms=settings.backoff_cap_ms,
            backoff_jitter_ms=settings.backoff_jitter_ms,
            **kwargs,
        )

    async def __aenter__(self) -> "HttpFetcher":
        await self.start()
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def start(self) -> None:
        """Initialize the HTTP session."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=50,
                ttl_dns_cache=300,
                enable_cleanup_closed=True,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                cookie_jar=aiohttp.CookieJar(),
            )
            self._owns_session = True

    async def close(self) -> None:
        """Close the HTTP session (only if this fetcher created it)."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def fetch(self, request: FetchRequest) -> FetchOutcome:
        """Fetch one URL, retrying retryable failures up to the attempt budget."""
        if self._session is None:
            await self.start()

        attempt = 1
        while True:
            outcome = await self._attempt(request, attempt)
            if outcome.ok:
                return outcome
            if not outcome.failure.retryable:
                logger.debug("Not retrying %s: %s", request.url, outcome.describe())
                return outcome
            if attempt >= request.attempts:
                logger.debug("Exhausted %s: %s", request.url, outcome.describe())
                return outcome

            delay_ms = self.backoff_delay(attempt)
            logger.debug(
                "Attempt %d/%d for %s failed (%s); retrying in %dms",
                attempt, request.attempts, request.url, outcome.error, delay_ms,
            )
            await self._sleep(delay_ms / 1000)
            attempt += 1

    async def _attempt(self, request: FetchRequest, attempt: int) -> FetchOutcome:
        """One network attempt with its own proxy and identity."""
        await self.pacer.wait()
        proxy = self.proxies.new_endpoint()
        headers = browser_headers(mobile=request.surface.is_mobile, accept=request.accept, rng=self._rng)

        try:
            status, body = await self._get(request, headers, proxy)
        except asyncio.TimeoutError:
            return FetchOutcome.failed(request, FailureKind.TRANSPORT_ERROR, attempts=attempt, error="Timeout")
        except aiohttp.ClientError as e:
            return FetchOutcome.failed(
                request, FailureKind.TRANSPORT_ERROR, attempts=attempt, error=str(e) or type(e).__name__,
            )

        failure = classify_response(status, body, self.min_body_bytes)
        if failure is None:
            return FetchOutcome.success(request, body, status, attempt)
        if failure is FailureKind.THIN:
            error = f"Thin body ({len(body or '')})"
        else:
            error = f"HTTP {status}"
        return FetchOutcome.failed(request, failure, status=status, attempts=attempt, error=error)

    async def _get(self, request: FetchRequest, headers: dict, proxy: Optional[str]) -> Tuple[int, str]:
        timeout = aiohttp.ClientTimeout(total=request.timeout_s)
        async with self._session.get(
            request.url,
            headers=headers,
            proxy=proxy,
            timeout=timeout,
            allow_redirects=True,
        ) as resp:
            text = await resp.text(errors="replace")
            return resp.status, text

    def backoff_delay(self, attempt: int) -> int:
        """Delay in milliseconds after failed attempt ``attempt`` (1-based)."""
        base = min(self.backoff_cap_ms, self.backoff_base_ms * (2 ** (attempt - 1)))
        jitter = self._rng.randrange(self.backoff_jitter_ms) if self.backoff_jitter_ms > 0 else 0
        return base + jitter
