# tests/test_fetcher.py
import asyncio
import random

import aiohttp
import pytest

from jobharvest.fetchers.http import HttpFetcher, classify_response
from jobharvest.fetchers.identity import DESKTOP_USER_AGENTS, MOBILE_USER_AGENTS
from jobharvest.fetchers.pacer import Pacer
from jobharvest.fetchers.proxy import ProxyRotator
from jobharvest.models import FailureKind, FetchRequest, Surface

from fakes import FakeSession, RecordingSleep

GOOD_BODY = "<html><body>" + ("job listing " * 20) + "</body></html>"


class CountingPacer(Pacer):
    def __init__(self):
        super().__init__(min_interval_s=0)
        self.waits = 0

    async def wait(self) -> float:
        self.waits += 1
        return await super().wait()


def make_fetcher(script, **kwargs):
    session = FakeSession(script)
    sleep = RecordingSleep()
    kwargs.setdefault("pacer", CountingPacer())
    fetcher = HttpFetcher(session=session, sleep=sleep, rng=random.Random(7), **kwargs)
    return fetcher, session, sleep


def test_blocked_twice_then_success():
    fetcher, session, sleep = make_fetcher([(429, "slow down"), (429, "slow down"), (200, GOOD_BODY)])

    outcome = asyncio.run(fetcher.fetch(FetchRequest("https://m.indeed.com/jobs?q=office")))

    assert outcome.ok
    assert outcome.body == GOOD_BODY
    assert outcome.attempts == 3
    assert len(session.calls) == 3
    assert len(sleep.delays) == 2
    assert sleep.delays[0] < sleep.delays[1]


def test_pacer_waited_before_every_attempt():
    pacer = CountingPacer()
    fetcher, session, _ = make_fetcher([(503, "oops"), (403, "no"), (200, GOOD_BODY)], pacer=pacer)

    asyncio.run(fetcher.fetch(FetchRequest("https://m.indeed.com/viewjob?jk=0123456789abcdef")))

    assert pacer.waits == len(session.calls) == 3


def test_terminal_client_error_is_not_retried():
    fetcher, session, sleep = make_fetcher([(404, "not found")])

    outcome = asyncio.run(fetcher.fetch(FetchRequest("https://www.indeed.com/viewjob?jk=0123456789abcdef")))

    assert not outcome.ok
    assert outcome.failure is FailureKind.TERMINAL_HTTP_ERROR
    assert outcome.status == 404
    assert len(session.calls) == 1
    assert sleep.delays == []


def test_exhausted_returns_last_failure():
    fetcher, session, sleep = make_fetcher([(502, "bad gateway")])

    outcome = asyncio.run(fetcher.fetch(FetchRequest("https://m.indeed.com/jobs", attempts=4)))

    assert outcome.failure is FailureKind.SERVER_ERROR
    assert outcome.attempts == 4
    assert len(session.calls) == 4
    # no sleep after the final attempt
    assert len(sleep.delays) == 3


def test_thin_body_is_retried():
    fetcher, session, _ = make_fetcher([(200, "<html></html>"), (200, GOOD_BODY)])

    outcome = asyncio.run(fetcher.fetch(FetchRequest("https://m.indeed.com/jobs")))

    assert outcome.ok
    assert len(session.calls) == 2


def test_thin_body_exhausted():
    fetcher, _, _ = make_fetcher([(200, "")])

    outcome = asyncio.run(fetcher.fetch(FetchRequest("https://m.indeed.com/jobs", attempts=2)))

    assert outcome.failure is FailureKind.THIN


@pytest.mark.parametrize("exc", [aiohttp.ClientConnectionError("reset"), asyncio.TimeoutError()])
def test_transport_errors_are_retried(exc):
    fetcher, session, _ = make_fetcher([exc, (200, GOOD_BODY)])

    outcome = asyncio.run(fetcher.fetch(FetchRequest("https://m.indeed.com/jobs")))

    assert outcome.ok
    assert len(session.calls) == 2


def test_transport_error_exhausted_is_a_value():
    fetcher, _, _ = make_fetcher([aiohttp.ClientConnectionError("refused")])

    outcome = asyncio.run(fetcher.fetch(FetchRequest("https://m.indeed.com/jobs", attempts=3)))

    assert outcome.failure is FailureKind.TRANSPORT_ERROR
    assert "refused" in outcome.error


def test_identity_matches_surface_and_proxy_rotates_per_attempt():
    proxies = ProxyRotator(["http://p1:8000", "http://p2:8000"])
    fetcher, session, _ = make_fetcher([(429, "x"), (429, "x"), (200, GOOD_BODY)], proxies=proxies)

    asyncio.run(fetcher.fetch(FetchRequest("https://m.indeed.com/jobs", surface=Surface.PRIMARY)))

    assert [c["proxy"] for c in session.calls] == ["http://p1:8000", "http://p2:8000", "http://p1:8000"]
    assert all(c["headers"]["User-Agent"] in MOBILE_USER_AGENTS for c in session.calls)


def test_desktop_surface_uses_desktop_identity_and_custom_accept():
    fetcher, session, _ = make_fetcher([(200, GOOD_BODY)])

    asyncio.run(fetcher.fetch(FetchRequest(
        "https://www.indeed.com/rss", surface=Surface.SECONDARY, accept="application/rss+xml",
    )))

    headers = session.calls[0]["headers"]
    assert headers["User-Agent"] in DESKTOP_USER_AGENTS
    assert headers["Accept"] == "application/rss+xml"
    assert session.calls[0]["proxy"] is None


def test_backoff_grows_and_is_capped():
    fetcher = HttpFetcher(backoff_base_ms=700, backoff_cap_ms=7000, backoff_jitter_ms=250, rng=random.Random(1))

    delays = [fetcher.backoff_delay(n) for n in range(1, 8)]

    assert 700 <= delays[0] < 950
    assert 1400 <= delays[1] < 1650
    assert all(7000 <= d < 7250 for d in delays[4:])


def test_injected_session_is_not_closed():
    fetcher, session, _ = make_fetcher([(200, GOOD_BODY)])

    async def scenario():
        async with fetcher:
            await fetcher.fetch(FetchRequest("https://m.indeed.com/jobs"))

    asyncio.run(scenario())

    assert session.closed is False


@pytest.mark.parametrize(
    "status,body,expected",
    [
        (200, GOOD_BODY, None),
        (403, GOOD_BODY, FailureKind.BLOCKED),
        (429, GOOD_BODY, FailureKind.BLOCKED),
        (500, GOOD_BODY, FailureKind.SERVER_ERROR),
        (503, "", FailureKind.SERVER_ERROR),
        (410, GOOD_BODY, FailureKind.TERMINAL_HTTP_ERROR),
        (200, "x" * 79, FailureKind.THIN),
        (200, "x" * 80, None),
    ],
)
def test_classify_response(status, body, expected):
    assert classify_response(status, body, min_body_bytes=80) is expected


def test_request_rejects_zero_attempts():
    with pytest.raises(ValueError):
        FetchRequest("https://m.indeed.com/jobs", attempts=0)
