# tests/test_config.py
import pytest
from pydantic import ValidationError

from jobharvest.config import Settings, get_settings
from jobharvest.surfaces import SiteUrls
from jobharvest.models import Surface


def test_defaults():
    s = Settings()

    assert s.keyword == "office"
    assert s.location == "United States"
    assert s.posted_within == "7d"
    assert s.fromage == "7"
    assert s.max_concurrency == 2
    assert s.fetch_attempts == 4
    assert s.proxy_urls == []
    assert s.min_request_interval_s == pytest.approx(1.1)


@pytest.mark.parametrize("value,days", [("24h", "1"), ("7d", "7"), ("30D", "30")])
def test_posted_within_maps_to_day_count(value, days):
    assert Settings(posted_within=value).fromage == days


def test_invalid_posted_within_rejected():
    with pytest.raises(ValidationError):
        Settings(posted_within="1y")


@pytest.mark.parametrize("field", ["results_wanted", "max_concurrency"])
def test_counts_must_be_positive(field):
    with pytest.raises(ValidationError):
        Settings(**{field: 0})


def test_env_prefix_and_proxy_parsing(monkeypatch):
    monkeypatch.setenv("JOBHARVEST_KEYWORD", "nurse")
    monkeypatch.setenv("JOBHARVEST_RESULTS_WANTED", "25")
    monkeypatch.setenv("JOBHARVEST_PROXY_URLS", "http://p1:8000, http://p2:8000")

    s = get_settings()

    assert s.keyword == "nurse"
    assert s.results_wanted == 25
    assert s.proxy_urls == ["http://p1:8000", "http://p2:8000"]


def test_proxy_urls_json_list():
    s = Settings(proxy_urls='["http://a:1", "http://b:2"]')

    assert s.proxy_urls == ["http://a:1", "http://b:2"]


def test_domain_substitution():
    s = Settings(domain="https://www.indeed.co.uk/")
    urls = SiteUrls.from_settings(s)

    assert s.domain == "www.indeed.co.uk"
    assert urls.base(Surface.SECONDARY) == "https://www.indeed.co.uk"
    assert urls.base(Surface.PRIMARY) == "https://m.indeed.co.uk"


def test_explicit_hosts_override_derived_ones():
    urls = SiteUrls.from_settings(Settings(domain="indeed.com", mobile_host="m.example.test"))

    assert urls.detail_url(Surface.PRIMARY, "0123456789abcdef") == "https://m.example.test/viewjob?jk=0123456789abcdef"
    assert urls.canonical_url("0123456789abcdef") == "https://www.indeed.com/viewjob?jk=0123456789abcdef"


def test_listing_and_feed_urls():
    urls = SiteUrls.for_domain()

    assert urls.listing_url(Surface.PRIMARY, "office", "United States", "7") == (
        "https://m.indeed.com/jobs?q=office&l=United+States&fromage=7"
    )
    assert urls.feed_url("office", "", "1") == "https://www.indeed.com/rss?q=office&fromage=1"
