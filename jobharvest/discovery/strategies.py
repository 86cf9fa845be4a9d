"""
Job-key discovery strategies.

Three independent extractors run over every listing page:

1. AnchorStrategy - structural: ``/viewjob?jk=`` anchors and ``data-jk`` cards
2. EmbeddedStateStrategy - identifier fields inside inlined app-state scripts
3. RegexStrategy - the identifier pattern anywhere in the raw text

Each is a pure function of the page; results are unioned with no
strategy trusted over another.
"""

from __future__ import annotations

import re
import urllib.parse
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import cached_property
from typing import Dict, Iterable, List, Optional, Sequence, Set

from bs4 import BeautifulSoup, Tag

from jobharvest.extract.detail import first_text
from jobharvest.extract.html import parse_html
from jobharvest.models import SeedRecord, Surface, job_key_from_url

JOB_KEY_RE = re.compile(r"^[0-9a-fA-F]{16}$")
KEY = r"([0-9a-fA-F]{16})(?![0-9a-fA-F])"


def is_job_key(value: Optional[str]) -> bool:
    return bool(value) and bool(JOB_KEY_RE.match(value))


@dataclass
class ListingPage:
    """A fetched listing document and the cursor that produced it."""
    url: str
    text: str
    surface: Surface = Surface.PRIMARY
    page_index: int = 0

    @cached_property
    def soup(self) -> BeautifulSoup:
        return parse_html(self.text)


class KeyStrategy(ABC):
    """Extracts job keys from a listing page."""

    name: str = "base"

    @abstractmethod
    def extract(self, page: ListingPage) -> Set[str]:
        raise NotImplementedError


def _is_detail_href(href: str) -> bool:
    try:
        path = urllib.parse.urlsplit(href).path
    except ValueError:
        return False
    return path.rstrip("/").endswith("/viewjob")


class AnchorStrategy(KeyStrategy):
    """Keys from canonical detail-page anchors and ``data-jk`` cards."""

    name = "anchor"

    def extract(self, page: ListingPage) -> Set[str]:
        keys: Set[str] = set()
        for a in page.soup.find_all("a", href=True):
            href = a["href"]
            if not _is_detail_href(href):
                continue
            jk = job_key_from_url(href)
            if is_job_key(jk):
                keys.add(jk)
        for card in page.soup.find_all(attrs={"data-jk": True}):
            jk = (card.get("data-jk") or "").strip()
            if is_job_key(jk):
                keys.add(jk)
        return keys


class EmbeddedStateStrategy(KeyStrategy):
    """
    Keys from inlined bootstrap-state scripts.

    The blob may be truncated or obfuscated, so identifier fields are
    pulled with a field-level pattern instead of parsing JSON.
    """

    name = "embedded_state"

    STATE_MARKERS = re.compile(
        r"mosaic-provider-jobcards|_initialData|__INITIAL_STATE__|__NEXT_DATA__|jobKeysWithInfo|\bjobkey\b",
        re.I,
    )
    FIELD_RE = re.compile(r'\\?["\'](?:jobkey|jobKey|jk)\\?["\']\s*:\s*\\?["\']' + KEY)

    def blobs(self, page: ListingPage) -> List[str]:
        blobs = [
            script.string or script.get_text()
            for script in page.soup.find_all("script")
            if not script.get("src") and self.STATE_MARKERS.search(script.string or script.get_text() or "")
        ]
        if blobs:
            return blobs
        # Markup too broken for the parser to isolate the script: scan from the marker on
        m = self.STATE_MARKERS.search(page.text or "")
        return [page.text[m.start():]] if m else []

    def extract(self, page: ListingPage) -> Set[str]:
        keys: Set[str] = set()
        for blob in self.blobs(page):
            keys.update(self.FIELD_RE.findall(blob))
        return keys


class RegexStrategy(KeyStrategy):
    """Keys matching the identifier pattern anywhere in the raw document."""

    name = "regex"

    PATTERNS = [
        re.compile(r"\bjk=" + KEY),
        re.compile(r"data-jk=[\"']" + KEY),
    ]

    def extract(self, page: ListingPage) -> Set[str]:
        keys: Set[str] = set()
        for pattern in self.PATTERNS:
            keys.update(pattern.findall(page.text or ""))
        return keys


DEFAULT_STRATEGIES: Sequence[KeyStrategy] = (AnchorStrategy(), EmbeddedStateStrategy(), RegexStrategy())


def discover_keys(page: ListingPage, strategies: Iterable[KeyStrategy] = DEFAULT_STRATEGIES) -> Set[str]:
    """Union of every strategy's keys for one page."""
    keys: Set[str] = set()
    for strategy in strategies:
        keys |= strategy.extract(page)
    return keys


def ordered_keys(page: ListingPage, keys: Iterable[str]) -> List[str]:
    """Keys sorted by first appearance in the document."""
    text = page.text or ""

    def position(key: str):
        idx = text.find(key)
        return (idx if idx >= 0 else len(text), key)

    return sorted(set(keys), key=position)


# ----------------------------- Card seeds -----------------------------

SEED_TITLE = ["h2", "h3", ".jobTitle", "span.jobTitle"]
SEED_COMPANY = ['[data-testid="company-name"]', "[data-company-name]", ".companyName"]
SEED_LOCATION = ['[data-testid="text-location"]', ".companyLocation", ".company_location"]
SEED_POSTED = [
    'span:-soup-contains("Posted")',
    'span:-soup-contains("Just posted")',
    'span:-soup-contains("Today")',
    'span:-soup-contains("Active")',
    '[data-testid="myJobsStateDate"]',
    "span.date",
]


def _seed_from_card(card: Optional[Tag]) -> Optional[SeedRecord]:
    if card is None:
        return None
    seed = SeedRecord(
        title=first_text(card, SEED_TITLE),
        company=first_text(card, SEED_COMPANY),
        location=first_text(card, SEED_LOCATION),
        date_posted=first_text(card, SEED_POSTED),
    )
    return None if seed.is_empty() else seed


def harvest_seeds(page: ListingPage) -> Dict[str, SeedRecord]:
    """Seed values from the listing card around each discovered job."""
    seeds: Dict[str, SeedRecord] = {}

    def add(jk: Optional[str], seed: Optional[SeedRecord]) -> None:
        if not is_job_key(jk) or seed is None:
            return
        # earlier cards win per field; later ones only fill gaps
        seeds[jk] = seeds[jk].merged(seed) if jk in seeds else seed

    for card in page.soup.find_all(attrs={"data-jk": True}):
        add((card.get("data-jk") or "").strip(), _seed_from_card(card))
    for a in page.soup.find_all("a", href=True):
        if _is_detail_href(a["href"]):
            add(job_key_from_url(a["href"]), _seed_from_card(a.find_parent(["li", "div"])))
    return seeds
