"""
Default detail-page parser: detail document -> Record.

Selector lists are ordered most-specific first; each field falls back to
the listing seed when the page does not carry it.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup, Tag

from jobharvest.extract.html import NON_CONTENT_TAGS, parse_html
from jobharvest.models import Record, SeedRecord, normalize_text

TITLE_SELECTORS = [
    'h1[data-testid="jobsearch-JobTitle"]',
    "h1.jobsearch-JobInfoHeader-title",
    "h1.jobsearch-JobInfoHeader-title-container",
    "h1",
]

COMPANY_SELECTORS = [
    "[data-company-name] a",
    "[data-company-name]",
    'div[data-testid="inlineHeader-companyName"]',
    ".jobsearch-CompanyInfoWithoutHeaderImage div a",
    ".jobsearch-CompanyInfoWithoutHeaderImage div",
    "div.jobsearch-CompanyInfoContainer a",
    "div.jobsearch-CompanyInfoContainer",
]

LOCATION_SELECTORS = [
    'div[data-testid="inlineHeader-companyLocation"]',
    ".jobsearch-CompanyInfoWithoutHeaderImage > div:last-child",
    "div.jobsearch-CompanyInfoContainer ~ div",
]

DESCRIPTION_SELECTORS = [
    "#jobDescriptionText",
    "div#jobDescriptionText",
    "section#jobDescriptionText",
    "div#jobDescriptionTextContainer",
    "#jobDescriptionTextContainer",
]

DESCRIPTION_TEXT_FALLBACK = "#jobDescriptionText, section#jobDescriptionText, article, #jobDescriptionTextContainer"

FOOTER_SELECTORS = 'div.jobsearch-JobMetadataFooter, [data-testid="jobsearch-JobMetadataFooter"]'

POSTED_PATTERNS = [
    re.compile(r"(Just posted|Today)", re.I),
    re.compile(r"Posted\s+\d+\+?\s+(?:day|days|hour|hours)\s+ago", re.I),
    re.compile(r"\d+\+?\s+(?:day|days|hour|hours)\s+ago", re.I),
    re.compile(r"Active\s+\d+\+?\s+(?:day|days|hour|hours)\s+ago", re.I),
]

JOB_TYPE_RE = re.compile(
    r"full[-\s]?time|part[-\s]?time|contract|temporary|intern(ship)?|commission"
    r"|per[-\s]?diem|apprenticeship|remote",
    re.I,
)


def first_text(root, selectors: Iterable[str]) -> Optional[str]:
    """Normalized text of the first selector that matches with non-empty text."""
    for sel in selectors:
        el = root.select_one(sel)
        if el is not None:
            text = normalize_text(el.get_text(" "))
            if text:
                return text
    return None


def first_html(root, selectors: Iterable[str]) -> Optional[str]:
    """Inner HTML of the first selector that matches with non-blank markup."""
    for sel in selectors:
        el = root.select_one(sel)
        if el is not None:
            html = el.decode_contents()
            if html and normalize_text(html):
                return html.strip()
    return None


def posted_from_detail(soup: BeautifulSoup) -> Optional[str]:
    """Posting-age string, read only from the metadata footer."""
    text = normalize_text(" ".join(el.get_text(" ") for el in soup.select(FOOTER_SELECTORS)))
    if not text:
        return None
    for pattern in POSTED_PATTERNS:
        m = pattern.search(text)
        if m:
            return m.group(0)
    m = re.search(r"Posted[^|]+", text, re.I)
    return m.group(0).strip() if m else None


def job_types_from_detail(soup: BeautifulSoup) -> Optional[List[str]]:
    types: List[str] = []

    def add(text: str) -> None:
        if text and text not in types:
            types.append(text)

    for label in soup.select('div[data-testid="job-details"] div:-soup-contains("Job type")'):
        sibling = label.find_next_sibling()
        if isinstance(sibling, Tag):
            for li in sibling.find_all("li"):
                add(normalize_text(li.get_text(" ")))

    for li in soup.find_all("li"):
        text = normalize_text(li.get_text(" "))
        if JOB_TYPE_RE.search(text):
            add(text)

    return types or None


def parse_detail(document: str, url: str, seed: Optional[SeedRecord] = None) -> Record:
    """Extract a Record from a detail page, filling gaps from the seed."""
    seed = seed or SeedRecord()
    soup = parse_html(document)
    for tag in soup(NON_CONTENT_TAGS):
        tag.decompose()

    description_html = first_html(soup, DESCRIPTION_SELECTORS)
    if description_html:
        description_text = normalize_text(parse_html(description_html).get_text(" ")) or None
    else:
        description_text = normalize_text(
            " ".join(el.get_text(" ") for el in soup.select(DESCRIPTION_TEXT_FALLBACK))
        ) or None

    return Record(
        url=url,
        title=first_text(soup, TITLE_SELECTORS) or seed.title,
        company=first_text(soup, COMPANY_SELECTORS) or seed.company,
        location=first_text(soup, LOCATION_SELECTORS) or seed.location,
        description_html=description_html,
        description_text=description_text,
        date_posted=posted_from_detail(soup) or seed.date_posted,
        job_types=job_types_from_detail(soup),
    )
