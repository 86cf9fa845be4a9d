"""
HTML content extraction utilities.
"""

from __future__ import annotations

import re
from typing import Sequence, Union

from bs4 import BeautifulSoup

NON_CONTENT_TAGS = ["script", "style", "noscript", "iframe", "svg", "canvas"]

# Containers that hold the job description on a detail page
DESCRIPTION_MARKERS = ("#jobDescriptionText", "#jobDescriptionTextContainer")


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "lxml")


def visible_text(document: Union[str, BeautifulSoup]) -> str:
    """Whitespace-normalized text of a document without script/style content."""
    soup = parse_html(document) if isinstance(document, str) else document
    for tag in soup(NON_CONTENT_TAGS):
        tag.decompose()
    text = soup.get_text(" ", strip=True)
    return re.sub(r"\s+", " ", text).strip()


def is_thin_document(
    html: str,
    min_text_len: int = 80,
    markers: Sequence[str] = DESCRIPTION_MARKERS,
) -> bool:
    """
    A detail page is thin when it has none of the description containers
    AND its visible text is shorter than ``min_text_len``.
    """
    soup = parse_html(html)
    if any(soup.select_one(sel) is not None for sel in markers):
        return False
    return len(visible_text(soup)) < min_text_len
