"""
URL builders for the listing, detail and feed surfaces.

Only canonical ``/jobs``, ``/viewjob`` and ``/rss`` URLs are ever built
here; redirect/ad-click paths (``/rc/clk``, ``/pagead/clk``) are never
requested.
"""

from __future__ import annotations

import urllib.parse
from dataclasses import dataclass
from typing import Dict, Optional

from jobharvest.models import Surface


def _bare_domain(domain: str) -> str:
    for prefix in ("www.", "m."):
        if domain.startswith(prefix):
            return domain[len(prefix):]
    return domain


@dataclass(frozen=True)
class SiteUrls:
    """Hosts and URL shapes for one country site."""
    desktop_host: str
    mobile_host: str

    @classmethod
    def for_domain(
        cls,
        domain: str = "indeed.com",
        desktop_host: Optional[str] = None,
        mobile_host: Optional[str] = None,
    ) -> "SiteUrls":
        bare = _bare_domain(domain)
        return cls(
            desktop_host=desktop_host or f"www.{bare}",
            mobile_host=mobile_host or f"m.{bare}",
        )

    @classmethod
    def from_settings(cls, settings) -> "SiteUrls":
        return cls.for_domain(settings.domain, settings.desktop_host, settings.mobile_host)

    def base(self, surface: Surface) -> str:
        host = self.mobile_host if surface.is_mobile else self.desktop_host
        return f"https://{host}"

    @staticmethod
    def _search_params(keyword: str, location: str, fromage: str) -> Dict[str, str]:
        params: Dict[str, str] = {}
        if keyword:
            params["q"] = keyword
        if location:
            params["l"] = location
        if fromage:
            params["fromage"] = fromage
        return params

    def listing_url(self, surface: Surface, keyword: str, location: str, fromage: str) -> str:
        """First search-results page on the given surface."""
        query = urllib.parse.urlencode(self._search_params(keyword, location, fromage))
        return f"{self.base(surface)}/jobs?{query}" if query else f"{self.base(surface)}/jobs"

    def feed_url(self, keyword: str, location: str, fromage: str) -> str:
        """RSS feed of the search (desktop host)."""
        query = urllib.parse.urlencode(self._search_params(keyword, location, fromage))
        return f"{self.base(Surface.SECONDARY)}/rss?{query}" if query else f"{self.base(Surface.SECONDARY)}/rss"

    def detail_url(self, surface: Surface, job_key: str) -> str:
        return f"{self.base(surface)}/viewjob?" + urllib.parse.urlencode({"jk": job_key})

    def canonical_url(self, job_key: str) -> str:
        """Stable public URL of a posting, independent of the surface it was read from."""
        return self.detail_url(Surface.SECONDARY, job_key)
