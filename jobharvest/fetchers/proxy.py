"""
Proxy endpoint rotation.
"""

from __future__ import annotations

import itertools
from typing import Iterable, Optional


class ProxyRotator:
    """
    Hands out one proxy URL per fetch attempt, round-robin.

    With no proxies configured every attempt goes direct (``None``).
    """

    def __init__(self, proxy_urls: Optional[Iterable[str]] = None):
        self.proxy_urls = [p for p in (proxy_urls or []) if p]
        self._cycle = itertools.cycle(self.proxy_urls) if self.proxy_urls else None

    def __len__(self) -> int:
        return len(self.proxy_urls)

    def new_endpoint(self) -> Optional[str]:
        """Next proxy URL, or None for a direct connection."""
        if self._cycle is None:
            return None
        return next(self._cycle)
