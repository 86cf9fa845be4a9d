"""
Fetcher layer for JobHarvest.

Provides the HTTP fetcher with:
- A single global pacing gate shared by all workers
- Proxy and browser-identity rotation per attempt
- 403/429/5xx/thin-body classification with exponential backoff
"""

from jobharvest.fetchers.http import HttpFetcher, classify_response
from jobharvest.fetchers.pacer import Pacer
from jobharvest.fetchers.proxy import ProxyRotator

__all__ = ["HttpFetcher", "Pacer", "ProxyRotator", "classify_response"]
