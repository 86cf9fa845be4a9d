"""
Run configuration via environment variables (and CLI overrides).
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, List, Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# Site's own "days since posted" parameter
POSTED_WITHIN_DAYS = {"24h": "1", "7d": "7", "30d": "30"}


class Settings(BaseSettings):
    """Harvest settings loaded from environment variables."""

    # Search
    keyword: str = "office"
    location: str = "United States"
    posted_within: str = "7d"  # 24h | 7d | 30d
    results_wanted: int = Field(default=100, gt=0)
    max_concurrency: int = Field(default=2, gt=0)

    # Target site
    domain: str = "indeed.com"
    desktop_host: Optional[str] = None  # default: www.<domain>
    mobile_host: Optional[str] = None   # default: m.<domain>

    # Proxies (rotated per attempt). NOTE: Union[...] keeps pydantic-settings
    # from JSON-decoding plain comma-separated env strings.
    proxy_urls: Union[str, List[str], None] = []

    # Pacing / retries
    min_request_interval_ms: int = Field(default=1100, ge=0)
    fetch_attempts: int = Field(default=4, gt=0)
    thin_refetch_attempts: int = Field(default=3, gt=0)
    feed_attempts: int = Field(default=5, gt=0)
    listing_timeout_s: float = 45
    detail_timeout_s: float = 60
    backoff_base_ms: int = 700
    backoff_cap_ms: int = 7000
    backoff_jitter_ms: int = 250

    # Response quality
    min_body_bytes: int = 80
    thin_text_threshold: int = 80

    # Pagination
    mobile_max_pages: int = Field(default=30, gt=0)
    desktop_max_pages: int = Field(default=25, gt=0)
    page_size: int = Field(default=10, gt=0)

    # Output
    output_path: str = "dataset.jsonl"
    csv_path: Optional[str] = None

    @field_validator("posted_within", mode="before")
    @classmethod
    def parse_posted_within(cls, v: Any) -> str:
        """Accept 24h/7d/30d (case-insensitive)."""
        value = str(v or "7d").strip().lower()
        if value not in POSTED_WITHIN_DAYS:
            raise ValueError(f"posted_within must be one of {', '.join(POSTED_WITHIN_DAYS)}")
        return value

    @field_validator("domain", mode="before")
    @classmethod
    def parse_domain(cls, v: Any) -> str:
        """Strip scheme and slashes from a domain."""
        value = str(v or "indeed.com").strip().lower()
        for prefix in ("https://", "http://"):
            if value.startswith(prefix):
                value = value[len(prefix):]
        return value.strip("/") or "indeed.com"

    @field_validator("proxy_urls", mode="before")
    @classmethod
    def parse_proxy_urls(cls, v: Any) -> List[str]:
        """Parse proxy URLs from JSON string or comma-separated list."""
        if v is None:
            return []
        if isinstance(v, list):
            return [p.strip() for p in v if isinstance(p, str) and p.strip()]
        if isinstance(v, str):
            if not v.strip():
                return []
            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return [p.strip() for p in parsed if isinstance(p, str) and p.strip()]
            except (json.JSONDecodeError, TypeError):
                pass
            return [p.strip() for p in v.split(",") if p.strip()]
        return []

    @property
    def fromage(self) -> str:
        """Day-count filter value for listing and feed URLs."""
        return POSTED_WITHIN_DAYS.get(self.posted_within, "7")

    @property
    def min_request_interval_s(self) -> float:
        return self.min_request_interval_ms / 1000

    class Config:
        env_prefix = "JOBHARVEST_"
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
