"""
Core data models for JobHarvest.

Provides:
- Surface / FailureKind enums for request routing and failure classification
- FetchRequest / FetchOutcome: one logical fetch and its single outcome
- SeedRecord / DetailTarget: discovered jobs waiting for detail retrieval
- Record: the structured job posting handed to the output sink
- RunStats: per-run counters
"""

from __future__ import annotations

import re
import urllib.parse
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


# ----------------------------- Enums -----------------------------

class Surface(str, Enum):
    """Device-targeted site variant a request is sent to."""
    PRIMARY = "primary"      # mobile host
    SECONDARY = "secondary"  # desktop host

    @property
    def is_mobile(self) -> bool:
        return self is Surface.PRIMARY


class FailureKind(str, Enum):
    """Classified reason a fetch attempt did not produce a usable body."""
    BLOCKED = "blocked"
    SERVER_ERROR = "server_error"
    THIN = "thin"
    TRANSPORT_ERROR = "transport_error"
    TERMINAL_HTTP_ERROR = "terminal_http_error"

    @property
    def retryable(self) -> bool:
        return self is not FailureKind.TERMINAL_HTTP_ERROR


# ----------------------------- Utilities -----------------------------

def normalize_text(s: str) -> str:
    """Collapse whitespace and strip."""
    return re.sub(r"\s+", " ", (s or "")).strip()


def job_key_from_url(url: str) -> Optional[str]:
    """Return the ``jk`` query parameter of a URL, if any."""
    if not url:
        return None
    try:
        query = urllib.parse.urlsplit(url.strip()).query
    except ValueError:
        return None
    values = urllib.parse.parse_qs(query).get("jk")
    if not values:
        return None
    return values[0].strip() or None


def now_utc() -> datetime:
    """Current UTC datetime."""
    return datetime.now(timezone.utc)


def now_utc_iso() -> str:
    """Current UTC time as ISO string."""
    return now_utc().replace(microsecond=0).isoformat().replace("+00:00", "Z")


# ----------------------------- Fetching -----------------------------

@dataclass(frozen=True)
class FetchRequest:
    """A single logical GET against one surface."""
    url: str
    surface: Surface = Surface.PRIMARY
    attempts: int = 4
    timeout_s: float = 60.0
    accept: Optional[str] = None  # overrides the identity's Accept header

    def __post_init__(self):
        if self.attempts < 1:
            raise ValueError("attempts must be >= 1")


@dataclass
class FetchOutcome:
    """
    Result of a fetch: either a document body or a classified failure.

    Exactly one of ``body`` / ``failure`` is set.
    """
    url: str
    surface: Surface
    body: Optional[str] = None
    failure: Optional[FailureKind] = None
    status: int = 0
    attempts: int = 0
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None and self.body is not None

    @classmethod
    def success(cls, request: FetchRequest, body: str, status: int, attempts: int) -> "FetchOutcome":
        return cls(url=request.url, surface=request.surface, body=body, status=status, attempts=attempts)

    @classmethod
    def failed(
        cls,
        request: FetchRequest,
        failure: FailureKind,
        status: int = 0,
        attempts: int = 0,
        error: str = "",
    ) -> "FetchOutcome":
        return cls(
            url=request.url,
            surface=request.surface,
            failure=failure,
            status=status,
            attempts=attempts,
            error=error or failure.value,
        )

    def describe(self) -> str:
        """Short human-readable summary for log lines."""
        if self.ok:
            return f"HTTP {self.status} ({len(self.body or '')} chars)"
        return f"{self.failure.value}: {self.error} after {self.attempts} attempt(s)"


# ----------------------------- Jobs -----------------------------

@dataclass(frozen=True)
class SeedRecord:
    """Field fragments harvested from a listing card or feed entry."""
    title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    date_posted: Optional[str] = None

    def is_empty(self) -> bool:
        return not any((self.title, self.company, self.location, self.date_posted))

    def merged(self, other: Optional["SeedRecord"]) -> "SeedRecord":
        """Fill this seed's missing fields from ``other``."""
        if other is None:
            return self
        return SeedRecord(
            title=self.title or other.title,
            company=self.company or other.company,
            location=self.location or other.location,
            date_posted=self.date_posted or other.date_posted,
        )


@dataclass(frozen=True)
class DetailTarget:
    """A discovered job key plus optional listing-card seed values."""
    job_key: str
    seed: Optional[SeedRecord] = None


@dataclass
class Record:
    """Structured job posting emitted once per retrieved target."""
    url: str
    title: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    description_html: Optional[str] = None
    description_text: Optional[str] = None
    date_posted: Optional[str] = None
    job_types: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary in export column order."""
        d = asdict(self)
        return {col: d[col] for col in self.get_export_columns()}

    @classmethod
    def get_export_columns(cls) -> List[str]:
        return [
            "title", "company", "location",
            "description_html", "description_text",
            "date_posted", "job_types", "url",
        ]


# ----------------------------- Run stats -----------------------------

@dataclass
class RunStats:
    """Statistics for a harvest run."""
    keyword: str = ""
    location: str = ""
    started_at: str = field(default_factory=now_utc_iso)
    finished_at: Optional[str] = None
    discovery_surface: str = ""
    keys_discovered: int = 0
    targets_enqueued: int = 0
    records_emitted: int = 0
    failures: int = 0
