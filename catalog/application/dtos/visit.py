"""DTOs for visit events."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class VisitCreate:
    """Input for insert_visit. Geo and language fields are resolved by the caller."""

    site_id: str
    ip_address: str
    country_code: str | None = None
    country_name: str | None = None
    language: str | None = None
    page_url: str | None = None
    user_agent: str | None = None
    id: str | None = None


@dataclass(frozen=True)
class VisitResult:
    id: str
    site_id: str
    ip_address: str
    country_code: str | None
    country_name: str | None
    language: str | None
    page_url: str | None
    user_agent: str | None
    created_at: datetime | None


@dataclass(frozen=True)
class VisitCount:
    """Total visits for a site within an aggregation window."""

    count: int
