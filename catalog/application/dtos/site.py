"""DTOs for sites."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class SiteCreate:
    """Input for insert_site. id is the stable slug (e.g. 'gods')."""

    id: str
    name: str
    domain: str | None = None
    homepage_url: str | None = None


@dataclass(frozen=True)
class SiteResult:
    """Site read-model."""

    id: str
    name: str
    domain: str | None
    homepage_url: str | None
    created_at: datetime | None
    updated_at: datetime | None
