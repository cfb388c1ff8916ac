"""DTOs for visit aggregations and the analytics report."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from catalog.domain.enums import AnalyticsPeriod


@dataclass(frozen=True)
class CountryCount:
    """Visits for one country; country_name is the first name observed in the window."""

    country_code: str | None
    country_name: str | None
    count: int


@dataclass(frozen=True)
class LanguageCount:
    language: str | None
    count: int


@dataclass(frozen=True)
class DailyCount:
    """Visits on one calendar day (YYYY-MM-DD in the store timezone)."""

    date: str
    count: int


@dataclass
class AnalyticsReport:
    """Dashboard report for one site over one window."""

    site_id: str
    period: AnalyticsPeriod | None
    start_date: date
    end_date: date
    total_visits: int
    by_country: list[CountryCount]
    by_language: list[LanguageCount]
    daily_trend: list[DailyCount]

    @property
    def unique_countries(self) -> int:
        return len(self.by_country)

    @property
    def unique_languages(self) -> int:
        return len(self.by_language)
