"""Aggregation engine: grouped, time-windowed visit counts for one site.

Windows are inclusive calendar days [start, end] in the store timezone,
matched as created_at >= start 00:00 and created_at <= end 23:59:59.999999.
Grouped results are ordered by count descending; the relative order of
groups with equal counts is unspecified. The daily trend is ordered by
date descending and capped (90 rows by default) regardless of window length.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from catalog.application.dtos.analytics import CountryCount, DailyCount, LanguageCount
from catalog.application.interfaces.store import ASCENDING, DESCENDING, DocumentStore
from catalog.application.queries.shapes import VisitsAggregateByDate
from catalog.domain.exceptions import ValidationException
from catalog.infrastructure.firebase.collections import COLLECTION_VISITS
from catalog.shared.telemetry import traced
from catalog.shared.utils.datetime import day_bounds, parse_calendar_date

logger = logging.getLogger(__name__)

DateLike = date | str


class AggregationEngine:
    """Builds and runs visit aggregation pipelines against a document store."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        timezone: str = "UTC",
    ) -> None:
        self._store = store
        self._timezone = timezone

    @property
    def timezone(self) -> str:
        return self._timezone

    def window_filter(self, site_id: str, start: DateLike, end: DateLike) -> dict[str, Any]:
        """Return the filter selecting one site's visits in [start, end].

        Raises:
            ValidationException: Empty site_id, unparseable date, or start after end.
        """
        if not isinstance(site_id, str) or not site_id.strip():
            raise ValidationException("site_id is required", field="site_id")
        bounds = {}
        for name, value in (("start", start), ("end", end)):
            try:
                bounds[name] = parse_calendar_date(value)
            except (TypeError, ValueError) as e:
                raise ValidationException(
                    f"{name} must be a date or 'YYYY-MM-DD'", field=name
                ) from e
        if bounds["start"] > bounds["end"]:
            raise ValidationException("start must not be after end", field="start")
        lower, upper = day_bounds(bounds["start"], bounds["end"], self._timezone)
        return {"site_id": site_id, "created_at": {"$gte": lower, "$lte": upper}}

    @traced()
    async def by_country(self, site_id: str, start: DateLike, end: DateLike) -> list[CountryCount]:
        """Visit counts per country code, most visits first.

        country_name is the name on the earliest visit in the window for that
        code, so inconsistent historical naming surfaces as stored.
        """
        pipeline = [
            {"$match": self.window_filter(site_id, start, end)},
            {"$sort": {"created_at": ASCENDING}},
            {
                "$group": {
                    "_id": "$country_code",
                    "country_name": {"$first": "$country_name"},
                    "count": {"$sum": 1},
                }
            },
            {"$sort": {"count": DESCENDING}},
        ]
        rows = await self._store.aggregate(COLLECTION_VISITS, pipeline)
        logger.debug("by_country site=%s %s..%s: %d groups", site_id, start, end, len(rows))
        return [
            CountryCount(country_code=r["_id"], country_name=r.get("country_name"), count=r["count"])
            for r in rows
        ]

    @traced()
    async def by_language(self, site_id: str, start: DateLike, end: DateLike) -> list[LanguageCount]:
        """Visit counts per language, most visits first."""
        pipeline = [
            {"$match": self.window_filter(site_id, start, end)},
            {"$group": {"_id": "$language", "count": {"$sum": 1}}},
            {"$sort": {"count": DESCENDING}},
        ]
        rows = await self._store.aggregate(COLLECTION_VISITS, pipeline)
        return [LanguageCount(language=r["_id"], count=r["count"]) for r in rows]

    @traced()
    async def by_date(self, site_id: str, start: DateLike, end: DateLike) -> list[DailyCount]:
        """Visit counts per calendar day (store timezone), newest day first, capped."""
        pipeline = [
            {"$match": self.window_filter(site_id, start, end)},
            {
                "$group": {
                    "_id": {
                        "$dateToString": {
                            "format": "%Y-%m-%d",
                            "date": "$created_at",
                            "timezone": self._timezone,
                        }
                    },
                    "count": {"$sum": 1},
                }
            },
            {"$sort": {"_id": DESCENDING}},
            {"$limit": VisitsAggregateByDate.limit},
        ]
        rows = await self._store.aggregate(COLLECTION_VISITS, pipeline)
        return [DailyCount(date=r["_id"], count=r["count"]) for r in rows]

    @traced()
    async def total_count(self, site_id: str, start: DateLike, end: DateLike) -> int:
        """Number of visits in the window (server-side count)."""
        return await self._store.count(COLLECTION_VISITS, self.window_filter(site_id, start, end))
