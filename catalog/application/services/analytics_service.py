"""Analytics report: resolves a named period or explicit window and combines the aggregations."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, timedelta

from catalog.application.dtos.analytics import AnalyticsReport
from catalog.application.services.aggregation_engine import AggregationEngine, DateLike
from catalog.domain.enums import AnalyticsPeriod
from catalog.domain.exceptions import ValidationException
from catalog.shared.telemetry import traced
from catalog.shared.utils.datetime import calendar_today, parse_calendar_date

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Dashboard visit statistics for one site."""

    def __init__(self, aggregations: AggregationEngine) -> None:
        self._aggregations = aggregations

    def resolve_window(
        self,
        period: AnalyticsPeriod | str | None = None,
        start: DateLike | None = None,
        end: DateLike | None = None,
        today: date | None = None,
    ) -> tuple[AnalyticsPeriod | None, date, date]:
        """Return (period, start, end) for a report.

        An explicit start and end win over period. Otherwise the window runs
        from period.days before today through today (store calendar); the
        default period is daily.

        Raises:
            ValidationException: Unknown period, only one of start/end, or bad dates.
        """
        if (start is None) != (end is None):
            raise ValidationException(
                "start and end must be given together", field="start" if start is None else "end"
            )
        if start is not None and end is not None:
            try:
                return None, parse_calendar_date(start), parse_calendar_date(end)
            except (TypeError, ValueError) as e:
                raise ValidationException("start and end must be dates or 'YYYY-MM-DD'") from e
        try:
            resolved = AnalyticsPeriod(period or AnalyticsPeriod.DAILY)
        except ValueError as e:
            raise ValidationException(
                f"Unknown period: {period!r}. Allowed: {', '.join(AnalyticsPeriod.values())}",
                field="period",
            ) from e
        end_date = today or calendar_today(self._aggregations.timezone)
        return resolved, end_date - timedelta(days=resolved.days), end_date

    @traced()
    async def get_report(
        self,
        site_id: str,
        period: AnalyticsPeriod | str | None = None,
        start: DateLike | None = None,
        end: DateLike | None = None,
        today: date | None = None,
    ) -> AnalyticsReport:
        """Total, per-country, per-language and daily counts for one window.

        The four aggregations run concurrently.
        """
        resolved, start_date, end_date = self.resolve_window(period, start, end, today)
        engine = self._aggregations
        # Bad site_id or window fails here, before any store call.
        engine.window_filter(site_id, start_date, end_date)
        total, by_country, by_language, daily = await asyncio.gather(
            engine.total_count(site_id, start_date, end_date),
            engine.by_country(site_id, start_date, end_date),
            engine.by_language(site_id, start_date, end_date),
            engine.by_date(site_id, start_date, end_date),
        )
        logger.info(
            "Analytics site=%s %s..%s: %d visits", site_id, start_date, end_date, total
        )
        return AnalyticsReport(
            site_id=site_id,
            period=resolved,
            start_date=start_date,
            end_date=end_date,
            total_visits=total,
            by_country=by_country,
            by_language=by_language,
            daily_trend=daily,
        )
