"""Integration tests for AggregationEngine over the in-memory store."""

from datetime import UTC, date, datetime, timedelta

import pytest

from catalog.application.data_layer import CatalogDataLayer
from catalog.application.dtos.analytics import CountryCount, DailyCount, LanguageCount
from catalog.application.dtos.visit import VisitCreate
from catalog.domain.exceptions import ValidationException
from catalog.infrastructure.firebase.collections import COLLECTION_VISITS


async def _visit(data_layer, site_id: str = "s1", **fields) -> None:
    await data_layer.mutations.insert_visit(VisitCreate(site_id=site_id, ip_address="10.0.0.1", **fields))


async def test_country_counts_for_one_day(data_layer) -> None:
    """Three Korean and two US visits on one day group and order by count."""
    for _ in range(3):
        await _visit(data_layer, country_code="KR", country_name="South Korea", language="ko")
    for _ in range(2):
        await _visit(data_layer, country_code="US", country_name="United States", language="en")
    await _visit(data_layer, site_id="other", country_code="US", language="en")

    engine = data_layer.aggregations
    assert await engine.by_country("s1", "2024-01-01", "2024-01-01") == [
        CountryCount("KR", "South Korea", 3),
        CountryCount("US", "United States", 2),
    ]
    assert await engine.by_language("s1", "2024-01-01", "2024-01-01") == [
        LanguageCount("ko", 3),
        LanguageCount("en", 2),
    ]
    assert await engine.by_date("s1", date(2024, 1, 1), date(2024, 1, 1)) == [
        DailyCount("2024-01-01", 5)
    ]
    assert await engine.total_count("s1", "2024-01-01", "2024-01-01") == 5


async def test_country_name_is_first_observed(data_layer, clock) -> None:
    """country_name comes from the earliest visit in the window for that code."""
    clock.set(datetime(2024, 1, 1, 13, 0, tzinfo=UTC))
    await _visit(data_layer, country_code="KR", country_name="South Korea")
    clock.set(datetime(2024, 1, 1, 9, 0, tzinfo=UTC))
    await _visit(data_layer, country_code="KR", country_name="Korea")

    rows = await data_layer.aggregations.by_country("s1", "2024-01-01", "2024-01-01")
    assert rows == [CountryCount("KR", "Korea", 2)]


async def test_missing_language_groups_as_none(data_layer) -> None:
    await _visit(data_layer, language="ko")
    await _visit(data_layer)
    rows = await data_layer.aggregations.by_language("s1", "2024-01-01", "2024-01-01")
    assert sorted(rows, key=lambda r: str(r.language)) == [
        LanguageCount(None, 1),
        LanguageCount("ko", 1),
    ]


async def test_window_edges_are_inclusive_calendar_days(data_layer, clock) -> None:
    clock.set(datetime(2024, 1, 1, 0, 0, tzinfo=UTC))
    await _visit(data_layer)
    clock.set(datetime(2024, 1, 1, 23, 59, 59, 999999, tzinfo=UTC))
    await _visit(data_layer)
    clock.set(datetime(2024, 1, 2, 0, 0, tzinfo=UTC))
    await _visit(data_layer)
    clock.set(datetime(2023, 12, 31, 23, 59, 59, tzinfo=UTC))
    await _visit(data_layer)

    assert await data_layer.aggregations.total_count("s1", "2024-01-01", "2024-01-01") == 2
    assert await data_layer.aggregations.total_count("s1", "2023-12-31", "2024-01-02") == 4


async def test_daily_trend_is_capped_at_90_days(data_layer, clock) -> None:
    """A year of daily visits returns only the 90 most recent days, newest first."""
    first = datetime(2023, 1, 1, 12, 0, tzinfo=UTC)
    for day in range(365):
        clock.set(first + timedelta(days=day))
        await _visit(data_layer)

    rows = await data_layer.aggregations.by_date("s1", "2023-01-01", "2023-12-31")
    assert len(rows) == 90
    assert rows[0] == DailyCount("2023-12-31", 1)
    assert rows[-1].date == (date(2023, 12, 31) - timedelta(days=89)).isoformat()
    assert await data_layer.aggregations.total_count("s1", "2023-01-01", "2023-12-31") == 365


async def test_group_sums_equal_total_within_90_days(data_layer, clock) -> None:
    """For windows of at most 90 days every grouping sums to the total."""
    first = datetime(2024, 1, 1, 8, 0, tzinfo=UTC)
    countries = ["KR", "US", "JP", "KR"]
    for i in range(40):
        clock.set(first + timedelta(days=i % 30, hours=i % 7))
        await _visit(data_layer, country_code=countries[i % 4], language=["ko", "en"][i % 2])

    engine = data_layer.aggregations
    window = ("s1", "2024-01-01", "2024-03-30")
    total = await engine.total_count(*window)
    assert total == 40
    assert sum(r.count for r in await engine.by_date(*window)) == total
    assert sum(r.count for r in await engine.by_country(*window)) == total
    assert sum(r.count for r in await engine.by_language(*window)) == total
    counts = [r.count for r in await engine.by_country(*window)]
    assert counts == sorted(counts, reverse=True)


async def test_days_bucket_in_store_timezone(store, clock) -> None:
    """A visit at 16:00 UTC on Jan 1 is Jan 2 in Seoul."""
    seoul = CatalogDataLayer(store, timezone="Asia/Seoul")
    clock.set(datetime(2024, 1, 1, 16, 0, tzinfo=UTC))
    await _visit(seoul)

    assert await seoul.aggregations.by_date("s1", "2024-01-02", "2024-01-02") == [
        DailyCount("2024-01-02", 1)
    ]
    utc = CatalogDataLayer(store)
    assert await utc.aggregations.total_count("s1", "2024-01-02", "2024-01-02") == 0
    assert await utc.aggregations.by_date("s1", "2024-01-01", "2024-01-01") == [
        DailyCount("2024-01-01", 1)
    ]


async def test_naive_timestamps_are_counted_as_utc(store) -> None:
    """Rows written around the mutation pipeline with naive timestamps still aggregate."""
    await store.insert(
        COLLECTION_VISITS,
        "legacy",
        {"site_id": "s1", "country_code": "KR", "language": "ko",
         "created_at": datetime(2024, 1, 1, 20, 0)},
    )

    utc = CatalogDataLayer(store)
    assert await utc.aggregations.total_count("s1", "2024-01-01", "2024-01-01") == 1
    assert await utc.aggregations.by_date("s1", "2024-01-01", "2024-01-01") == [
        DailyCount("2024-01-01", 1)
    ]
    assert await utc.aggregations.by_country("s1", "2024-01-01", "2024-01-01") == [
        CountryCount("KR", None, 1)
    ]
    seoul = CatalogDataLayer(store, timezone="Asia/Seoul")
    assert await seoul.aggregations.by_date("s1", "2024-01-02", "2024-01-02") == [
        DailyCount("2024-01-02", 1)
    ]


@pytest.mark.parametrize(
    ("site_id", "start", "end", "field"),
    [
        ("", "2024-01-01", "2024-01-01", "site_id"),
        ("s1", "2024-02-30", "2024-03-01", "start"),
        ("s1", "2024-01-01", "yesterday", "end"),
        ("s1", "2024-02-01", "2024-01-01", "start"),
    ],
)
async def test_invalid_windows_raise(data_layer, site_id, start, end, field) -> None:
    with pytest.raises(ValidationException) as exc_info:
        await data_layer.aggregations.by_country(site_id, start, end)
    assert exc_info.value.details == {"field": field}
