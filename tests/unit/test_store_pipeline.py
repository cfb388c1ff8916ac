"""Tests for aggregation pipeline evaluation."""

from datetime import UTC, datetime

import pytest

from catalog.infrastructure.store.pipeline import evaluate, leading_query, run_pipeline

VISITS = [
    {"id": "1", "country_code": "KR", "country_name": "Korea", "language": "ko",
     "created_at": datetime(2024, 1, 1, 1, 0, tzinfo=UTC)},
    {"id": "2", "country_code": "KR", "country_name": "South Korea", "language": "ko",
     "created_at": datetime(2024, 1, 1, 2, 0, tzinfo=UTC)},
    {"id": "3", "country_code": "US", "country_name": "United States", "language": "en",
     "created_at": datetime(2024, 1, 1, 20, 0, tzinfo=UTC)},
]


def test_group_sum_first_and_sort() -> None:
    """$group counts per key and $first keeps the first value seen in stream order."""
    rows = run_pipeline(
        VISITS,
        [
            {"$sort": {"created_at": 1}},
            {"$group": {"_id": "$country_code", "name": {"$first": "$country_name"},
                        "count": {"$sum": 1}}},
            {"$sort": {"count": -1}},
        ],
    )
    assert rows == [
        {"_id": "KR", "name": "Korea", "count": 2},
        {"_id": "US", "name": "United States", "count": 1},
    ]


def test_group_last_and_field_sum() -> None:
    """$last keeps the last value; $sum over a field adds numeric values only."""
    docs = [{"k": "a", "v": 2}, {"k": "a", "v": 3}, {"k": "a", "v": True}, {"k": "a"}]
    rows = run_pipeline(docs, [{"$group": {"_id": "$k", "total": {"$sum": "$v"},
                                           "last": {"$last": "$v"}}}])
    assert rows == [{"_id": "a", "total": 5, "last": None}]


def test_date_to_string_uses_timezone() -> None:
    """$dateToString renders the calendar day in the requested timezone."""
    expr = {"$dateToString": {"format": "%Y-%m-%d", "date": "$created_at",
                              "timezone": "Asia/Seoul"}}
    assert evaluate(expr, VISITS[2]) == "2024-01-02"
    assert evaluate(expr, {"created_at": None}) is None


def test_date_to_string_reads_naive_datetimes_as_utc() -> None:
    """A naive timestamp is UTC, whatever the host timezone."""
    expr = {"$dateToString": {"format": "%Y-%m-%d", "date": "$created_at",
                              "timezone": "Asia/Seoul"}}
    assert evaluate(expr, {"created_at": datetime(2024, 1, 1, 20, 0)}) == "2024-01-02"
    utc = {"$dateToString": {"format": "%Y-%m-%d %H:%M", "date": "$created_at",
                             "timezone": "UTC"}}
    assert evaluate(utc, {"created_at": datetime(2024, 1, 1, 20, 0)}) == "2024-01-01 20:00"


def test_match_skip_limit_project_count() -> None:
    """Remaining stages compose in order."""
    rows = run_pipeline(
        VISITS,
        [
            {"$match": {"language": "ko"}},
            {"$skip": 1},
            {"$limit": 5},
            {"$project": {"country_name": 1, "_id": 0}},
        ],
    )
    assert rows == [{"country_name": "South Korea"}]
    assert run_pipeline(VISITS, [{"$match": {"language": "ko"}}, {"$count": "n"}]) == [{"n": 2}]


def test_unknown_stage_and_accumulator_rejected() -> None:
    """Stages and accumulators outside the supported set raise ValueError."""
    with pytest.raises(ValueError):
        run_pipeline(VISITS, [{"$lookup": {}}])
    with pytest.raises(ValueError):
        run_pipeline(VISITS, [{"$group": {"_id": "$language", "n": {"$avg": 1}}}])


def test_leading_query_splits_pushdown_prefix() -> None:
    """Leading $match, $sort and $limit are split off; the rest stays."""
    pipeline = [
        {"$match": {"site_id": "s1"}},
        {"$sort": {"created_at": 1}},
        {"$group": {"_id": "$language", "count": {"$sum": 1}}},
        {"$limit": 3},
    ]
    filter, sort, limit, remaining = leading_query(pipeline)
    assert filter == {"site_id": "s1"}
    assert sort == [("created_at", 1)]
    assert limit is None
    assert remaining == pipeline[2:]
    assert leading_query([{"$group": {"_id": None}}])[:3] == ({}, None, None)
