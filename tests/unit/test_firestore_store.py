"""Tests for FirestoreDocumentStore against a mocked Firestore REST API (httpx.MockTransport)."""

import json
from collections.abc import Callable
from datetime import UTC, datetime

import httpx
import pytest

from catalog.application.interfaces.store import SERVER_TIMESTAMP
from catalog.infrastructure.exceptions import (
    DocumentExistsError,
    StoreException,
    StoreUnavailableException,
)
from catalog.infrastructure.firebase._rest_client import FirestoreRESTClient
from catalog.infrastructure.firebase.document_store import FirestoreDocumentStore

_DOCS = "projects/demo/databases/(default)/documents"


class RecordingHandler:
    """MockTransport handler that records requests and answers via a routing function."""

    def __init__(self, route: Callable[[str, str, dict | None], httpx.Response]) -> None:
        self.route = route
        self.calls: list[tuple[str, str, dict | None]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.calls.append((request.method, request.url.path, body))
        self.last_headers = request.headers
        return self.route(request.method, request.url.path, body)


def _doc(collection: str, doc_id: str, **fields: dict) -> dict:
    return {"name": f"{_DOCS}/{collection}/{doc_id}", "fields": fields}


async def _open_store(handler: Callable) -> FirestoreDocumentStore:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    store = FirestoreDocumentStore(FirestoreRESTClient("demo", None, http_client=http))
    await store.open()
    return store


async def test_find_pushes_filter_sort_and_limit_down() -> None:
    """find sends one runQuery with where/orderBy/limit and decodes the documents."""

    def route(method: str, path: str, body: dict | None) -> httpx.Response:
        return httpx.Response(
            200,
            json=[
                {"document": _doc("videos", "v2", title={"stringValue": "B"})},
                {"document": _doc("videos", "v1", title={"stringValue": "A"})},
                {"readTime": "2024-01-01T00:00:00Z"},
            ],
        )

    handler = RecordingHandler(route)
    store = await _open_store(handler)
    docs = [d async for d in store.find(
        "videos", {"site_id": "s1"}, sort=[("created_at", -1)], limit=100
    )]

    assert docs == [{"id": "v2", "title": "B"}, {"id": "v1", "title": "A"}]
    method, path, body = handler.calls[0]
    assert method == "POST"
    assert path.endswith("/documents:runQuery")
    query = body["structuredQuery"]
    assert query["where"]["fieldFilter"]["field"] == {"fieldPath": "site_id"}
    assert query["orderBy"][0]["direction"] == "DESCENDING"
    assert query["limit"] == 100
    assert "authorization" not in handler.last_headers


async def test_untranslatable_filter_scans_and_filters_locally() -> None:
    """A filter Firestore cannot run falls back to a collection scan plus local matching."""

    def route(method: str, path: str, body: dict | None) -> httpx.Response:
        return httpx.Response(
            200,
            json=[
                {"document": _doc("videos", "v1", title={"stringValue": "A"})},
                {"document": _doc("videos", "v2")},
            ],
        )

    handler = RecordingHandler(route)
    store = await _open_store(handler)
    docs = [d async for d in store.find("videos", {"title": {"$exists": True}})]

    assert [d["id"] for d in docs] == ["v1"]
    assert "where" not in handler.calls[0][2]["structuredQuery"]


async def test_count_uses_aggregation_query() -> None:
    """count runs server-side via runAggregationQuery."""

    def route(method: str, path: str, body: dict | None) -> httpx.Response:
        assert path.endswith(":runAggregationQuery")
        assert body["structuredAggregationQuery"]["aggregations"] == [
            {"alias": "count", "count": {}}
        ]
        return httpx.Response(
            200, json=[{"result": {"aggregateFields": {"count": {"integerValue": "5"}}}}]
        )

    store = await _open_store(RecordingHandler(route))
    assert await store.count("visits", {"site_id": "s1"}) == 5


async def test_aggregate_runs_remaining_stages_locally() -> None:
    """Leading $match is pushed down; $group and $sort run over the streamed documents."""

    def route(method: str, path: str, body: dict | None) -> httpx.Response:
        return httpx.Response(
            200,
            json=[
                {"document": _doc("visits", "1", language={"stringValue": "ko"})},
                {"document": _doc("visits", "2", language={"stringValue": "en"})},
                {"document": _doc("visits", "3", language={"stringValue": "ko"})},
            ],
        )

    handler = RecordingHandler(route)
    store = await _open_store(handler)
    rows = await store.aggregate(
        "visits",
        [
            {"$match": {"site_id": "s1"}},
            {"$group": {"_id": "$language", "count": {"$sum": 1}}},
            {"$sort": {"count": -1}},
        ],
    )

    assert rows == [{"_id": "ko", "count": 2}, {"_id": "en", "count": 1}]
    assert len(handler.calls) == 1
    assert "where" in handler.calls[0][2]["structuredQuery"]


async def test_insert_commits_with_precondition_and_server_time() -> None:
    """insert creates with exists=false and resolves SERVER_TIMESTAMP from transformResults."""

    def route(method: str, path: str, body: dict | None) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "writeResults": [
                    {"transformResults": [{"timestampValue": "2024-01-01T12:00:00.5Z"}]}
                ]
            },
        )

    handler = RecordingHandler(route)
    store = await _open_store(handler)
    doc = await store.insert("sites", "s1", {"name": "Site", "created_at": SERVER_TIMESTAMP})

    assert doc == {
        "id": "s1",
        "name": "Site",
        "created_at": datetime(2024, 1, 1, 12, 0, 0, 500000, tzinfo=UTC),
    }
    _, path, body = handler.calls[0]
    assert path.endswith("/documents:commit")
    write = body["writes"][0]
    assert write["update"]["name"] == f"{_DOCS}/sites/s1"
    assert write["currentDocument"] == {"exists": False}
    assert write["updateTransforms"] == [
        {"fieldPath": "created_at", "setToServerValue": "REQUEST_TIME"}
    ]


async def test_insert_conflict_raises_document_exists() -> None:
    """HTTP 409 on create becomes DocumentExistsError."""

    def route(method: str, path: str, body: dict | None) -> httpx.Response:
        return httpx.Response(409, json={"error": {"message": "Document already exists"}})

    store = await _open_store(RecordingHandler(route))
    with pytest.raises(DocumentExistsError):
        await store.insert("sites", "s1", {"name": "Site"})


async def test_update_uses_mask_and_rereads() -> None:
    """update merges only the given fields and returns the stored document."""

    def route(method: str, path: str, body: dict | None) -> httpx.Response:
        if method == "GET":
            return httpx.Response(200, json=_doc("videos", "v1", views_count={"integerValue": "3"}))
        return httpx.Response(200, json={"writeResults": [{}]})

    handler = RecordingHandler(route)
    store = await _open_store(handler)
    doc = await store.update("videos", "v1", {"views_count": 3, "updated_at": SERVER_TIMESTAMP})

    assert doc == {"id": "v1", "views_count": 3}
    write = handler.calls[0][2]["writes"][0]
    assert write["updateMask"] == {"fieldPaths": ["views_count"]}
    assert write["currentDocument"] == {"exists": True}
    assert handler.calls[1][0] == "GET"


async def test_update_missing_document_returns_none() -> None:
    """HTTP 404 on a precondition-guarded update means the document does not exist."""

    def route(method: str, path: str, body: dict | None) -> httpx.Response:
        return httpx.Response(404, json={"error": {"message": "No document to update"}})

    store = await _open_store(RecordingHandler(route))
    assert await store.update("videos", "nope", {"title": "x"}) is None
    assert await store.get("videos", "nope") is None
    assert await store.delete("videos", "nope") is False


async def test_batch_writes_count_successes_only() -> None:
    """insert_many skips existing ids and delete_many skips missing ids."""
    statuses = {
        "insert": [{"code": 0}, {"code": 6}],
        "delete": [{"code": 0}, {"code": 0}, {"code": 5}],
    }

    def route(method: str, path: str, body: dict | None) -> httpx.Response:
        assert path.endswith("/documents:batchWrite")
        kind = "delete" if "delete" in body["writes"][0] else "insert"
        return httpx.Response(200, json={"status": statuses[kind]})

    store = await _open_store(RecordingHandler(route))
    assert await store.insert_many("videos", [("a", {"title": "A"}), ("b", {"title": "B"})]) == 1
    assert await store.delete_many("videos", ["a", "b", "missing"]) == 2


async def test_batch_write_unexpected_failure_raises() -> None:
    """A per-write failure other than the skippable one is a store error."""

    def route(method: str, path: str, body: dict | None) -> httpx.Response:
        return httpx.Response(200, json={"status": [{"code": 7, "message": "denied"}]})

    store = await _open_store(RecordingHandler(route))
    with pytest.raises(StoreException):
        await store.delete_many("videos", ["a"])


async def test_timeout_and_overload_map_to_store_unavailable() -> None:
    """Timeouts, 5xx and 429 surface as StoreUnavailableException without retry."""
    calls = {"n": 0}

    def timeout(request: httpx.Request) -> httpx.Response:
        calls["n"] += 1
        raise httpx.ReadTimeout("timed out", request=request)

    store = await _open_store(timeout)
    with pytest.raises(StoreUnavailableException) as exc_info:
        await store.get("videos", "v1")
    assert exc_info.value.details["reason"] == "timed out"
    assert calls["n"] == 1

    for status in (429, 503):
        store = await _open_store(lambda request, s=status: httpx.Response(s, json={}))
        with pytest.raises(StoreUnavailableException):
            await store.count("visits", {})


async def test_closed_store_rejects_calls() -> None:
    """Calls before open() or after close() raise StoreUnavailableException."""
    http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    store = FirestoreDocumentStore(FirestoreRESTClient("demo", None, http_client=http))
    with pytest.raises(StoreUnavailableException):
        await store.get("videos", "v1")
    await store.open()
    await store.close()
    with pytest.raises(StoreUnavailableException):
        await store.count("videos", {})
