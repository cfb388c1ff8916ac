"""Firestore document store (implements DocumentStore).

Filters, sorts and limits are pushed down as a structuredQuery. Filters
Firestore cannot evaluate fall back to a collection scan filtered locally.
Aggregation pipelines run their leading $match/$sort/$limit server-side and
the remaining stages over the streamed documents. Timestamps written as
SERVER_TIMESTAMP use Firestore's REQUEST_TIME.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any

from catalog.application.interfaces.store import Filter, Pipeline, SortSpec
from catalog.infrastructure.exceptions import StoreException, StoreUnavailableException
from catalog.infrastructure.firebase._rest_client import (
    MAX_BATCH_WRITES,
    RPC_ALREADY_EXISTS,
    RPC_NOT_FOUND,
    RPC_OK,
    FirestoreRESTClient,
)
from catalog.infrastructure.firebase._rest_query import UntranslatableFilter, structured_query
from catalog.infrastructure.store.filters import matches, sort_documents, validate_filter
from catalog.infrastructure.store.pipeline import leading_query, run_pipeline

logger = logging.getLogger(__name__)


def _chunks(items: Sequence, size: int):
    for i in range(0, len(items), size):
        yield items[i : i + size]


class FirestoreDocumentStore:
    """DocumentStore over the Firestore REST API."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client
        self._open = False

    async def __aenter__(self) -> FirestoreDocumentStore:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def open(self) -> None:
        await self._client.open()
        self._open = True
        logger.info("Firestore store opened (project %s)", self._client.project_id)

    async def close(self) -> None:
        if self._open:
            await self._client.aclose()
            self._open = False
            logger.info("Firestore HTTP client closed")

    def _ensure_open(self, operation: str) -> None:
        if not self._open:
            raise StoreUnavailableException(operation, "store is closed")

    async def get(self, collection: str, document_id: str) -> dict[str, Any] | None:
        self._ensure_open("get")
        return await self._client.get_document(collection, document_id)

    async def _query(
        self,
        collection: str,
        filter: Filter,
        sort: SortSpec | None,
        limit: int | None,
    ) -> list[dict[str, Any]]:
        validate_filter(filter)
        try:
            return await self._client.run_query(structured_query(collection, filter, sort, limit))
        except UntranslatableFilter as e:
            logger.debug("Filtering %s locally: %s", collection, e)
        docs = await self._client.run_query(structured_query(collection, {}))
        selected = sort_documents((d for d in docs if matches(d, filter)), sort)
        return selected if limit is None else selected[:limit]

    async def find(
        self,
        collection: str,
        filter: Filter,
        *,
        sort: SortSpec | None = None,
        limit: int | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        self._ensure_open("find")
        for doc in await self._query(collection, filter, sort, limit):
            yield doc

    async def count(self, collection: str, filter: Filter) -> int:
        self._ensure_open("count")
        validate_filter(filter)
        try:
            return await self._client.run_count(structured_query(collection, filter))
        except UntranslatableFilter as e:
            logger.debug("Counting %s locally: %s", collection, e)
        docs = await self._client.run_query(structured_query(collection, {}))
        return sum(1 for d in docs if matches(d, filter))

    async def aggregate(self, collection: str, pipeline: Pipeline) -> list[dict[str, Any]]:
        self._ensure_open("aggregate")
        filter, sort, limit, remaining = leading_query(pipeline)
        docs = await self._query(collection, filter, sort, limit)
        return run_pipeline(docs, remaining)

    async def insert(
        self, collection: str, document_id: str, data: dict[str, Any]
    ) -> dict[str, Any]:
        self._ensure_open("insert")
        return await self._client.create_document(collection, document_id, data)

    async def _batch(self, operation: str, writes: list[dict], skip_code: int) -> int:
        affected = 0
        for chunk in _chunks(writes, MAX_BATCH_WRITES):
            for code in await self._client.batch_write(operation, chunk):
                if code == RPC_OK:
                    affected += 1
                elif code != skip_code:
                    raise StoreException(
                        f"Firestore {operation} write failed with rpc code {code}",
                        "STORE_ERROR",
                        {"operation": operation, "rpc_code": code},
                    )
        return affected

    async def insert_many(
        self, collection: str, documents: Sequence[tuple[str, dict[str, Any]]]
    ) -> int:
        self._ensure_open("insert_many")
        writes = [self._client.create_write(collection, doc_id, data) for doc_id, data in documents]
        return await self._batch("insert_many", writes, RPC_ALREADY_EXISTS)

    async def update(
        self, collection: str, document_id: str, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        self._ensure_open("update")
        if not await self._client.update_document(collection, document_id, changes):
            return None
        return await self._client.get_document(collection, document_id)

    async def delete(self, collection: str, document_id: str) -> bool:
        self._ensure_open("delete")
        return await self._client.delete_document(collection, document_id)

    async def delete_many(self, collection: str, document_ids: Sequence[str]) -> int:
        self._ensure_open("delete_many")
        writes = [self._client.delete_write(collection, doc_id) for doc_id in dict.fromkeys(document_ids)]
        return await self._batch("delete_many", writes, RPC_NOT_FOUND)
