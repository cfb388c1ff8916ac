"""In-memory document store (implements DocumentStore).

Process-local backend for development and tests. Evaluates the same filter,
sort and pipeline language as the Firestore backend and resolves
SERVER_TIMESTAMP with its own clock. Each call copies documents in and out,
so callers never share mutable state with the store.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import AsyncIterator, Callable, Sequence
from datetime import datetime
from typing import Any

from catalog.application.interfaces.store import SERVER_TIMESTAMP, Filter, Pipeline, SortSpec
from catalog.infrastructure.exceptions import DocumentExistsError, StoreUnavailableException
from catalog.infrastructure.store.filters import matches, sort_documents, validate_filter
from catalog.infrastructure.store.pipeline import run_pipeline
from catalog.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class InMemoryDocumentStore:
    """Document store held in a dict of collections. Same contract as FirestoreDocumentStore."""

    def __init__(self, *, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._open = False

    async def __aenter__(self) -> InMemoryDocumentStore:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def open(self) -> None:
        self._open = True

    async def close(self) -> None:
        self._open = False

    def _ensure_open(self, operation: str) -> None:
        if not self._open:
            raise StoreUnavailableException(operation, "store is closed")

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(name, {})

    @staticmethod
    def _with_id(document_id: str, data: dict[str, Any]) -> dict[str, Any]:
        out = copy.deepcopy(data)
        out["id"] = document_id
        return out

    def _resolve(self, data: dict[str, Any]) -> dict[str, Any]:
        now = self._clock()
        resolved = {}
        for key, value in data.items():
            if key == "id":
                continue
            resolved[key] = now if value is SERVER_TIMESTAMP else copy.deepcopy(value)
        return resolved

    async def get(self, collection: str, document_id: str) -> dict[str, Any] | None:
        self._ensure_open("get")
        data = self._collection(collection).get(document_id)
        if data is None:
            return None
        return self._with_id(document_id, data)

    async def find(
        self,
        collection: str,
        filter: Filter,
        *,
        sort: SortSpec | None = None,
        limit: int | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        self._ensure_open("find")
        validate_filter(filter)
        candidates = [
            self._with_id(doc_id, data)
            for doc_id, data in self._collection(collection).items()
        ]
        selected = sort_documents((d for d in candidates if matches(d, filter)), sort)
        if limit is not None:
            selected = selected[:limit]
        for doc in selected:
            yield doc

    async def count(self, collection: str, filter: Filter) -> int:
        self._ensure_open("count")
        validate_filter(filter)
        return sum(
            1
            for doc_id, data in self._collection(collection).items()
            if matches(self._with_id(doc_id, data), filter)
        )

    async def aggregate(self, collection: str, pipeline: Pipeline) -> list[dict[str, Any]]:
        self._ensure_open("aggregate")
        docs = [
            self._with_id(doc_id, data)
            for doc_id, data in self._collection(collection).items()
        ]
        return run_pipeline(docs, pipeline)

    async def insert(
        self, collection: str, document_id: str, data: dict[str, Any]
    ) -> dict[str, Any]:
        self._ensure_open("insert")
        coll = self._collection(collection)
        if document_id in coll:
            raise DocumentExistsError(collection, document_id)
        coll[document_id] = self._resolve(data)
        return self._with_id(document_id, coll[document_id])

    async def insert_many(
        self, collection: str, documents: Sequence[tuple[str, dict[str, Any]]]
    ) -> int:
        self._ensure_open("insert_many")
        coll = self._collection(collection)
        inserted = 0
        for document_id, data in documents:
            if document_id in coll:
                logger.debug("insert_many skipped existing %s/%s", collection, document_id)
                continue
            coll[document_id] = self._resolve(data)
            inserted += 1
        return inserted

    async def update(
        self, collection: str, document_id: str, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        self._ensure_open("update")
        coll = self._collection(collection)
        current = coll.get(document_id)
        if current is None:
            return None
        merged = dict(current)
        merged.update(self._resolve(changes))
        coll[document_id] = merged
        return self._with_id(document_id, merged)

    async def delete(self, collection: str, document_id: str) -> bool:
        self._ensure_open("delete")
        return self._collection(collection).pop(document_id, None) is not None

    async def delete_many(self, collection: str, document_ids: Sequence[str]) -> int:
        self._ensure_open("delete_many")
        coll = self._collection(collection)
        return sum(1 for doc_id in dict.fromkeys(document_ids) if coll.pop(doc_id, None) is not None)
