"""Document store port (DIP). Implementations: FirestoreDocumentStore, InMemoryDocumentStore.

The store speaks filter documents, sort specs and aggregation pipelines:

    filter:   {"site_id": "s1", "created_at": {"$gte": lo, "$lte": hi}}
    sort:     [("created_at", DESCENDING)]
    pipeline: [{"$match": {...}}, {"$group": {...}}, {"$sort": {...}}, {"$limit": 90}]

Documents are plain dicts; reads include the document key as "id".
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Any, Protocol

ASCENDING = 1
DESCENDING = -1

Filter = dict[str, Any]
SortSpec = Sequence[tuple[str, int]]
Pipeline = Sequence[dict[str, Any]]


class _ServerTimestamp:
    """Sentinel field value replaced with the store's clock at write time."""

    _instance: _ServerTimestamp | None = None

    def __new__(cls) -> _ServerTimestamp:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class DocumentStore(Protocol):
    """Protocol for document store backends.

    Every call round-trips to the backend; nothing is cached between calls.
    Transport failures and timeouts raise StoreUnavailableException.
    """

    async def open(self) -> None:
        """Acquire backend resources. Calls before open() fail with StoreUnavailableException."""
        ...

    async def close(self) -> None:
        """Release backend resources. Idempotent."""
        ...

    async def get(self, collection: str, document_id: str) -> dict[str, Any] | None:
        """Return one document by id, or None."""
        ...

    def find(
        self,
        collection: str,
        filter: Filter,
        *,
        sort: SortSpec | None = None,
        limit: int | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """Stream documents matching filter in sort order (single pass)."""
        ...

    async def count(self, collection: str, filter: Filter) -> int:
        """Return the number of documents matching filter."""
        ...

    async def aggregate(self, collection: str, pipeline: Pipeline) -> list[dict[str, Any]]:
        """Run an aggregation pipeline and return its output documents."""
        ...

    async def insert(
        self, collection: str, document_id: str, data: dict[str, Any]
    ) -> dict[str, Any]:
        """Create a document; raise DocumentExistsError if the id is taken.

        SERVER_TIMESTAMP values are resolved by the store. Returns the stored document.
        """
        ...

    async def insert_many(
        self, collection: str, documents: Sequence[tuple[str, dict[str, Any]]]
    ) -> int:
        """Create many documents in one batched call; return how many were created.

        Ids that already exist are skipped, not errors.
        """
        ...

    async def update(
        self, collection: str, document_id: str, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Merge changes into one document atomically; None if it does not exist."""
        ...

    async def delete(self, collection: str, document_id: str) -> bool:
        """Delete one document; return whether it existed."""
        ...

    async def delete_many(self, collection: str, document_ids: Sequence[str]) -> int:
        """Delete many documents in one batched call; return how many existed."""
        ...
