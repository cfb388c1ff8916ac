"""Infrastructure exceptions for document store operations.

Store errors extend CatalogException so callers can handle every data-layer
failure through one base class.
"""

from catalog.domain.exceptions import CatalogException


class StoreException(CatalogException):
    """Base exception for document store operations."""


class StoreUnavailableException(StoreException):
    """Store call failed in transport, timed out, was rejected as overloaded, or the store is closed.

    Never retried by the data layer; retry policy belongs to the caller.
    """

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(
            f"Document store unavailable during {operation}: {reason}",
            "STORE_UNAVAILABLE",
            {"operation": operation, "reason": reason},
        )


class DocumentExistsError(StoreException):
    """Create failed because a document with the same id already exists."""

    def __init__(self, collection: str, document_id: str) -> None:
        super().__init__(
            f"Document already exists: {collection}/{document_id}",
            "DOCUMENT_EXISTS",
            {"collection": collection, "document_id": document_id},
        )
