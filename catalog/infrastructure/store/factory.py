"""Document store factory: creates the Firestore or in-memory backend from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from catalog.application.interfaces.store import DocumentStore

if TYPE_CHECKING:
    from catalog.core.config import Settings


class StoreFactory:
    """Factory for document store instances based on configuration."""

    @staticmethod
    def create_store(settings: "Settings | None" = None) -> DocumentStore:
        """Create a document store from settings. The store is returned unopened.

        Args:
            settings: Application settings; if None, uses get_settings().

        Returns:
            FirestoreDocumentStore or InMemoryDocumentStore.

        Raises:
            ValueError: Unknown backend or unusable credentials.
        """
        from catalog.core.config import get_settings

        s = settings or get_settings()
        backend = s.store_backend.lower()

        if backend == "memory":
            from catalog.infrastructure.store.memory_store import InMemoryDocumentStore

            return InMemoryDocumentStore()
        if backend == "firestore":
            from catalog.infrastructure.firebase.client import create_firestore_client
            from catalog.infrastructure.firebase.document_store import (
                FirestoreDocumentStore,
            )

            return FirestoreDocumentStore(create_firestore_client(s))
        raise ValueError(
            f"Unknown store backend: {backend}. Supported: 'firestore', 'memory'"
        )
