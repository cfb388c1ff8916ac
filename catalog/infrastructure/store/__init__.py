"""Document store backends and the shared query language.

StoreFactory builds the configured backend. Backends are imported lazily so
the in-memory store does not load the Firestore client stack.
"""

from catalog.infrastructure.store.factory import StoreFactory
from catalog.infrastructure.store.memory_store import InMemoryDocumentStore

__all__ = [
    "InMemoryDocumentStore",
    "StoreFactory",
]
