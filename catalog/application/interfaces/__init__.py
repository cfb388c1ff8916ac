"""Ports the application layer depends on (implemented in infrastructure)."""

from catalog.application.interfaces.store import (
    ASCENDING,
    DESCENDING,
    SERVER_TIMESTAMP,
    DocumentStore,
    Filter,
    Pipeline,
    SortSpec,
)

__all__ = [
    "ASCENDING",
    "DESCENDING",
    "SERVER_TIMESTAMP",
    "DocumentStore",
    "Filter",
    "Pipeline",
    "SortSpec",
]
