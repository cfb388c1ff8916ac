"""Firestore backend: REST client, value encoding, query translation and document store."""

from catalog.infrastructure.firebase.client import create_firestore_client
from catalog.infrastructure.firebase.document_store import FirestoreDocumentStore

__all__ = [
    "FirestoreDocumentStore",
    "create_firestore_client",
]
