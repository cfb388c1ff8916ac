"""Infrastructure: document store backends (Firestore REST, in-memory)."""
