"""Firestore collection names (schema-in-code).

Firestore has no DDL. Collections appear on first write; these constants
are the single source of truth for their names and are shared by the
in-memory backend.
"""

COLLECTION_SITES = "sites"
COLLECTION_USERS = "users"
COLLECTION_VIDEOS = "videos"

# Append-only event and audit collections
COLLECTION_VISITS = "visits"
COLLECTION_STATS_ADJUSTMENTS = "stats_adjustments"
