"""Firestore client construction (REST-based, no firebase-admin).

Credentials come from FIREBASE_SERVICE_ACCOUNT_KEY (JSON string) or
FIREBASE_SERVICE_ACCOUNT_PATH (file path). With FIRESTORE_EMULATOR_HOST set,
requests go to the emulator unauthenticated. The client is an explicit value
owned by FirestoreDocumentStore; there is no process-wide handle.
"""

import json
import logging
from pathlib import Path

from catalog.core.config import Settings
from catalog.infrastructure.firebase._rest_client import (
    FirestoreRESTClient,
    get_credentials,
)

logger = logging.getLogger(__name__)


def load_service_account(settings: Settings) -> dict | None:
    """Return service account dict from env key or file path, or None if neither is set."""
    key_json = (
        settings.firebase_service_account_key.get_secret_value()
        if settings.firebase_service_account_key
        else None
    )
    if key_json:
        try:
            return json.loads(key_json)
        except json.JSONDecodeError as e:
            raise ValueError("FIREBASE_SERVICE_ACCOUNT_KEY is not valid JSON") from e
    path = settings.firebase_service_account_path
    if path:
        resolved = Path(path).expanduser().resolve()
        if not resolved.is_file():
            raise ValueError(
                f"FIREBASE_SERVICE_ACCOUNT_PATH set but file not found: {path} (resolved: {resolved})"
            )
        with open(resolved, encoding="utf-8") as f:
            return json.load(f)
    return None


def create_firestore_client(settings: Settings) -> FirestoreRESTClient:
    """Build an unopened Firestore REST client from settings.

    FIRESTORE_PROJECT_ID overrides the service account's project_id.

    Raises:
        ValueError: Credentials missing or malformed, or no project id.
    """
    if settings.firestore_emulator_host:
        if not settings.firestore_project_id:
            raise ValueError("FIRESTORE_PROJECT_ID is required with FIRESTORE_EMULATOR_HOST")
        logger.info(
            "Using Firestore emulator at %s (project %s)",
            settings.firestore_emulator_host,
            settings.firestore_project_id,
        )
        return FirestoreRESTClient(
            settings.firestore_project_id,
            None,
            database=settings.firestore_database,
            emulator_host=settings.firestore_emulator_host,
            timeout=settings.store_timeout_seconds,
        )

    key_dict = load_service_account(settings)
    if not key_dict:
        raise ValueError("Firestore credentials are not configured")
    project_id = settings.firestore_project_id or key_dict.get("project_id")
    if not project_id:
        raise ValueError("Firebase service account JSON missing 'project_id'")
    return FirestoreRESTClient(
        project_id,
        get_credentials(key_dict),
        database=settings.firestore_database,
        timeout=settings.store_timeout_seconds,
    )
