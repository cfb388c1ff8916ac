"""Record construction: one field->default table applied by every insert path.

build_record() is the only place new documents are shaped. It fills omitted
fields from ENTITY_DEFAULTS, validates enum and counter fields, and stamps
timestamps with SERVER_TIMESTAMP so the store's clock decides them.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from catalog.application.interfaces.store import SERVER_TIMESTAMP
from catalog.domain.enums import Platform, UserRole, UserStatus, VideoStatus, Visibility
from catalog.domain.exceptions import ValidationException
from catalog.infrastructure.firebase.collections import (
    COLLECTION_SITES,
    COLLECTION_STATS_ADJUSTMENTS,
    COLLECTION_USERS,
    COLLECTION_VIDEOS,
    COLLECTION_VISITS,
)

COUNTER_FIELDS = ("views_count", "likes_count", "shares_count")

ENTITY_DEFAULTS: dict[str, dict[str, Any]] = {
    COLLECTION_SITES: {
        "domain": None,
        "homepage_url": None,
    },
    COLLECTION_USERS: {
        "site_id": None,
        "email": None,
        "status": UserStatus.ACTIVE.value,
        "password_hash": None,
        "password_salt": None,
        "api_key_hash": None,
        "api_key_salt": None,
    },
    COLLECTION_VIDEOS: {
        "video_id": None,
        "source_url": None,
        "title": None,
        "thumbnail_url": None,
        "embed_url": None,
        "language": "en",
        "status": VideoStatus.ACTIVE.value,
        "visibility": Visibility.PUBLIC.value,
        "views_count": 0,
        "likes_count": 0,
        "shares_count": 0,
    },
    COLLECTION_VISITS: {
        "country_code": None,
        "country_name": None,
        "language": None,
        "page_url": None,
        "user_agent": None,
    },
    COLLECTION_STATS_ADJUSTMENTS: {},
}

# Fields that must be present and non-empty on insert.
REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    COLLECTION_SITES: ("name",),
    COLLECTION_USERS: ("name", "role"),
    COLLECTION_VIDEOS: ("site_id", "owner_id", "platform"),
    COLLECTION_VISITS: ("site_id", "ip_address"),
    COLLECTION_STATS_ADJUSTMENTS: ("video_id", "admin_id"),
}

ENUM_FIELDS: dict[str, dict[str, type[Enum]]] = {
    COLLECTION_USERS: {"role": UserRole, "status": UserStatus},
    COLLECTION_VIDEOS: {"platform": Platform, "status": VideoStatus, "visibility": Visibility},
}

# Mutable entities carry updated_at; event and audit rows are append-only.
TIMESTAMP_FIELDS: dict[str, tuple[str, ...]] = {
    COLLECTION_SITES: ("created_at", "updated_at"),
    COLLECTION_USERS: ("created_at", "updated_at"),
    COLLECTION_VIDEOS: ("created_at", "updated_at"),
    COLLECTION_VISITS: ("created_at",),
    COLLECTION_STATS_ADJUSTMENTS: ("created_at",),
}


def validate_counter(name: str, value: Any) -> int:
    """Return value if it is a non-negative int; negative input is rejected, never clamped."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationException(f"{name} must be an integer", field=name)
    if value < 0:
        raise ValidationException(f"{name} must not be negative", field=name)
    return value


def normalize_enum(collection: str, name: str, value: Any) -> str:
    """Return the stored string for an enum field, or raise ValidationException."""
    enum_cls = ENUM_FIELDS[collection][name]
    try:
        return enum_cls(value).value
    except ValueError as e:
        raise ValidationException(
            f"Invalid {name}: {value!r}. Allowed: {', '.join(m.value for m in enum_cls)}",
            field=name,
        ) from e


def _check_fields(collection: str, values: dict[str, Any]) -> dict[str, Any]:
    checked = dict(values)
    for name in ENUM_FIELDS.get(collection, {}):
        if checked.get(name) is not None:
            checked[name] = normalize_enum(collection, name, checked[name])
    if collection == COLLECTION_VIDEOS:
        for name in COUNTER_FIELDS:
            if name in checked:
                validate_counter(name, checked[name])
    return checked


def build_record(collection: str, values: dict[str, Any]) -> dict[str, Any]:
    """Build a new document for collection from caller values.

    None means "omitted" for fields that have a default. The document key
    ("id") is not part of the record.

    Raises:
        ValidationException: A required field is missing or an enum/counter is invalid.
    """
    if collection not in ENTITY_DEFAULTS:
        raise ValueError(f"Unknown collection: {collection}")
    record = dict(ENTITY_DEFAULTS[collection])
    for name, value in values.items():
        if name == "id" or (value is None and name in record):
            continue
        record[name] = value
    for name in REQUIRED_FIELDS[collection]:
        value = record.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationException(f"{name} is required", field=name)
    record = _check_fields(collection, record)
    for name in TIMESTAMP_FIELDS[collection]:
        record[name] = SERVER_TIMESTAMP
    return record


def build_changes(collection: str, changes: dict[str, Any]) -> dict[str, Any]:
    """Validate a partial update and stamp updated_at.

    Raises:
        ValidationException: Nothing to change, or an enum/counter is invalid.
    """
    if not changes:
        raise ValidationException("No fields to update")
    for name in REQUIRED_FIELDS.get(collection, ()):
        if name in changes and (changes[name] is None or changes[name] == ""):
            raise ValidationException(f"{name} cannot be empty", field=name)
    checked = _check_fields(collection, changes)
    if "updated_at" in TIMESTAMP_FIELDS[collection]:
        checked["updated_at"] = SERVER_TIMESTAMP
    return checked
