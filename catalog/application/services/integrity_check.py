"""Data integrity audit: finds invariant violations already present in the store.

The mutation pipeline prevents these for new writes; the audit catches data
written before the checks existed or by other tools. Read-only.
"""

from __future__ import annotations

import logging

from catalog.application.dtos.integrity import IntegrityReport
from catalog.application.interfaces.store import DocumentStore
from catalog.application.services.record_defaults import COUNTER_FIELDS
from catalog.domain.enums import Platform, UserRole, UserStatus
from catalog.infrastructure.firebase.collections import (
    COLLECTION_SITES,
    COLLECTION_USERS,
    COLLECTION_VIDEOS,
)
from catalog.shared.telemetry import traced

logger = logging.getLogger(__name__)


def _is_negative(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value < 0


class IntegrityCheck:
    """Runs every integrity check and returns one report."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    @traced()
    async def run(self) -> IntegrityReport:
        report = IntegrityReport()
        site_ids = {doc["id"] async for doc in self._store.find(COLLECTION_SITES, {})}
        user_ids = {doc["id"] async for doc in self._store.find(COLLECTION_USERS, {})}
        platforms = set(Platform.values())

        async for video in self._store.find(COLLECTION_VIDEOS, {}):
            vid = video["id"]
            site_id = video.get("site_id")
            if not site_id:
                report.videos_without_site.append(vid)
            elif site_id not in site_ids:
                report.videos_with_missing_site.append(vid)
            if video.get("owner_id") not in user_ids:
                report.videos_with_missing_owner.append(vid)
            if video.get("platform") not in platforms:
                report.videos_with_invalid_platform.append(vid)
            if any(_is_negative(video.get(name)) for name in COUNTER_FIELDS):
                report.videos_with_negative_stats.append(vid)
            if not (video.get("title") or "").strip():
                report.videos_without_title.append(vid)

        duplicates = await self._store.aggregate(
            COLLECTION_USERS,
            [
                {"$match": {"email": {"$ne": None}}},
                {"$group": {"_id": "$email", "count": {"$sum": 1}}},
                {"$match": {"count": {"$gt": 1}}},
            ],
        )
        report.duplicate_emails = {row["_id"]: row["count"] for row in duplicates}
        report.active_admin_count = await self._store.count(
            COLLECTION_USERS,
            {"role": UserRole.ADMIN.value, "status": UserStatus.ACTIVE.value},
        )

        if report.ok:
            logger.info("Integrity check passed")
        else:
            logger.warning("Integrity check found violations: %s", report.violations)
        return report
