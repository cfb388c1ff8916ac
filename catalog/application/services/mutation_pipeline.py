"""Mutation pipeline: inserts, updates and deletes with the integrity the store lacks.

Validation and referential checks run before any write, so a rejected
operation leaves the store unchanged. Referenced sites and users are
resolved through the record store adapter. The existence check and the
write that follows are separate store calls; a referenced record deleted in
between is an accepted race.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import asdict
from typing import Any

from catalog.application.dtos.site import SiteCreate, SiteResult
from catalog.application.dtos.user import UserCreate, UserResult, UserUpdate
from catalog.application.dtos.video import VideoCreate, VideoResult, VideoStats, VideoUpdate
from catalog.application.dtos.visit import VisitCreate, VisitResult
from catalog.application.interfaces.store import SERVER_TIMESTAMP, DocumentStore
from catalog.application.queries.shapes import SiteById, UserById, VideoById
from catalog.application.services.record_defaults import (
    COUNTER_FIELDS,
    build_changes,
    build_record,
    validate_counter,
)
from catalog.application.services.record_mapping import to_site, to_user, to_video, to_visit
from catalog.application.services.record_store import RecordStoreAdapter
from catalog.domain.exceptions import (
    DuplicateEmailException,
    ReferentialIntegrityException,
    ResourceAlreadyExistsException,
    ResourceNotFoundException,
    SiteAlreadyExistsException,
    ValidationException,
)
from catalog.infrastructure.exceptions import DocumentExistsError, StoreException
from catalog.infrastructure.firebase.collections import (
    COLLECTION_SITES,
    COLLECTION_STATS_ADJUSTMENTS,
    COLLECTION_USERS,
    COLLECTION_VIDEOS,
    COLLECTION_VISITS,
)
from catalog.shared.telemetry import traced
from catalog.shared.utils.generators import generate_cuid

logger = logging.getLogger(__name__)


def _set_fields(data: Any) -> dict[str, Any]:
    """Non-None fields of an update DTO."""
    return {k: v for k, v in asdict(data).items() if v is not None}


class MutationPipeline:
    """Write operations over sites, users, videos, visits and the stats audit log."""

    def __init__(self, store: DocumentStore, records: RecordStoreAdapter) -> None:
        self._store = store
        self._records = records

    async def _insert_new(
        self, collection: str, resource_type: str, document_id: str, record: dict[str, Any]
    ) -> dict[str, Any]:
        try:
            return await self._store.insert(collection, document_id, record)
        except DocumentExistsError as e:
            raise ResourceAlreadyExistsException(resource_type, document_id) from e

    async def _require_site(self, site_id: str, field: str = "site_id") -> None:
        if await self._records.lookup_one(SiteById(site_id)) is None:
            raise ReferentialIntegrityException("site", site_id, field)

    async def _require_user(self, user_id: str, field: str = "owner_id") -> None:
        if await self._records.lookup_one(UserById(user_id)) is None:
            raise ReferentialIntegrityException("user", user_id, field)

    async def _ensure_email_free(self, email: str, user_id: str | None = None) -> None:
        # Uniqueness spans every status, so this does not go through UserByEmail.
        async for doc in self._store.find(COLLECTION_USERS, {"email": email}, limit=2):
            if doc["id"] != user_id:
                raise DuplicateEmailException()

    @traced()
    async def insert_site(self, data: SiteCreate) -> SiteResult:
        """Create a site under its slug. Raises SiteAlreadyExistsException if the slug is taken."""
        if not data.id or not data.id.strip():
            raise ValidationException("Site id (slug) is required", field="id")
        record = build_record(COLLECTION_SITES, asdict(data))
        try:
            doc = await self._store.insert(COLLECTION_SITES, data.id, record)
        except DocumentExistsError as e:
            raise SiteAlreadyExistsException(data.id) from e
        logger.info("Created site %s", data.id)
        return to_site(doc)

    @traced()
    async def insert_user(self, data: UserCreate) -> UserResult:
        """Create a user. site_id (when set) must resolve; a non-null email must be unique."""
        record = build_record(COLLECTION_USERS, asdict(data))
        if data.site_id is not None:
            await self._require_site(data.site_id)
        if data.email is not None:
            await self._ensure_email_free(data.email)
        user_id = data.id or generate_cuid()
        doc = await self._insert_new(COLLECTION_USERS, "user", user_id, record)
        logger.info("Created user %s (role=%s, site=%s)", user_id, record["role"], data.site_id)
        return to_user(doc)

    @traced()
    async def insert_video(self, data: VideoCreate) -> VideoResult:
        """Create a video owned by an existing user on an existing site."""
        record = build_record(COLLECTION_VIDEOS, asdict(data))
        await self._require_site(data.site_id)
        await self._require_user(data.owner_id)
        video_id = data.id or generate_cuid()
        doc = await self._insert_new(COLLECTION_VIDEOS, "video", video_id, record)
        logger.info("Created video %s on site %s", video_id, data.site_id)
        return to_video(doc)

    @traced()
    async def insert_visit(self, data: VisitCreate) -> VisitResult:
        """Append one visit event. No existence lookup is made for site_id."""
        record = build_record(COLLECTION_VISITS, asdict(data))
        visit_id = data.id or generate_cuid()
        doc = await self._insert_new(COLLECTION_VISITS, "visit", visit_id, record)
        return to_visit(doc)

    @traced()
    async def update_video(self, video_id: str, changes: VideoUpdate) -> VideoResult:
        """Partially update video metadata. Reassigned site/owner must resolve."""
        values = build_changes(COLLECTION_VIDEOS, _set_fields(changes))
        if "site_id" in values:
            await self._require_site(values["site_id"])
        if "owner_id" in values:
            await self._require_user(values["owner_id"])
        doc = await self._store.update(COLLECTION_VIDEOS, video_id, values)
        if doc is None:
            raise ResourceNotFoundException("video", video_id)
        logger.info("Updated video %s fields=%s", video_id, sorted(values))
        return to_video(doc)

    @traced()
    async def update_video_stats(
        self, video_id: str, stats: VideoStats, updated_by: str
    ) -> VideoResult:
        """Overwrite all three counters in one document update and log the adjustment.

        Negative or non-integer counters raise ValidationException before any
        read or write. Re-issuing the same stats leaves the same counters.
        """
        new = {name: validate_counter(name, getattr(stats, name)) for name in COUNTER_FIELDS}
        if not isinstance(updated_by, str) or not updated_by.strip():
            raise ValidationException("updated_by is required", field="updated_by")
        current = await self._records.lookup_one(VideoById(video_id))
        if current is None:
            raise ResourceNotFoundException("video", video_id)
        doc = await self._store.update(
            COLLECTION_VIDEOS,
            video_id,
            {
                **new,
                "stats_updated_at": SERVER_TIMESTAMP,
                "stats_updated_by": updated_by,
                "updated_at": SERVER_TIMESTAMP,
            },
        )
        if doc is None:
            raise ResourceNotFoundException("video", video_id)
        adjustment = build_record(
            COLLECTION_STATS_ADJUSTMENTS,
            {
                "video_id": video_id,
                "admin_id": updated_by,
                "old_views": current.views_count,
                "new_views": new["views_count"],
                "old_likes": current.likes_count,
                "new_likes": new["likes_count"],
                "old_shares": current.shares_count,
                "new_shares": new["shares_count"],
            },
        )
        try:
            await self._store.insert(COLLECTION_STATS_ADJUSTMENTS, generate_cuid(), adjustment)
        except StoreException:
            logger.exception("Video %s stats updated but the adjustment log write failed", video_id)
            raise
        logger.info(
            "Video %s stats set to %s/%s/%s by %s",
            video_id,
            new["views_count"],
            new["likes_count"],
            new["shares_count"],
            updated_by,
        )
        return to_video(doc)

    @traced()
    async def update_user(self, user_id: str, changes: UserUpdate) -> UserResult:
        """Partially update a user (profile, role, status, site, password hash)."""
        values = _set_fields(changes)
        clear_site = values.pop("clear_site", False)
        if clear_site:
            if "site_id" in values:
                raise ValidationException("Pass either site_id or clear_site", field="site_id")
            values["site_id"] = None
        values = build_changes(COLLECTION_USERS, values)
        if values.get("site_id") is not None:
            await self._require_site(values["site_id"])
        if "email" in values:
            await self._ensure_email_free(values["email"], user_id)
        doc = await self._store.update(COLLECTION_USERS, user_id, values)
        if doc is None:
            raise ResourceNotFoundException("user", user_id)
        logger.info("Updated user %s fields=%s", user_id, sorted(values))
        return to_user(doc)

    @traced()
    async def bulk_insert_videos(self, records: Sequence[VideoCreate]) -> int:
        """Insert many videos in one batched call; return how many were inserted.

        Every record is validated and every referenced site and owner resolved
        first; any failure rejects the whole batch with no write. Ids that
        already exist are skipped.
        """
        if not records:
            return 0
        documents = [
            (data.id or generate_cuid(), build_record(COLLECTION_VIDEOS, asdict(data)))
            for data in records
        ]
        site_ids = sorted({data.site_id for data in records})
        owner_ids = sorted({data.owner_id for data in records})
        await asyncio.gather(
            *(self._require_site(site_id) for site_id in site_ids),
            *(self._require_user(owner_id) for owner_id in owner_ids),
        )
        inserted = await self._store.insert_many(COLLECTION_VIDEOS, documents)
        if inserted < len(documents):
            logger.warning(
                "Bulk insert: %d of %d videos inserted (existing ids skipped)",
                inserted,
                len(documents),
            )
        else:
            logger.info("Bulk insert: %d videos inserted", inserted)
        return inserted

    @traced()
    async def bulk_delete_videos(self, ids: Sequence[str]) -> int:
        """Delete many videos in one batched call; return how many existed."""
        if not ids:
            return 0
        deleted = await self._store.delete_many(COLLECTION_VIDEOS, list(ids))
        if deleted < len(set(ids)):
            logger.warning("Bulk delete: %d of %d videos deleted", deleted, len(set(ids)))
        else:
            logger.info("Bulk delete: %d videos deleted", deleted)
        return deleted

    @traced()
    async def delete_video(self, video_id: str) -> bool:
        """Delete one video. Stats adjustments for it are left in place."""
        deleted = await self._store.delete(COLLECTION_VIDEOS, video_id)
        if deleted:
            logger.info("Deleted video %s", video_id)
        else:
            logger.warning("Delete video %s: not found", video_id)
        return deleted
