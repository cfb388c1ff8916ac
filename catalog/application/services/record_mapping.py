"""Store document -> typed record conversion.

Timestamps written by other tools may be naive; they are read as UTC.
"""

from __future__ import annotations

from typing import Any

from catalog.application.dtos.site import SiteResult
from catalog.application.dtos.user import UserResult
from catalog.application.dtos.video import VideoResult
from catalog.application.dtos.visit import VisitResult
from catalog.domain.enums import Platform, UserRole, UserStatus, VideoStatus, Visibility
from catalog.shared.utils.datetime import ensure_utc


def to_site(doc: dict[str, Any]) -> SiteResult:
    return SiteResult(
        id=doc["id"],
        name=doc.get("name", ""),
        domain=doc.get("domain"),
        homepage_url=doc.get("homepage_url"),
        created_at=ensure_utc(doc.get("created_at")),
        updated_at=ensure_utc(doc.get("updated_at")),
    )


def to_user(doc: dict[str, Any]) -> UserResult:
    return UserResult(
        id=doc["id"],
        site_id=doc.get("site_id"),
        name=doc.get("name", ""),
        email=doc.get("email"),
        role=UserRole(doc["role"]),
        status=UserStatus(doc.get("status") or UserStatus.ACTIVE),
        created_at=ensure_utc(doc.get("created_at")),
        updated_at=ensure_utc(doc.get("updated_at")),
        password_hash=doc.get("password_hash"),
        password_salt=doc.get("password_salt"),
        api_key_hash=doc.get("api_key_hash"),
        api_key_salt=doc.get("api_key_salt"),
    )


def to_video(doc: dict[str, Any]) -> VideoResult:
    return VideoResult(
        id=doc["id"],
        site_id=doc.get("site_id", ""),
        owner_id=doc.get("owner_id", ""),
        platform=Platform(doc.get("platform") or Platform.OTHER),
        video_id=doc.get("video_id"),
        source_url=doc.get("source_url"),
        title=doc.get("title"),
        thumbnail_url=doc.get("thumbnail_url"),
        embed_url=doc.get("embed_url"),
        language=doc.get("language") or "en",
        status=VideoStatus(doc.get("status") or VideoStatus.ACTIVE),
        visibility=Visibility(doc.get("visibility") or Visibility.PUBLIC),
        views_count=doc.get("views_count", 0),
        likes_count=doc.get("likes_count", 0),
        shares_count=doc.get("shares_count", 0),
        created_at=ensure_utc(doc.get("created_at")),
        updated_at=ensure_utc(doc.get("updated_at")),
        stats_updated_at=ensure_utc(doc.get("stats_updated_at")),
        stats_updated_by=doc.get("stats_updated_by"),
    )


def to_visit(doc: dict[str, Any]) -> VisitResult:
    return VisitResult(
        id=doc["id"],
        site_id=doc.get("site_id", ""),
        ip_address=doc.get("ip_address", ""),
        country_code=doc.get("country_code"),
        country_name=doc.get("country_name"),
        language=doc.get("language"),
        page_url=doc.get("page_url"),
        user_agent=doc.get("user_agent"),
        created_at=ensure_utc(doc.get("created_at")),
    )
