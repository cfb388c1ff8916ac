"""DTOs for videos and their engagement counters."""

from dataclasses import dataclass
from datetime import datetime

from catalog.domain.enums import Platform, VideoStatus, Visibility


@dataclass(frozen=True)
class VideoStats:
    """The three engagement counters; all must be non-negative integers."""

    views_count: int
    likes_count: int
    shares_count: int


@dataclass(frozen=True)
class VideoCreate:
    """Input for insert_video and bulk_insert_videos.

    Omitted (None) language, status, visibility and counters receive the
    documented defaults. Metadata fields arrive pre-resolved from the caller.
    """

    site_id: str
    owner_id: str
    platform: Platform | str
    video_id: str | None = None
    source_url: str | None = None
    title: str | None = None
    thumbnail_url: str | None = None
    embed_url: str | None = None
    language: str | None = None
    status: VideoStatus | str | None = None
    visibility: Visibility | str | None = None
    views_count: int | None = None
    likes_count: int | None = None
    shares_count: int | None = None
    id: str | None = None


@dataclass(frozen=True)
class VideoUpdate:
    """Partial metadata update; None leaves a field unchanged."""

    title: str | None = None
    thumbnail_url: str | None = None
    embed_url: str | None = None
    source_url: str | None = None
    video_id: str | None = None
    language: str | None = None
    platform: Platform | str | None = None
    status: VideoStatus | str | None = None
    visibility: Visibility | str | None = None
    site_id: str | None = None
    owner_id: str | None = None


@dataclass(frozen=True)
class VideoResult:
    """Video read-model."""

    id: str
    site_id: str
    owner_id: str
    platform: Platform
    video_id: str | None
    source_url: str | None
    title: str | None
    thumbnail_url: str | None
    embed_url: str | None
    language: str
    status: VideoStatus
    visibility: Visibility
    views_count: int
    likes_count: int
    shares_count: int
    created_at: datetime | None
    updated_at: datetime | None
    stats_updated_at: datetime | None = None
    stats_updated_by: str | None = None

    @property
    def stats(self) -> VideoStats:
        return VideoStats(self.views_count, self.likes_count, self.shares_count)
