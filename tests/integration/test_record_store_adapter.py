"""Integration tests for RecordStoreAdapter over the in-memory store."""

import pytest

from catalog.application.dtos.user import UserUpdate
from catalog.application.dtos.video import VideoCreate, VideoUpdate
from catalog.application.dtos.visit import VisitCount
from catalog.application.queries.shapes import (
    PublicVideosBySite,
    SiteById,
    UserByEmail,
    UserById,
    VideoById,
    VideosBySite,
    VideosBySiteAndOwner,
    VisitsTotalCount,
)
from catalog.domain.enums import Platform, UserRole, UserStatus
from catalog.domain.exceptions import UnclassifiedQueryException, ValidationException

PUBLIC_LISTING = (
    "SELECT * FROM videos WHERE site_id = ? AND visibility = 'public' AND status = 'active' "
    "ORDER BY created_at DESC LIMIT 100"
)


async def _add_videos(data_layer, clock, owner: str, specs: list[dict]) -> list[str]:
    """Insert videos one second apart; returns ids in insertion order."""
    ids = []
    for i, extra in enumerate(specs):
        video = await data_layer.mutations.insert_video(
            VideoCreate(
                site_id="s1",
                owner_id=owner,
                platform=Platform.YOUTUBE,
                title=f"Video {i}",
                id=extra.pop("id", f"v{i}"),
                **extra,
            )
        )
        ids.append(video.id)
        clock.advance(seconds=1)
    return ids


async def test_user_by_email_returns_only_active_users(data_layer, seeded) -> None:
    """A suspended user does not resolve by email."""
    user = await data_layer.records.lookup_one(UserByEmail("creator@example.com"))
    assert user.id == "creator-1"

    await data_layer.mutations.update_user("creator-1", UserUpdate(status=UserStatus.SUSPENDED))
    assert await data_layer.records.lookup_one(UserByEmail("creator@example.com")) is None
    assert await data_layer.records.lookup_one(UserByEmail("nobody@example.com")) is None


async def test_template_and_shape_resolve_the_same_record(data_layer, seeded) -> None:
    by_template = await data_layer.records.lookup_one(
        "SELECT * FROM users WHERE email = ? AND status = 'active'", ["admin@example.com"]
    )
    by_shape = await data_layer.records.lookup_one(UserByEmail("admin@example.com"))
    assert by_template == by_shape
    assert by_shape.role == UserRole.ADMIN


async def test_point_lookups(data_layer, seeded) -> None:
    site = await data_layer.records.lookup_one(SiteById("s1"))
    assert site.name == "Site One"
    assert (await data_layer.records.lookup_one(UserById("admin-1"))).email == "admin@example.com"
    assert await data_layer.records.lookup_one(VideoById("missing")) is None
    assert await data_layer.records.lookup_one(SiteById("other")) is None


async def test_shape_with_params_is_rejected(data_layer, seeded) -> None:
    with pytest.raises(ValidationException):
        await data_layer.records.lookup_one(SiteById("s1"), ["s1"])


async def test_unclassified_template_raises(data_layer, seeded) -> None:
    """An unknown template fails loudly rather than yielding nothing."""
    with pytest.raises(UnclassifiedQueryException):
        await data_layer.records.lookup_one("SELECT * FROM users WHERE name = ?", ["Admin"])
    with pytest.raises(UnclassifiedQueryException):
        async for _ in data_layer.records.lookup_many("DELETE FROM videos WHERE id = ?", ["v1"]):
            pass


async def test_videos_by_site_newest_first(data_layer, clock, seeded) -> None:
    ids = await _add_videos(data_layer, clock, "creator-1", [{}, {}, {}])
    listed = [v.id async for v in data_layer.records.lookup_many(VideosBySite("s1"))]
    assert listed == list(reversed(ids))


async def test_videos_by_site_and_owner(data_layer, clock, seeded) -> None:
    await _add_videos(data_layer, clock, "creator-1", [{"id": "mine"}])
    await _add_videos(data_layer, clock, "admin-1", [{"id": "theirs"}])
    listed = [
        v.id
        async for v in data_layer.records.lookup_many(VideosBySiteAndOwner("s1", "creator-1"))
    ]
    assert listed == ["mine"]


async def test_public_listing_filters_visibility_and_status(data_layer, clock, seeded) -> None:
    await _add_videos(
        data_layer,
        clock,
        "creator-1",
        [
            {"id": "public"},
            {"id": "private", "visibility": "private"},
            {"id": "archived", "status": "archived"},
        ],
    )
    listed = [v.id async for v in data_layer.records.lookup_many(PUBLIC_LISTING, ["s1"])]
    assert listed == ["public"]


async def test_public_listing_is_capped_at_100_newest_first(data_layer, clock, seeded) -> None:
    """150 eligible videos: only the newest 100 are returned, newest first."""
    ids = await _add_videos(data_layer, clock, "creator-1", [{} for _ in range(150)])
    listed = [v.id async for v in data_layer.records.lookup_many(PublicVideosBySite("s1"))]
    assert PublicVideosBySite.limit == 100
    assert listed == ids[:49:-1]
    assert listed[0] == ids[149] and listed[-1] == ids[50]


async def test_total_count_lookup_one(data_layer, seeded) -> None:
    result = await data_layer.records.lookup_one(VisitsTotalCount("s1", "2024-01-01", "2024-01-01"))
    assert result == VisitCount(count=0)


async def test_every_call_round_trips_to_the_store(data_layer, seeded) -> None:
    """No caching: a change between two lookups is visible to the second one."""
    await data_layer.mutations.insert_video(
        VideoCreate(site_id="s1", owner_id="creator-1", platform="youtube", title="Old", id="v1")
    )
    first = await data_layer.records.lookup_one(VideoById("v1"))
    await data_layer.mutations.update_video("v1", VideoUpdate(title="New"))
    second = await data_layer.records.lookup_one(VideoById("v1"))
    assert (first.title, second.title) == ("Old", "New")
