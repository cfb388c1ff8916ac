"""Pytest configuration and fixtures for the catalog data layer.

Integration tests run the full data layer over InMemoryDocumentStore with a
controllable clock, so server-stamped timestamps are deterministic.
"""

from datetime import UTC, datetime, timedelta

import pytest

from catalog.application.data_layer import CatalogDataLayer
from catalog.application.dtos.site import SiteCreate
from catalog.application.dtos.user import UserCreate
from catalog.domain.enums import UserRole
from catalog.infrastructure.store.memory_store import InMemoryDocumentStore


class FakeClock:
    """Callable clock for the in-memory store; advance() moves it forward."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, **delta: float) -> None:
        self.now += timedelta(**delta)


@pytest.fixture
def clock() -> FakeClock:
    """Store clock starting at 2024-01-01 12:00 UTC."""
    return FakeClock(datetime(2024, 1, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
async def store(clock: FakeClock) -> InMemoryDocumentStore:
    """Opened in-memory store; closed after the test."""
    s = InMemoryDocumentStore(clock=clock)
    await s.open()
    yield s
    await s.close()


@pytest.fixture
def data_layer(store: InMemoryDocumentStore) -> CatalogDataLayer:
    """Data layer over the opened in-memory store (UTC calendar)."""
    return CatalogDataLayer(store)


@pytest.fixture
async def seeded(data_layer: CatalogDataLayer) -> dict[str, str]:
    """Site 's1', a global admin and a creator on 's1'. Returns their ids."""
    await data_layer.mutations.insert_site(SiteCreate(id="s1", name="Site One"))
    admin = await data_layer.mutations.insert_user(
        UserCreate(name="Admin", role=UserRole.ADMIN, email="admin@example.com", id="admin-1")
    )
    creator = await data_layer.mutations.insert_user(
        UserCreate(
            name="Creator",
            role=UserRole.CREATOR,
            site_id="s1",
            email="creator@example.com",
            id="creator-1",
        )
    )
    return {"site": "s1", "admin": admin.id, "creator": creator.id}
