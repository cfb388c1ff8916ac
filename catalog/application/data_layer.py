"""Data layer facade: adapter, aggregation engine and mutation pipeline over one store.

The store is an explicit value with an open/close lifecycle; there is no
process-wide handle. Typical use:

    async with CatalogDataLayer.from_settings() as data:
        video = await data.records.lookup_one(VideoById("v1"))
        await data.mutations.update_video_stats("v1", VideoStats(10, 2, 0), "admin-1")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from catalog.application.interfaces.store import DocumentStore
from catalog.application.services.aggregation_engine import AggregationEngine
from catalog.application.services.analytics_service import AnalyticsService
from catalog.application.services.integrity_check import IntegrityCheck
from catalog.application.services.mutation_pipeline import MutationPipeline
from catalog.application.services.record_store import RecordStoreAdapter

if TYPE_CHECKING:
    from catalog.core.config import Settings

logger = logging.getLogger(__name__)


class CatalogDataLayer:
    """Composes the data-layer services around one document store."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        timezone: str = "UTC",
    ) -> None:
        self.store = store
        self.aggregations = AggregationEngine(store, timezone=timezone)
        self.records = RecordStoreAdapter(store, self.aggregations)
        self.mutations = MutationPipeline(store, self.records)
        self.analytics = AnalyticsService(self.aggregations)
        self.integrity = IntegrityCheck(store)

    @classmethod
    def from_settings(cls, settings: "Settings | None" = None) -> CatalogDataLayer:
        """Build the data layer over the configured backend (not yet opened)."""
        from catalog.core.config import get_settings
        from catalog.infrastructure.store.factory import StoreFactory

        s = settings or get_settings()
        return cls(StoreFactory.create_store(s), timezone=s.store_timezone)

    async def open(self) -> None:
        await self.store.open()
        logger.info("Data layer opened (%s)", type(self.store).__name__)

    async def close(self) -> None:
        await self.store.close()
        logger.info("Data layer closed")

    async def __aenter__(self) -> CatalogDataLayer:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
