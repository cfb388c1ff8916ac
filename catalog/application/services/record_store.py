"""Record store adapter: executes query shapes against the document store.

Every call round-trips to the store; nothing is cached between calls.
Template strings are classified into shapes first; a template matching no
shape raises UnclassifiedQueryException instead of returning nothing.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import aclosing
from typing import Any

from catalog.application.dtos.analytics import CountryCount, DailyCount, LanguageCount
from catalog.application.dtos.site import SiteResult
from catalog.application.dtos.user import UserResult
from catalog.application.dtos.video import VideoResult
from catalog.application.dtos.visit import VisitCount
from catalog.application.interfaces.store import DESCENDING, DocumentStore
from catalog.application.queries.shapes import (
    PublicVideosBySite,
    QueryShape,
    SiteById,
    UserByEmail,
    UserById,
    VideoById,
    VideosBySite,
    VideosBySiteAndOwner,
    VisitsAggregateByCountry,
    VisitsAggregateByDate,
    VisitsAggregateByLanguage,
    VisitsTotalCount,
    classify,
)
from catalog.application.services.aggregation_engine import AggregationEngine
from catalog.application.services.record_mapping import to_site, to_user, to_video
from catalog.domain.enums import UserStatus, VideoStatus, Visibility
from catalog.domain.exceptions import ValidationException
from catalog.infrastructure.firebase.collections import (
    COLLECTION_SITES,
    COLLECTION_USERS,
    COLLECTION_VIDEOS,
)
from catalog.shared.telemetry import add_span_attributes, traced

logger = logging.getLogger(__name__)

Record = (
    UserResult | SiteResult | VideoResult | CountryCount | LanguageCount | DailyCount | VisitCount
)

_NEWEST_FIRST = [("created_at", DESCENDING)]


class RecordStoreAdapter:
    """lookup_one / lookup_many over the closed set of query shapes."""

    def __init__(
        self,
        store: DocumentStore,
        aggregations: AggregationEngine,
    ) -> None:
        self._store = store
        self._aggregations = aggregations

    @staticmethod
    def resolve(query: QueryShape | str, params: Sequence[Any] = ()) -> QueryShape:
        """Return query as a shape, classifying template text with its params."""
        if isinstance(query, str):
            return classify(query, params)
        if params:
            raise ValidationException("Parameters are bound on the shape; pass params only with a template")
        return query

    @traced()
    async def lookup_one(
        self, query: QueryShape | str, params: Sequence[Any] = ()
    ) -> Record | None:
        """Return the single record for a point lookup, or None when nothing matches.

        For list and aggregate shapes, returns the first record of lookup_many.
        """
        shape = self.resolve(query, params)
        logger.debug("lookup_one %r", shape)
        add_span_attributes(query_shape=type(shape).__name__)
        match shape:
            case UserByEmail(email=email):
                async with aclosing(
                    self._store.find(
                        COLLECTION_USERS,
                        {"email": email, "status": UserStatus.ACTIVE.value},
                        limit=1,
                    )
                ) as docs:
                    async for doc in docs:
                        return to_user(doc)
                return None
            case UserById(user_id=user_id):
                doc = await self._store.get(COLLECTION_USERS, user_id)
                return to_user(doc) if doc else None
            case SiteById(site_id=site_id):
                doc = await self._store.get(COLLECTION_SITES, site_id)
                return to_site(doc) if doc else None
            case VideoById(video_id=video_id):
                doc = await self._store.get(COLLECTION_VIDEOS, video_id)
                return to_video(doc) if doc else None
            case VisitsTotalCount(site_id=site_id, start=start, end=end):
                return VisitCount(count=await self._aggregations.total_count(site_id, start, end))
            case _:
                async with aclosing(self.lookup_many(shape)) as records:
                    async for record in records:
                        return record
                return None

    async def lookup_many(
        self, query: QueryShape | str, params: Sequence[Any] = ()
    ) -> AsyncIterator[Record]:
        """Yield records in the shape's implicit order. Single pass; not restartable."""
        shape = self.resolve(query, params)
        logger.debug("lookup_many %r", shape)
        match shape:
            case VideosBySiteAndOwner(site_id=site_id, owner_id=owner_id):
                async for doc in self._store.find(
                    COLLECTION_VIDEOS,
                    {"site_id": site_id, "owner_id": owner_id},
                    sort=_NEWEST_FIRST,
                ):
                    yield to_video(doc)
            case PublicVideosBySite(site_id=site_id):
                async for doc in self._store.find(
                    COLLECTION_VIDEOS,
                    {
                        "site_id": site_id,
                        "visibility": Visibility.PUBLIC.value,
                        "status": VideoStatus.ACTIVE.value,
                    },
                    sort=_NEWEST_FIRST,
                    limit=PublicVideosBySite.limit,
                ):
                    yield to_video(doc)
            case VideosBySite(site_id=site_id):
                async for doc in self._store.find(
                    COLLECTION_VIDEOS, {"site_id": site_id}, sort=_NEWEST_FIRST
                ):
                    yield to_video(doc)
            case VisitsAggregateByCountry(site_id=site_id, start=start, end=end):
                for row in await self._aggregations.by_country(site_id, start, end):
                    yield row
            case VisitsAggregateByLanguage(site_id=site_id, start=start, end=end):
                for row in await self._aggregations.by_language(site_id, start, end):
                    yield row
            case VisitsAggregateByDate(site_id=site_id, start=start, end=end):
                for row in await self._aggregations.by_date(site_id, start, end):
                    yield row
            case _:
                record = await self.lookup_one(shape)
                if record is not None:
                    yield record
