"""Application DTOs (records returned to callers and write inputs)."""

from catalog.application.dtos.analytics import (
    AnalyticsReport,
    CountryCount,
    DailyCount,
    LanguageCount,
)
from catalog.application.dtos.integrity import IntegrityReport
from catalog.application.dtos.site import SiteCreate, SiteResult
from catalog.application.dtos.user import UserCreate, UserResult, UserUpdate
from catalog.application.dtos.video import VideoCreate, VideoResult, VideoStats, VideoUpdate
from catalog.application.dtos.visit import VisitCount, VisitCreate, VisitResult

__all__ = [
    "AnalyticsReport",
    "CountryCount",
    "DailyCount",
    "IntegrityReport",
    "LanguageCount",
    "SiteCreate",
    "SiteResult",
    "UserCreate",
    "UserResult",
    "UserUpdate",
    "VideoCreate",
    "VideoResult",
    "VideoStats",
    "VideoUpdate",
    "VisitCount",
    "VisitCreate",
    "VisitResult",
]
