"""Domain enumerations for the video catalog.

Enums represent the closed value sets stored on users, videos and used
for analytics periods.
"""

from enum import Enum


class _ValuesMixin:
    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings (e.g. for validation messages)."""
        return [member.value for member in cls]  # type: ignore[attr-defined]


class UserRole(_ValuesMixin, str, Enum):
    """User role. Admins are usually not site-scoped (site_id is None)."""

    ADMIN = "admin"
    CREATOR = "creator"


class UserStatus(_ValuesMixin, str, Enum):
    """User account status; only active users resolve by email."""

    ACTIVE = "active"
    SUSPENDED = "suspended"


class Platform(_ValuesMixin, str, Enum):
    """Hosting platform of a catalogued video."""

    YOUTUBE = "youtube"
    FACEBOOK = "facebook"
    OTHER = "other"


class VideoStatus(_ValuesMixin, str, Enum):
    """Video lifecycle status."""

    ACTIVE = "active"
    ARCHIVED = "archived"


class Visibility(_ValuesMixin, str, Enum):
    """Whether a video may appear in public listings."""

    PUBLIC = "public"
    PRIVATE = "private"


class AnalyticsPeriod(_ValuesMixin, str, Enum):
    """Named analytics windows, each ending today."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    HALF_YEARLY = "half-yearly"
    YEARLY = "yearly"

    @property
    def days(self) -> int:
        """Number of days the window reaches back from today."""
        return _PERIOD_DAYS[self]


_PERIOD_DAYS = {
    AnalyticsPeriod.DAILY: 1,
    AnalyticsPeriod.WEEKLY: 7,
    AnalyticsPeriod.MONTHLY: 30,
    AnalyticsPeriod.QUARTERLY: 90,
    AnalyticsPeriod.HALF_YEARLY: 180,
    AnalyticsPeriod.YEARLY: 365,
}
