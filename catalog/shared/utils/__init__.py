"""Shared utilities: datetime and generators."""

from catalog.shared.utils.datetime import (
    day_bounds,
    ensure_utc,
    parse_calendar_date,
    utc_now,
)
from catalog.shared.utils.generators import generate_cuid

__all__ = [
    "generate_cuid",
    "utc_now",
    "ensure_utc",
    "parse_calendar_date",
    "day_bounds",
]
