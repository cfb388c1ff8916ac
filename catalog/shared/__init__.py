"""Shared utilities: telemetry and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from catalog.shared.utils import (
    day_bounds,
    ensure_utc,
    generate_cuid,
    parse_calendar_date,
    utc_now,
)

__all__ = [
    "generate_cuid",
    "utc_now",
    "ensure_utc",
    "parse_calendar_date",
    "day_bounds",
]
