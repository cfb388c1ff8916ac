"""Closed set of query shapes the record store adapter can execute.

Each shape is a frozen dataclass whose fields are its typed parameters, in
placeholder order. A shape also carries its canonical relational template and
the clause fragments that pick it out. A template classifies only when the
whole statement matches, up to layout and, for row shapes, the column list.
Callers should construct shapes directly; classify() exists for callers that
still hold template text.

    >>> classify("SELECT * FROM videos WHERE site_id = ? ORDER BY created_at DESC", ["gods"])
    VideosBySite(site_id='gods')
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, fields
from datetime import date
from typing import Any, ClassVar

from catalog.domain.exceptions import UnclassifiedQueryException, ValidationException
from catalog.shared.utils.datetime import parse_calendar_date

_WINDOW = "site_id = ? and date(created_at) >= ? and date(created_at) <= ?"


@dataclass(frozen=True)
class _Shape:
    template: ClassVar[str]
    table: ClassVar[str]
    fragments: ClassVar[tuple[str, ...]]
    aliases: ClassVar[tuple[str, ...]] = ()

    def __post_init__(self) -> None:
        for f in fields(self):
            if f.name in ("start", "end"):
                continue
            value = getattr(self, f.name)
            if not isinstance(value, str) or not value.strip():
                raise ValidationException(f"{f.name} must be a non-empty string", field=f.name)

    @property
    def params(self) -> tuple[Any, ...]:
        """Bound parameter values in placeholder order."""
        return tuple(getattr(self, f.name) for f in fields(self))


@dataclass(frozen=True)
class _VisitWindow(_Shape):
    """Visits of one site between two calendar days, both inclusive."""

    site_id: str
    start: date
    end: date

    def __post_init__(self) -> None:
        super().__post_init__()
        for name in ("start", "end"):
            try:
                object.__setattr__(self, name, parse_calendar_date(getattr(self, name)))
            except (TypeError, ValueError) as e:
                raise ValidationException(f"{name} must be a date or 'YYYY-MM-DD'", field=name) from e
        if self.start > self.end:
            raise ValidationException("start must not be after end", field="start")


@dataclass(frozen=True)
class UserByEmail(_Shape):
    """Active user with this email (suspended users do not resolve)."""

    template: ClassVar[str] = "SELECT * FROM users WHERE email = ? AND status = 'active'"
    table: ClassVar[str] = "users"
    fragments: ClassVar[tuple[str, ...]] = ("where email = ?",)
    aliases: ClassVar[tuple[str, ...]] = ("SELECT * FROM users WHERE email = ?",)

    email: str


@dataclass(frozen=True)
class UserById(_Shape):
    template: ClassVar[str] = "SELECT * FROM users WHERE id = ?"
    table: ClassVar[str] = "users"
    fragments: ClassVar[tuple[str, ...]] = ("where id = ?",)

    user_id: str


@dataclass(frozen=True)
class SiteById(_Shape):
    template: ClassVar[str] = "SELECT * FROM sites WHERE id = ?"
    table: ClassVar[str] = "sites"
    fragments: ClassVar[tuple[str, ...]] = ("where id = ?",)

    site_id: str


@dataclass(frozen=True)
class VideoById(_Shape):
    template: ClassVar[str] = "SELECT * FROM videos WHERE id = ?"
    table: ClassVar[str] = "videos"
    fragments: ClassVar[tuple[str, ...]] = ("where id = ?",)

    video_id: str


@dataclass(frozen=True)
class VideosBySiteAndOwner(_Shape):
    template: ClassVar[str] = (
        "SELECT * FROM videos WHERE site_id = ? AND owner_id = ? ORDER BY created_at DESC"
    )
    table: ClassVar[str] = "videos"
    fragments: ClassVar[tuple[str, ...]] = ("owner_id = ?",)

    site_id: str
    owner_id: str


@dataclass(frozen=True)
class PublicVideosBySite(_Shape):
    """Public listing: visible and active videos only, newest first, capped."""

    template: ClassVar[str] = (
        "SELECT * FROM videos WHERE site_id = ? AND visibility = 'public' AND status = 'active' "
        "ORDER BY created_at DESC LIMIT 100"
    )
    table: ClassVar[str] = "videos"
    fragments: ClassVar[tuple[str, ...]] = ("visibility = 'public'",)
    limit: ClassVar[int] = 100

    site_id: str


@dataclass(frozen=True)
class VideosBySite(_Shape):
    template: ClassVar[str] = "SELECT * FROM videos WHERE site_id = ? ORDER BY created_at DESC"
    table: ClassVar[str] = "videos"
    fragments: ClassVar[tuple[str, ...]] = ("site_id = ?",)

    site_id: str


@dataclass(frozen=True)
class VisitsAggregateByCountry(_VisitWindow):
    template: ClassVar[str] = (
        "SELECT country_code, country_name, COUNT(*) as count FROM visits "
        "WHERE site_id = ? AND date(created_at) >= ? AND date(created_at) <= ? "
        "GROUP BY country_code, country_name ORDER BY count DESC"
    )
    table: ClassVar[str] = "visits"
    fragments: ClassVar[tuple[str, ...]] = (_WINDOW, "group by country_code")


@dataclass(frozen=True)
class VisitsAggregateByLanguage(_VisitWindow):
    template: ClassVar[str] = (
        "SELECT language, COUNT(*) as count FROM visits "
        "WHERE site_id = ? AND date(created_at) >= ? AND date(created_at) <= ? "
        "GROUP BY language ORDER BY count DESC"
    )
    table: ClassVar[str] = "visits"
    fragments: ClassVar[tuple[str, ...]] = (_WINDOW, "group by language")


@dataclass(frozen=True)
class VisitsAggregateByDate(_VisitWindow):
    template: ClassVar[str] = (
        "SELECT date(created_at) as date, COUNT(*) as count FROM visits "
        "WHERE site_id = ? AND date(created_at) >= ? AND date(created_at) <= ? "
        "GROUP BY date(created_at) ORDER BY date DESC LIMIT 90"
    )
    table: ClassVar[str] = "visits"
    fragments: ClassVar[tuple[str, ...]] = (_WINDOW, "group by date(created_at)")
    limit: ClassVar[int] = 90


@dataclass(frozen=True)
class VisitsTotalCount(_VisitWindow):
    template: ClassVar[str] = (
        "SELECT COUNT(*) as count FROM visits "
        "WHERE site_id = ? AND date(created_at) >= ? AND date(created_at) <= ?"
    )
    table: ClassVar[str] = "visits"
    fragments: ClassVar[tuple[str, ...]] = (_WINDOW, "count(*)")


QueryShape = (
    UserByEmail
    | UserById
    | SiteById
    | VideoById
    | VideosBySiteAndOwner
    | PublicVideosBySite
    | VideosBySite
    | VisitsAggregateByCountry
    | VisitsAggregateByLanguage
    | VisitsAggregateByDate
    | VisitsTotalCount
)

# Classification order: within a table, more specific fragments come first.
SHAPES: tuple[type[_Shape], ...] = (
    UserByEmail,
    UserById,
    SiteById,
    VideoById,
    VideosBySiteAndOwner,
    PublicVideosBySite,
    VideosBySite,
    VisitsAggregateByCountry,
    VisitsAggregateByLanguage,
    VisitsAggregateByDate,
    VisitsTotalCount,
)

_FROM_TABLE = re.compile(r"\bfrom ([a-z_]+)\b")
_SELECT_LIST = re.compile(r"^select (.+?) (from .*)$")
_AGGREGATE_CALL = re.compile(r"\b(?:count|sum|avg|min|max)\s*\(")


def normalize_template(template: str) -> str:
    """Lowercase and collapse whitespace so wording, not layout, decides the shape."""
    return " ".join(template.lower().split()).rstrip(" ;")


def _accepts(shape: type[_Shape], text: str) -> bool:
    """True if text is the shape's template or an alias, up to the column list.

    Row shapes selecting ``*`` accept any plain column list; aggregate shapes
    require their exact columns.
    """
    found = _SELECT_LIST.match(text)
    if found is None:
        return False
    columns, body = found.groups()
    for accepted in (shape.template, *shape.aliases):
        want_columns, want_body = _SELECT_LIST.match(normalize_template(accepted)).groups()
        if body != want_body:
            continue
        if columns == want_columns:
            return True
        if want_columns == "*" and not _AGGREGATE_CALL.search(columns):
            return True
    return False


def shape_for_template(template: str) -> type[_Shape]:
    """Return the shape class a template represents.

    Only SELECT statements are classified; writes go through the mutation pipeline.
    Fragments pick the candidate shape, then the whole statement must match its
    template so extra filters, limits or ordering never run silently dropped.

    Raises:
        UnclassifiedQueryException: No shape matches.
    """
    text = normalize_template(template)
    table = _FROM_TABLE.search(text) if text.startswith("select ") else None
    if table is not None:
        for shape in SHAPES:
            if shape.table == table.group(1) and all(f in text for f in shape.fragments):
                if _accepts(shape, text):
                    return shape
    raise UnclassifiedQueryException(template)


def classify(template: str, params: Sequence[Any] = ()) -> QueryShape:
    """Classify a template and bind params positionally to the shape's fields.

    Raises:
        UnclassifiedQueryException: No shape matches the template.
        ValidationException: Placeholder, parameter and field counts disagree,
            or a parameter is invalid for its field.
    """
    shape = shape_for_template(template)
    names = [f.name for f in fields(shape)]
    placeholders = template.count("?")
    if placeholders != len(names):
        raise ValidationException(
            f"{shape.__name__} takes {len(names)} placeholder(s), template has {placeholders}"
        )
    if len(params) != len(names):
        raise ValidationException(
            f"{shape.__name__} takes {len(names)} parameter(s) ({', '.join(names)}), got {len(params)}"
        )
    return shape(*params)
