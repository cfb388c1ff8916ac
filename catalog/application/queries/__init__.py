"""Query shapes: typed query intents and the template classifier."""

from catalog.application.queries.shapes import (
    SHAPES,
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
    shape_for_template,
)

__all__ = [
    "SHAPES",
    "PublicVideosBySite",
    "QueryShape",
    "SiteById",
    "UserByEmail",
    "UserById",
    "VideoById",
    "VideosBySite",
    "VideosBySiteAndOwner",
    "VisitsAggregateByCountry",
    "VisitsAggregateByDate",
    "VisitsAggregateByLanguage",
    "VisitsTotalCount",
    "classify",
    "shape_for_template",
]
