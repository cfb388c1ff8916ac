"""Filter-document matching and sort-spec ordering shared by store backends.

Supported filter operators: exact match, $eq, $ne, $gt, $gte, $lt, $lte,
$in, $nin, $exists, plus top-level $and / $or. Dotted field paths address
nested maps. A missing field compares like None.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from catalog.application.interfaces.store import DESCENDING, Filter, SortSpec
from catalog.shared.utils.datetime import ensure_utc

FIELD_OPERATORS = frozenset(
    {"$eq", "$ne", "$gt", "$gte", "$lt", "$lte", "$in", "$nin", "$exists"}
)
LOGICAL_OPERATORS = frozenset({"$and", "$or"})

_MISSING = object()


def get_field(doc: dict[str, Any], path: str, default: Any = None) -> Any:
    """Return the value at a dotted path, or default when any segment is absent."""
    current: Any = doc
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


def is_operator_spec(value: Any) -> bool:
    """True when value is an operator dict like {"$gte": 1}."""
    return isinstance(value, dict) and bool(value) and all(
        isinstance(k, str) and k.startswith("$") for k in value
    )


def validate_filter(filter: Filter) -> None:
    """Raise ValueError for operators the store language does not define."""
    for key, value in filter.items():
        if key in LOGICAL_OPERATORS:
            if not isinstance(value, list) or not value:
                raise ValueError(f"{key} expects a non-empty list of filters")
            for sub in value:
                validate_filter(sub)
        elif key.startswith("$"):
            raise ValueError(f"Unsupported top-level operator: {key}")
        elif is_operator_spec(value):
            unknown = set(value) - FIELD_OPERATORS
            if unknown:
                raise ValueError(f"Unsupported operator(s) on {key!r}: {sorted(unknown)}")
            for op in ("$in", "$nin"):
                if op in value and not isinstance(value[op], (list, tuple, set, frozenset)):
                    raise ValueError(f"{op} on {key!r} expects a list")


def _compare(actual: Any, op: str, operand: Any) -> bool:
    if op == "$eq":
        return actual == operand
    if op == "$ne":
        return actual != operand
    if op == "$in":
        return actual in operand
    if op == "$nin":
        return actual not in operand
    if op == "$exists":
        return (actual is not _MISSING) == bool(operand)
    # Ordering operators never match null/missing values.
    if actual is None or actual is _MISSING or operand is None:
        return False
    # Naive datetimes are UTC.
    if isinstance(actual, datetime):
        actual = ensure_utc(actual)
    if isinstance(operand, datetime):
        operand = ensure_utc(operand)
    try:
        if op == "$gt":
            return actual > operand
        if op == "$gte":
            return actual >= operand
        if op == "$lt":
            return actual < operand
        if op == "$lte":
            return actual <= operand
    except TypeError:
        return False
    raise ValueError(f"Unsupported operator: {op}")


def matches(doc: dict[str, Any], filter: Filter) -> bool:
    """Return True if doc satisfies every clause of filter."""
    for key, value in filter.items():
        if key == "$and":
            if not all(matches(doc, sub) for sub in value):
                return False
        elif key == "$or":
            if not any(matches(doc, sub) for sub in value):
                return False
        elif is_operator_spec(value):
            actual = get_field(doc, key, _MISSING)
            for op, operand in value.items():
                probe = actual if op == "$exists" else (None if actual is _MISSING else actual)
                if not _compare(probe, op, operand):
                    return False
        elif get_field(doc, key) != value:
            return False
    return True


def _sort_key(value: Any) -> tuple:
    # None sorts before any value ascending (and after every value descending).
    if isinstance(value, datetime):
        value = ensure_utc(value)
    return (0,) if value is None else (1, value)


def sort_documents(docs: Iterable[dict[str, Any]], sort: SortSpec | None) -> list[dict[str, Any]]:
    """Return docs ordered by a multi-key sort spec; stable for equal keys."""
    ordered = list(docs)
    if not sort:
        return ordered
    for field, direction in reversed(list(sort)):
        ordered.sort(
            key=lambda d, f=field: _sort_key(get_field(d, f)),
            reverse=direction == DESCENDING,
        )
    return ordered
