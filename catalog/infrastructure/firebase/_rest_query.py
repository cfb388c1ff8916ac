"""Translate store filters and sort specs into Firestore REST structuredQuery.

Translatable: equality, $eq/$ne (null-aware), $gt/$gte/$lt/$lte, $in/$nin,
nested $and/$or. Anything else ($exists, filters on the document key)
raises UntranslatableFilter and the caller falls back to evaluating the
filter locally over a collection scan.
"""

from typing import Any

from catalog.application.interfaces.store import DESCENDING, Filter, SortSpec
from catalog.infrastructure.firebase._rest_encoding import encode_value
from catalog.infrastructure.store.filters import is_operator_spec

_OP_MAP: dict[str, str] = {
    "$eq": "EQUAL",
    "$ne": "NOT_EQUAL",
    "$lt": "LESS_THAN",
    "$lte": "LESS_THAN_OR_EQUAL",
    "$gt": "GREATER_THAN",
    "$gte": "GREATER_THAN_OR_EQUAL",
    "$in": "IN",
    "$nin": "NOT_IN",
}


class UntranslatableFilter(ValueError):
    """Filter uses an operator Firestore cannot evaluate server-side."""


def _field_filter(field: str, op: str, value: Any) -> dict:
    if value is None and op in ("$eq", "$ne"):
        return {
            "unaryFilter": {
                "op": "IS_NULL" if op == "$eq" else "IS_NOT_NULL",
                "field": {"fieldPath": field},
            }
        }
    if op not in _OP_MAP:
        raise UntranslatableFilter(f"Operator {op} on {field!r} has no Firestore equivalent")
    if op in ("$in", "$nin"):
        value = list(value)
    return {
        "fieldFilter": {
            "field": {"fieldPath": field},
            "op": _OP_MAP[op],
            "value": encode_value(value),
        }
    }


def _combine(op: str, filters: list[dict]) -> dict:
    if len(filters) == 1:
        return filters[0]
    return {"compositeFilter": {"op": op, "filters": filters}}


def translate_filter(filter: Filter) -> dict | None:
    """Return a Firestore 'where' clause for filter, or None when it is empty."""
    clauses: list[dict] = []
    for key, value in filter.items():
        if key in ("$and", "$or"):
            subs = [translate_filter(sub) for sub in value]
            subs = [s for s in subs if s is not None]
            if len(subs) != len(value):
                raise UntranslatableFilter(f"Empty sub-filter inside {key}")
            clauses.append(_combine("AND" if key == "$and" else "OR", subs))
        elif key == "id":
            raise UntranslatableFilter("Filtering on the document key is evaluated locally")
        elif is_operator_spec(value):
            clauses.extend(_field_filter(key, op, operand) for op, operand in value.items())
        else:
            clauses.append(_field_filter(key, "$eq", value))
    if not clauses:
        return None
    return _combine("AND", clauses)


def translate_sort(sort: SortSpec | None) -> list[dict]:
    return [
        {
            "field": {"fieldPath": field},
            "direction": "DESCENDING" if direction == DESCENDING else "ASCENDING",
        }
        for field, direction in (sort or [])
    ]


def structured_query(
    collection_id: str,
    filter: Filter,
    sort: SortSpec | None = None,
    limit: int | None = None,
) -> dict[str, Any]:
    """Build a runQuery structuredQuery. Raises UntranslatableFilter."""
    structured: dict[str, Any] = {"from": [{"collectionId": collection_id}]}
    where = translate_filter(filter)
    if where is not None:
        structured["where"] = where
    order_by = translate_sort(sort)
    if order_by:
        structured["orderBy"] = order_by
    if limit is not None:
        structured["limit"] = limit
    return structured
