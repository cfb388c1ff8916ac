"""Aggregation pipeline evaluation over already-fetched documents.

Supports $match, $sort, $skip, $limit, $group, $project and $count.
$group accumulators: $sum, $first, $last. Expressions: "$field.path",
{"$dateToString": {"format", "date", "timezone"}} and literals.

Backends that can filter server-side use leading_query() to push the
initial $match/$sort/$limit down and evaluate only the remaining stages here.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo

from catalog.application.interfaces.store import ASCENDING, Filter, Pipeline, SortSpec
from catalog.infrastructure.store.filters import get_field, matches, sort_documents
from catalog.shared.utils.datetime import ensure_utc

STAGES = frozenset({"$match", "$sort", "$skip", "$limit", "$group", "$project", "$count"})
ACCUMULATORS = frozenset({"$sum", "$first", "$last"})


def _stage_name(stage: dict[str, Any]) -> str:
    if len(stage) != 1:
        raise ValueError(f"Pipeline stage must have exactly one key, got {sorted(stage)}")
    name = next(iter(stage))
    if name not in STAGES:
        raise ValueError(f"Unsupported pipeline stage: {name}")
    return name


def evaluate(expr: Any, doc: dict[str, Any]) -> Any:
    """Evaluate a pipeline expression against one document."""
    if isinstance(expr, str) and expr.startswith("$"):
        return get_field(doc, expr[1:])
    if isinstance(expr, dict) and "$dateToString" in expr:
        spec = expr["$dateToString"]
        value = evaluate(spec["date"], doc)
        if value is None:
            return None
        if isinstance(value, datetime):
            value = ensure_utc(value)
            tz = spec.get("timezone")
            if tz:
                value = value.astimezone(ZoneInfo(tz))
        elif not isinstance(value, date):
            raise ValueError(f"$dateToString expects a date, got {type(value).__name__}")
        return value.strftime(spec.get("format", "%Y-%m-%dT%H:%M:%S"))
    if isinstance(expr, dict):
        return {k: evaluate(v, doc) for k, v in expr.items()}
    return expr


def _hashable(value: Any) -> Any:
    if isinstance(value, dict):
        return tuple(sorted((k, _hashable(v)) for k, v in value.items()))
    if isinstance(value, list):
        return tuple(_hashable(v) for v in value)
    return value


def _group(docs: Iterable[dict[str, Any]], spec: dict[str, Any]) -> list[dict[str, Any]]:
    if "_id" not in spec:
        raise ValueError("$group requires an _id expression")
    accumulators: dict[str, tuple[str, Any]] = {}
    for out_field, acc in spec.items():
        if out_field == "_id":
            continue
        if not isinstance(acc, dict) or len(acc) != 1 or next(iter(acc)) not in ACCUMULATORS:
            raise ValueError(f"Unsupported accumulator for {out_field!r}: {acc!r}")
        accumulators[out_field] = next(iter(acc.items()))

    groups: dict[Any, dict[str, Any]] = {}
    for doc in docs:
        key_value = evaluate(spec["_id"], doc)
        key = _hashable(key_value)
        group = groups.get(key)
        first_seen = group is None
        if first_seen:
            group = {"_id": key_value}
            groups[key] = group
        for out_field, (op, operand) in accumulators.items():
            if op == "$sum":
                value = evaluate(operand, doc)
                group[out_field] = group.get(out_field, 0) + (
                    value if isinstance(value, (int, float)) and not isinstance(value, bool) else 0
                )
            elif op == "$first":
                if first_seen:
                    group[out_field] = evaluate(operand, doc)
            else:
                group[out_field] = evaluate(operand, doc)
    return list(groups.values())


def _project(doc: dict[str, Any], spec: dict[str, Any]) -> dict[str, Any]:
    excluded = {k for k, v in spec.items() if v in (0, False)}
    included = {k: v for k, v in spec.items() if v not in (0, False)}
    if not included:
        return {k: v for k, v in doc.items() if k not in excluded}
    out: dict[str, Any] = {}
    if "_id" in doc and "_id" not in excluded:
        out["_id"] = doc["_id"]
    for field, expr in included.items():
        if expr in (1, True):
            value = get_field(doc, field)
        else:
            value = evaluate(expr, doc)
        out[field] = value
    return out


def run_pipeline(documents: Iterable[dict[str, Any]], pipeline: Pipeline) -> list[dict[str, Any]]:
    """Apply pipeline stages in order and return the output documents."""
    docs = list(documents)
    for stage in pipeline:
        name = _stage_name(stage)
        arg = stage[name]
        if name == "$match":
            docs = [d for d in docs if matches(d, arg)]
        elif name == "$sort":
            docs = sort_documents(docs, list(arg.items()))
        elif name == "$skip":
            docs = docs[int(arg):]
        elif name == "$limit":
            docs = docs[: int(arg)]
        elif name == "$group":
            docs = _group(docs, arg)
        elif name == "$project":
            docs = [_project(d, arg) for d in docs]
        else:
            docs = [{arg: len(docs)}]
    return docs


def leading_query(
    pipeline: Pipeline,
) -> tuple[Filter, SortSpec | None, int | None, list[dict[str, Any]]]:
    """Split off the prefix a filtering backend can execute itself.

    Consumes one leading $match, then an optional $sort, then an optional
    $limit. Returns (filter, sort, limit, remaining_stages).
    """
    stages = list(pipeline)
    filter: Filter = {}
    sort: SortSpec | None = None
    limit: int | None = None
    if stages and _stage_name(stages[0]) == "$match":
        filter = stages.pop(0)["$match"]
    if stages and _stage_name(stages[0]) == "$sort":
        sort = [(field, direction or ASCENDING) for field, direction in stages.pop(0)["$sort"].items()]
    if stages and _stage_name(stages[0]) == "$limit":
        limit = int(stages.pop(0)["$limit"])
    return filter, sort, limit, stages
