"""Tracing decorator for data-layer operations.

Uses the OpenTelemetry API only; spans are no-ops unless the host process
installs an SDK tracer provider.
"""

import inspect
from collections.abc import Callable
from functools import wraps
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

# Only these argument names are recorded as span attributes (case-insensitive);
# anything else (emails, hashes, free text) is skipped.
_SAFE_SPAN_ATTR_KEYS = frozenset({
    "id", "ids", "site_id", "video_id", "user_id", "owner_id", "collection",
    "start", "end", "period", "limit", "count", "updated_by",
})


def _set_safe_span_attrs(span: trace.Span, arguments: dict[str, Any]) -> None:
    for key, value in arguments.items():
        if not key.startswith("_") and key.lower() in _SAFE_SPAN_ATTR_KEYS:
            span.set_attribute(f"arg.{key}", str(value))


def _bound_arguments(func: Callable, args: tuple, kwargs: dict) -> dict[str, Any]:
    try:
        bound = inspect.signature(func).bind(*args, **kwargs)
    except TypeError:
        return dict(kwargs)
    return {k: v for k, v in bound.arguments.items() if k != "self"}


def traced(operation_name: str | None = None) -> Callable:
    """Decorator to wrap an async function in a span.

    Records allow-listed arguments, marks the span as error and records the
    exception before re-raising.

    Args:
        operation_name: Span name (defaults to module.qualname).
    """

    def decorator(func: Callable) -> Callable:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"traced() expects an async function, got {func.__qualname__}")
        tracer = trace.get_tracer(__name__)
        span_name = operation_name or f"{func.__module__}.{func.__qualname__}"

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(span_name) as span:
                _set_safe_span_attrs(span, _bound_arguments(func, args, kwargs))
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    raise
                span.set_status(Status(StatusCode.OK))
                return result

        return wrapper

    return decorator


def add_span_attributes(**attributes: str | int | float | bool) -> None:
    """Add attributes to the current span."""
    span = trace.get_current_span()
    if span and span.is_recording():
        for key, value in attributes.items():
            span.set_attribute(key, value)
