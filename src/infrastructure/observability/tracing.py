"""Span helpers for the site's service layer."""

import asyncio
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from enum import Enum
from functools import wraps
from typing import Any, ParamSpec, TypeVar, overload

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode, Tracer

P = ParamSpec("P")
R = TypeVar("R")

AttributeValue = str | int | float | bool


def get_tracer(name: str) -> Tracer:
    return trace.get_tracer(name)


def span_value(value: object) -> AttributeValue:
    """Coerce ids, enums and other values into something a span accepts."""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


def annotate(**attributes: object) -> None:
    """Attach attributes to the current span, skipping None values.

    Example:
        annotate(article_id=article.id, status=article.status)
    """
    span = trace.get_current_span()
    if not span.is_recording():
        return
    for key, value in attributes.items():
        if value is not None:
            span.set_attribute(key, span_value(value))


def current_ids() -> tuple[str, str] | None:
    """The (trace_id, span_id) of the active span as hex, if there is one."""
    context = trace.get_current_span().get_span_context()
    if not context.is_valid:
        return None
    return format(context.trace_id, "032x"), format(context.span_id, "016x")


@contextmanager
def _span(
    tracer: Tracer,
    name: str,
    attributes: dict[str, AttributeValue] | None,
    record_exception: bool,
) -> Iterator[Span]:
    with tracer.start_as_current_span(
        name,
        attributes=attributes,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as e:
            if record_exception:
                span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            raise
        span.set_status(Status(StatusCode.OK))


@overload
def traced(  # noqa: UP047
    func: Callable[P, R],
) -> Callable[P, R]: ...


@overload
def traced(
    func: None = None,
    *,
    span_name: str | None = None,
    attributes: dict[str, AttributeValue] | None = None,
    record_exception: bool = True,
) -> Callable[[Callable[P, R]], Callable[P, R]]: ...


def traced(  # noqa: UP047
    func: Callable[P, R] | None = None,
    *,
    span_name: str | None = None,
    attributes: dict[str, AttributeValue] | None = None,
    record_exception: bool = True,
) -> Callable[P, R] | Callable[[Callable[P, R]], Callable[P, R]]:
    """Run a service call inside a span named after it.

    Failing calls mark the span as errored and re-raise, so access and
    validation errors show up on the trace of the request that hit them.

    Args:
        func: The function to trace (when used without parentheses).
        span_name: Span name, defaults to the function name.
        attributes: Static attributes for every span.
        record_exception: Whether to attach the exception to the span.
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        tracer = get_tracer(fn.__module__)
        name = span_name or fn.__name__

        if asyncio.iscoroutinefunction(fn):

            @wraps(fn)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> Any:
                with _span(tracer, name, attributes, record_exception):
                    return await fn(*args, **kwargs)

            return async_wrapper  # type: ignore[return-value]

        @wraps(fn)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            with _span(tracer, name, attributes, record_exception):
                return fn(*args, **kwargs)

        return sync_wrapper

    if func is not None:
        return decorator(func)
    return decorator
