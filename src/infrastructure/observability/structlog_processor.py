"""Structlog processor that stamps log events with the active trace."""

from typing import Any

from src.infrastructure.observability.tracing import current_ids


def add_trace_context(
    logger: Any,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add ``trace_id`` and ``span_id`` when a span is active.

    Events logged outside a request (startup, scripts) pass through as is.
    """
    ids = current_ids()
    if ids is not None:
        event_dict["trace_id"], event_dict["span_id"] = ids
    return event_dict
