"""Tracing with OpenTelemetry and structured logs with structlog."""

from src.infrastructure.observability.setup import (
    init_observability,
    shutdown_observability,
)
from src.infrastructure.observability.structlog_processor import add_trace_context
from src.infrastructure.observability.tracing import annotate, current_ids, traced

__all__ = [
    "add_trace_context",
    "annotate",
    "current_ids",
    "init_observability",
    "shutdown_observability",
    "traced",
]
