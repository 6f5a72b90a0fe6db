"""Logging and tracing setup for the site."""

import logging
from typing import TYPE_CHECKING

import structlog
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ParentBasedTraceIdRatio

from src.infrastructure.observability.structlog_processor import add_trace_context

if TYPE_CHECKING:
    from fastapi import FastAPI

    from src.config import Settings

# Requests that would only add noise to traces
UNTRACED_URLS = "health,static"

_tracer_provider: TracerProvider | None = None
_initialized: bool = False


def init_observability(settings: "Settings", app: "FastAPI | None" = None) -> None:
    """Configure structlog and, when enabled, OpenTelemetry tracing.

    Structlog is always configured. With ``otel_enabled`` off a no-op tracer
    provider is installed, so ``traced`` service calls cost nothing and log
    events carry no trace ids.

    Args:
        settings: Application settings (log level and ``otel_*`` fields).
        app: FastAPI app to instrument. Health checks and static files are
            left out.
    """
    global _tracer_provider, _initialized

    if _initialized:
        return

    _configure_logging(logging.getLevelName(settings.log_level.upper()))

    if not settings.otel_enabled:
        trace.set_tracer_provider(trace.NoOpTracerProvider())
        _initialized = True
        return

    _tracer_provider = TracerProvider(
        resource=Resource.create(
            {
                SERVICE_NAME: settings.app_name.lower(),
                SERVICE_VERSION: settings.app_version,
                "site.timezone": settings.site_timezone,
            }
        ),
        sampler=ParentBasedTraceIdRatio(settings.otel_sample_rate),
    )
    for exporter in _exporters(settings):
        _tracer_provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(_tracer_provider)

    if app is not None:
        FastAPIInstrumentor.instrument_app(app, excluded_urls=UNTRACED_URLS)

    logger = structlog.get_logger()
    logger.info(
        "tracing_enabled",
        endpoint=settings.otel_endpoint,
        console=settings.otel_console_export,
        sample_rate=settings.otel_sample_rate,
    )
    _initialized = True


def _exporters(settings: "Settings") -> list[OTLPSpanExporter | ConsoleSpanExporter]:
    exporters: list[OTLPSpanExporter | ConsoleSpanExporter] = []
    if settings.otel_console_export:
        exporters.append(ConsoleSpanExporter())
    if settings.otel_endpoint:
        endpoint = settings.otel_endpoint.rstrip("/")
        exporters.append(OTLPSpanExporter(endpoint=f"{endpoint}/v1/traces"))
    return exporters


def shutdown_observability() -> None:
    """Flush pending spans and allow a later re-initialization."""
    global _tracer_provider, _initialized

    if _tracer_provider is not None:
        _tracer_provider.shutdown()
        _tracer_provider = None

    _initialized = False


def _configure_logging(log_level: int) -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            add_trace_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", level=log_level)
    # aiosqlite logs every statement at DEBUG
    logging.getLogger("aiosqlite").setLevel(max(log_level, logging.INFO))
