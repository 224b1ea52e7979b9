"""Observability setup for OpenTelemetry, metrics, and structured logging."""

import logging
import re
from typing import Any

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
import structlog
from structlog.typing import FilteringBoundLogger

from .config import settings

SERVICE_NAME = "tripsage-booking-api"
SERVICE_VERSION = "1.0.0"

# Transaction names end in row ids; metrics are labelled by the operation only
_ID_SUFFIX = re.compile(r"(_\d+)+$")

# Prometheus metrics
REGISTRY = CollectorRegistry()

TRANSACTIONS = Counter(
    'tripsage_transactions_total',
    'Units of work by name and outcome',
    ['name', 'outcome'],
    registry=REGISTRY
)

TRANSACTION_DURATION = Histogram(
    'tripsage_transaction_duration_seconds',
    'Unit of work duration in seconds, including rollback',
    ['name'],
    registry=REGISTRY
)

BOOKING_DECISIONS = Counter(
    'tripsage_booking_decisions_total',
    'Booking approval decisions recorded',
    ['booking_type', 'decision'],
    registry=REGISTRY
)

BOOKINGS_PLACED = Counter(
    'tripsage_bookings_placed_total',
    'Bookings placed and sent for review',
    ['booking_type'],
    registry=REGISTRY
)

USERS_DELETED = Counter(
    'tripsage_users_deleted_total',
    'Users removed together with their dependent rows',
    registry=REGISTRY
)

TRIPS_REMOVED = Counter(
    'tripsage_trips_removed_total',
    'Trips removed by an administrator',
    registry=REGISTRY
)


def setup_structured_logging() -> None:
    """Configure structured logging with structlog."""

    def add_trace_context(logger: Any, method_name: str, event_dict: dict) -> dict:
        """Add trace context to log events."""
        span = trace.get_current_span()
        if span and span.is_recording():
            ctx = span.get_span_context()
            event_dict['trace_id'] = format(ctx.trace_id, '032x')
            event_dict['span_id'] = format(ctx.span_id, '016x')
        return event_dict

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_trace_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _resource() -> Resource:
    return Resource.create({
        "service.name": SERVICE_NAME,
        "service.version": SERVICE_VERSION,
        "environment": settings.environment,
    })


def setup_tracing() -> trace.Tracer:
    """Setup OpenTelemetry tracing; spans are exported only when an OTLP endpoint is configured."""
    provider = TracerProvider(resource=_resource())
    if settings.otlp_endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint)))
    trace.set_tracer_provider(provider)
    return trace.get_tracer(__name__)


def setup_metrics() -> metrics.Meter:
    """Setup OpenTelemetry metrics export (if configured)."""
    if settings.otlp_endpoint:
        reader = PeriodicExportingMetricReader(
            exporter=OTLPMetricExporter(endpoint=settings.otlp_endpoint),
            export_interval_millis=60000,
        )
        metrics.set_meter_provider(MeterProvider(resource=_resource(), metric_readers=[reader]))
    return metrics.get_meter(__name__)


def instrument_fastapi(app) -> None:
    """Instrument FastAPI with OpenTelemetry."""
    FastAPIInstrumentor.instrument_app(app)


def instrument_sqlalchemy(engine) -> None:
    """Instrument the store client's engine with OpenTelemetry."""
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


class MetricsCollector:
    """Collector for transaction and booking-lifecycle metrics."""

    @staticmethod
    def record_transaction(name: str, outcome: str, duration_seconds: float) -> None:
        """Record the outcome and duration of one unit of work."""
        operation = _ID_SUFFIX.sub("", name)
        TRANSACTIONS.labels(name=operation, outcome=outcome).inc()
        TRANSACTION_DURATION.labels(name=operation).observe(duration_seconds)

    @staticmethod
    def record_booking_decision(booking_type: str, decision: str) -> None:
        """Record an approval decision."""
        BOOKING_DECISIONS.labels(booking_type=booking_type, decision=decision).inc()

    @staticmethod
    def record_booking_placed(booking_type: str) -> None:
        """Record a booking placed for review."""
        BOOKINGS_PLACED.labels(booking_type=booking_type).inc()

    @staticmethod
    def record_user_deleted() -> None:
        USERS_DELETED.inc()

    @staticmethod
    def record_trip_removed() -> None:
        TRIPS_REMOVED.inc()


def get_prometheus_metrics() -> bytes:
    """Get Prometheus metrics for the /metrics endpoint."""
    return generate_latest(REGISTRY)


# Global metrics collector instance
metrics_collector = MetricsCollector()


def get_logger(name: str) -> FilteringBoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
