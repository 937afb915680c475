"""OpenTelemetry configuration and initialization."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

logger = logging.getLogger(__name__)

TRACER_NAME = "bart_facade"
SPAN_ATTRIBUTE_PREFIX = "bart."


def configure_opentelemetry(
    service_name: str,
    service_version: str,
    otlp_endpoint: str,
    otlp_headers: str | None = None,
    enabled: bool = False,
) -> None:
    """Configure OpenTelemetry tracing for the facade.

    Args:
        service_name: Name of the service
        service_version: Version of the service
        otlp_endpoint: OTLP collector endpoint
        otlp_headers: Optional OTLP headers
        enabled: Whether tracing is enabled
    """
    if not enabled:
        logger.info("OpenTelemetry tracing is disabled")
        return

    try:
        resource = Resource.create(
            {
                "service.name": service_name,
                "service.version": service_version,
                "service.namespace": "bart-facade",
            }
        )

        tracer_provider = TracerProvider(resource=resource)
        trace.set_tracer_provider(tracer_provider)

        otlp_exporter = OTLPSpanExporter(
            endpoint=otlp_endpoint,
            headers=otlp_headers,
        )
        tracer_provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

        logger.info("OpenTelemetry configured for service '%s'", service_name)
        logger.info("OTLP endpoint: %s", otlp_endpoint)

    except Exception as e:
        logger.warning("Failed to configure OpenTelemetry: %s", e)
        logger.info("Facade will continue without tracing")


def instrument_fastapi(app: Any, enabled: bool = False) -> None:
    """Instrument the FastAPI application for tracing."""
    if not enabled:
        return

    try:
        FastAPIInstrumentor.instrument_app(app)
        logger.info("FastAPI instrumentation enabled")
    except Exception as e:
        logger.warning("Failed to instrument FastAPI: %s", e)


def instrument_httpx(enabled: bool = False) -> None:
    """Instrument outbound BART API calls made through httpx."""
    if not enabled:
        return

    try:
        HTTPXClientInstrumentor().instrument()
        logger.info("HTTPX client instrumentation enabled")
    except Exception as e:
        logger.warning("Failed to instrument HTTPX: %s", e)


@contextmanager
def refresh_span(name: str, **attributes: Any) -> Iterator[trace.Span]:
    """Open a span around a background refresh step.

    Without a configured tracer provider the OpenTelemetry API hands out
    non-recording spans, so callers never need to check ``OTEL_ENABLED``.
    Exceptions escaping the block are recorded on the span and re-raised.
    """
    tracer = trace.get_tracer(TRACER_NAME)
    with tracer.start_as_current_span(f"bart.refresh.{name}") as span:
        annotate_span(span, **attributes)
        yield span


def annotate_span(span: trace.Span, **attributes: Any) -> None:
    """Attach ``bart.``-prefixed attributes, skipping unset values."""
    if not span.is_recording():
        return
    for key, value in attributes.items():
        if value is not None:
            span.set_attribute(f"{SPAN_ATTRIBUTE_PREFIX}{key}", value)
