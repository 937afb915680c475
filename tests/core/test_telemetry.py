"""Tests for OpenTelemetry configuration."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock, patch

import pytest
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode

import bart_facade.core.telemetry as telemetry
from bart_facade.core.telemetry import (
    annotate_span,
    configure_opentelemetry,
    instrument_fastapi,
    instrument_httpx,
    refresh_span,
)


class TestConfigureOpentelemetry:
    """Tests for configure_opentelemetry function."""

    def test_disabled_logs_message_and_returns_early(self, caplog):
        with caplog.at_level(logging.INFO):
            configure_opentelemetry(
                service_name="test-service",
                service_version="1.0.0",
                otlp_endpoint="http://localhost:4317",
                enabled=False,
            )

        assert "tracing is disabled" in caplog.text.lower()

    @patch("bart_facade.core.telemetry.trace")
    @patch("bart_facade.core.telemetry.TracerProvider")
    @patch("bart_facade.core.telemetry.OTLPSpanExporter")
    @patch("bart_facade.core.telemetry.BatchSpanProcessor")
    def test_enabled_configures_tracer_provider(
        self,
        mock_batch_processor,
        mock_exporter,
        mock_tracer_provider,
        mock_trace,
    ):
        provider = MagicMock()
        mock_tracer_provider.return_value = provider

        configure_opentelemetry(
            service_name="bart-facade",
            service_version="0.1.0",
            otlp_endpoint="http://collector:4317",
            otlp_headers="api-key=secret",
            enabled=True,
        )

        mock_trace.set_tracer_provider.assert_called_once_with(provider)
        mock_exporter.assert_called_once_with(
            endpoint="http://collector:4317", headers="api-key=secret"
        )
        provider.add_span_processor.assert_called_once_with(
            mock_batch_processor.return_value
        )

    @patch("bart_facade.core.telemetry.TracerProvider")
    def test_enabled_handles_exception_gracefully(self, mock_tracer_provider, caplog):
        mock_tracer_provider.side_effect = RuntimeError("no provider")

        with caplog.at_level(logging.WARNING):
            configure_opentelemetry(
                service_name="bart-facade",
                service_version="0.1.0",
                otlp_endpoint="http://collector:4317",
                enabled=True,
            )

        assert "failed to configure opentelemetry" in caplog.text.lower()


class TestInstrumentFastapi:
    def test_disabled_does_nothing(self):
        with patch("bart_facade.core.telemetry.FastAPIInstrumentor") as mock_instrumentor:
            instrument_fastapi(MagicMock(), enabled=False)

        mock_instrumentor.instrument_app.assert_not_called()

    @patch("bart_facade.core.telemetry.FastAPIInstrumentor")
    def test_enabled_instruments_app(self, mock_instrumentor):
        app = MagicMock()

        instrument_fastapi(app, enabled=True)

        mock_instrumentor.instrument_app.assert_called_once_with(app)

    @patch("bart_facade.core.telemetry.FastAPIInstrumentor")
    def test_enabled_handles_exception(self, mock_instrumentor, caplog):
        mock_instrumentor.instrument_app.side_effect = RuntimeError("boom")

        with caplog.at_level(logging.WARNING):
            instrument_fastapi(MagicMock(), enabled=True)

        assert "failed to instrument fastapi" in caplog.text.lower()


class TestInstrumentHttpx:
    def test_disabled_does_nothing(self):
        with patch("bart_facade.core.telemetry.HTTPXClientInstrumentor") as mock_instrumentor:
            instrument_httpx(enabled=False)

        mock_instrumentor.assert_not_called()

    @patch("bart_facade.core.telemetry.HTTPXClientInstrumentor")
    def test_enabled_instruments_httpx(self, mock_instrumentor_class):
        instrument_httpx(enabled=True)

        mock_instrumentor_class.return_value.instrument.assert_called_once()

    @patch("bart_facade.core.telemetry.HTTPXClientInstrumentor")
    def test_enabled_handles_exception(self, mock_instrumentor_class, caplog):
        mock_instrumentor_class.return_value.instrument.side_effect = RuntimeError("x")

        with caplog.at_level(logging.WARNING):
            instrument_httpx(enabled=True)

        assert "failed to instrument httpx" in caplog.text.lower()


@pytest.fixture
def span_exporter(monkeypatch):
    """Route facade spans to an in-memory exporter without touching the global provider."""
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setattr(telemetry.trace, "get_tracer", provider.get_tracer)
    return exporter


class TestRefreshSpan:
    def test_span_carries_prefixed_attributes(self, span_exporter):
        with refresh_span("station_list", stations=4, error=None) as span:
            annotate_span(span, succeeded=True)

        (finished,) = span_exporter.get_finished_spans()
        assert finished.name == "bart.refresh.station_list"
        assert finished.attributes["bart.stations"] == 4
        assert finished.attributes["bart.succeeded"] is True
        assert "bart.error" not in finished.attributes

    def test_exception_is_recorded_and_reraised(self, span_exporter):
        with pytest.raises(RuntimeError):
            with refresh_span("elevator_status"):
                raise RuntimeError("boom")

        (finished,) = span_exporter.get_finished_spans()
        assert finished.status.status_code is StatusCode.ERROR

    def test_annotate_non_recording_span_is_noop(self):
        annotate_span(trace.INVALID_SPAN, stored=3)
