"""Tests for OpenTelemetry tracing helpers."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from bucket_claim_operator import tracing


class TestTraceSpan:
    """Test cases for trace_span."""

    def test_noop_without_tracer(self, monkeypatch):
        """Test that spans are skipped while tracing is disabled."""
        monkeypatch.setattr(tracing, "_tracer", None)

        with tracing.trace_span("reconcile_add") as span:
            assert span is None

    def test_span_attributes(self, monkeypatch):
        """Test that the claim kind is added to the span attributes."""
        tracer = MagicMock()
        monkeypatch.setattr(tracing, "_tracer", tracer)

        with tracing.trace_span("reconcile_add", kind="ObjectBucketClaim", attributes={"claim.name": "photos"}):
            pass

        tracer.start_as_current_span.assert_called_once_with(
            "reconcile_add",
            attributes={"claim.name": "photos", "resource.kind": "ObjectBucketClaim"},
        )

    def test_exceptions_are_recorded_and_raised(self, monkeypatch):
        """Test that errors inside a span are recorded and propagate."""
        span = MagicMock()
        span.is_recording.return_value = True
        tracer = MagicMock()
        tracer.start_as_current_span.return_value.__enter__.return_value = span
        monkeypatch.setattr(tracing, "_tracer", tracer)

        with pytest.raises(ValueError):
            with tracing.trace_span("reconcile_add"):
                raise ValueError("boom")

        span.record_exception.assert_called_once()


class TestInitializeTracing:
    """Test cases for initialize_tracing."""

    @patch("bucket_claim_operator.tracing.TracerProvider")
    def test_disabled_by_default(self, mock_provider, monkeypatch):
        """Test that nothing is set up unless tracing is enabled."""
        monkeypatch.delenv("OTEL_TRACES_ENABLED", raising=False)

        tracing.initialize_tracing()

        mock_provider.assert_not_called()
