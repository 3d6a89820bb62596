"""Tests for Kubernetes event utilities."""

from __future__ import annotations

from unittest.mock import patch

from bucket_claim_operator.utils.events import (
    emit_bucket_created,
    emit_bucket_deleted,
    emit_bucket_exists,
    emit_bucket_retained,
    emit_event,
    emit_reconcile_failed,
    emit_update_ignored,
    emit_validate_failed,
)

BODY = {"metadata": {"name": "photos", "namespace": "team-a"}}


class TestEmitEvent:
    """Test cases for emit_event function."""

    @patch("bucket_claim_operator.utils.events.kopf.event")
    def test_emit_event_normal(self, mock_event):
        """Test emitting a normal event."""
        emit_event(BODY, "TestReason", "Test message")

        mock_event.assert_called_once_with(BODY, reason="TestReason", message="Test message", type="Normal")

    @patch("bucket_claim_operator.utils.events.kopf.event")
    def test_emit_event_warning(self, mock_event):
        """Test emitting a warning event."""
        emit_event(BODY, "TestReason", "Test message", type_="Warning")

        mock_event.assert_called_once_with(BODY, reason="TestReason", message="Test message", type="Warning")


class TestEventHelpers:
    """Test cases for the named event helpers."""

    @patch("bucket_claim_operator.utils.events.kopf.event")
    def test_failure_events_are_warnings(self, mock_event):
        """Test that failure helpers emit warnings."""
        emit_reconcile_failed(BODY, "boom")
        emit_validate_failed(BODY, "bad spec")

        reasons = [(c.kwargs["reason"], c.kwargs["type"]) for c in mock_event.call_args_list]
        assert reasons == [("ReconcileFailed", "Warning"), ("ValidateFailed", "Warning")]

    @patch("bucket_claim_operator.utils.events.kopf.event")
    def test_bucket_events(self, mock_event):
        """Test that bucket lifecycle helpers name the bucket."""
        emit_bucket_created(BODY, "photos-k2x9q")
        emit_bucket_exists(BODY, "photos-k2x9q")
        emit_bucket_deleted(BODY, "photos-k2x9q")
        emit_bucket_retained(BODY, "photos-k2x9q")
        emit_update_ignored(BODY, "ignored")

        reasons = [c.kwargs["reason"] for c in mock_event.call_args_list]
        assert reasons == ["BucketCreated", "BucketExists", "BucketDeleted", "BucketRetained", "UpdateIgnored"]
        assert all("photos-k2x9q" in c.kwargs["message"] for c in mock_event.call_args_list[:4])
        assert all(c.kwargs["type"] == "Normal" for c in mock_event.call_args_list)
