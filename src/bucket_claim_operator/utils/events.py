"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_BUCKET_CREATED,
    EVENT_REASON_BUCKET_DELETED,
    EVENT_REASON_BUCKET_EXISTS,
    EVENT_REASON_BUCKET_RETAINED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_UPDATE_IGNORED,
    EVENT_REASON_VALIDATE_FAILED,
)


def emit_event(
    body: Any,
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event attached to ``body``.

    Args:
        body: Resource the event refers to
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_failed(body: Any, message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_validate_failed(body: Any, message: str) -> None:
    """Emit validation failed event."""
    emit_event(body, EVENT_REASON_VALIDATE_FAILED, message, type_="Warning")


def emit_bucket_created(body: Any, bucket_name: str) -> None:
    """Emit bucket created event."""
    emit_event(body, EVENT_REASON_BUCKET_CREATED, f"Bucket {bucket_name} created")


def emit_bucket_exists(body: Any, bucket_name: str) -> None:
    """Emit bucket already provisioned event."""
    emit_event(body, EVENT_REASON_BUCKET_EXISTS, f"Bucket {bucket_name} already provisioned")


def emit_bucket_deleted(body: Any, bucket_name: str) -> None:
    """Emit bucket deleted event."""
    emit_event(body, EVENT_REASON_BUCKET_DELETED, f"Bucket {bucket_name} deleted")


def emit_bucket_retained(body: Any, bucket_name: str) -> None:
    """Emit bucket retained event."""
    emit_event(body, EVENT_REASON_BUCKET_RETAINED, f"Bucket {bucket_name} retained after claim deletion")


def emit_update_ignored(body: Any, message: str) -> None:
    """Emit event for a spec change that is not reconciled."""
    emit_event(body, EVENT_REASON_UPDATE_IGNORED, message)
