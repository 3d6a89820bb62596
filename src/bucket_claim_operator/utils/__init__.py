"""Utility functions for the Bucket Claim Operator."""

from .conditions import (
    set_credentials_resolved_condition,
    set_provisioning_failed_condition,
    set_ready_condition,
    update_condition,
)
from .configmaps import (
    connection_configmap_name,
    make_configmap_publisher,
    publish_connection_configmap,
)
from .errors import sanitize_error_message, sanitize_exception
from .events import emit_event
from .locks import InflightTracker, KeyedLocks
from .secrets import SecretResolver, decode_secret_value

__all__ = [
    "update_condition",
    "set_ready_condition",
    "set_credentials_resolved_condition",
    "set_provisioning_failed_condition",
    "connection_configmap_name",
    "make_configmap_publisher",
    "publish_connection_configmap",
    "sanitize_error_message",
    "sanitize_exception",
    "emit_event",
    "InflightTracker",
    "KeyedLocks",
    "SecretResolver",
    "decode_secret_value",
]
