"""Utilities for managing claim status conditions."""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any

from ..constants import COND_CREDENTIALS_RESOLVED, COND_PROVISIONING_FAILED, COND_READY


def update_condition(
    conditions: list[dict[str, Any]],
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Return ``conditions`` with one condition added or replaced.

    The input list is left untouched. ``lastTransitionTime`` only moves when
    the condition status changes.

    Args:
        conditions: Existing conditions
        condition_type: Type of condition
        status: Status of condition ("True", "False", "Unknown")
        reason: Machine readable reason
        message: Human-readable message
        observed_generation: Generation the condition was computed for

    Returns:
        New list of conditions
    """
    now = datetime.now(timezone.utc).isoformat()
    updated = copy.deepcopy(list(conditions or []))

    new_condition: dict[str, Any] = {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "message": message,
        "lastTransitionTime": now,
    }
    if observed_generation is not None:
        new_condition["observedGeneration"] = observed_generation

    for idx, existing in enumerate(updated):
        if existing.get("type") == condition_type:
            if existing.get("status") == status:
                new_condition["lastTransitionTime"] = existing.get("lastTransitionTime", now)
            updated[idx] = new_condition
            return updated

    updated.append(new_condition)
    return updated


def set_ready_condition(
    conditions: list[dict[str, Any]],
    status: bool,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the Ready condition."""
    return update_condition(
        conditions,
        COND_READY,
        "True" if status else "False",
        reason,
        message,
        observed_generation,
    )


def set_credentials_resolved_condition(
    conditions: list[dict[str, Any]],
    status: bool,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the CredentialsResolved condition."""
    return update_condition(
        conditions,
        COND_CREDENTIALS_RESOLVED,
        "True" if status else "False",
        reason,
        message,
        observed_generation,
    )


def set_provisioning_failed_condition(
    conditions: list[dict[str, Any]],
    failed: bool,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set or clear the ProvisioningFailed condition."""
    return update_condition(
        conditions,
        COND_PROVISIONING_FAILED,
        "True" if failed else "False",
        "ProvisioningFailed" if failed else "Provisioned",
        message,
        observed_generation,
    )
