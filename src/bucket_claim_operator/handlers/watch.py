"""Kopf handlers delivering claim events to the reconcilers."""

from __future__ import annotations

from typing import Any

import kopf

from ..builders.claim import create_claim_from_resource
from ..exceptions import MalformedClaim
from ..kinds import ClaimKind
from ..models import BucketClaim, ClaimState, ReconcileOutcome
from ..utils.errors import sanitize_exception
from .claims import ClaimReconciler


def get_reconciler(memo: Any, claim_kind: ClaimKind) -> ClaimReconciler:
    """Look up the reconciler built for ``claim_kind`` at startup."""
    return memo.reconcilers[claim_kind.kind]


def raise_for_outcome(outcome: ReconcileOutcome, reported: bool, retry_delay: float) -> None:
    """Translate an outcome into kopf's retry signals.

    Raises:
        kopf.TemporaryError: When the claim should be re-delivered later
        kopf.PermanentError: When retrying cannot help
    """
    claim = outcome.claim
    if outcome.state is ClaimState.CANCELLED:
        raise kopf.TemporaryError(
            f"{claim.kind} {claim.namespace}/{claim.name} not processed during shutdown",
            delay=retry_delay,
        )
    if outcome.error is not None:
        message = sanitize_exception(outcome.error)
        if outcome.error.retryable:
            raise kopf.TemporaryError(message, delay=retry_delay)
        raise kopf.PermanentError(message)
    if not reported:
        raise kopf.TemporaryError(
            f"Outcome for {claim.kind} {claim.namespace}/{claim.name} could not be reported",
            delay=retry_delay,
        )


def _parse_old_claim(claim_kind: ClaimKind, old: Any, meta: Any, status: Any) -> BucketClaim | None:
    # The update handler watches the spec field, so ``old`` is the previous spec
    if not old:
        return None
    try:
        return create_claim_from_resource(claim_kind, dict(old), meta, status)
    except MalformedClaim:
        return None


def add_claim(
    claim_kind: ClaimKind,
    body: Any,
    spec: dict[str, Any],
    meta: dict[str, Any],
    status: dict[str, Any],
    patch: kopf.Patch,
    memo: Any,
) -> None:
    """Provision the bucket for a created or resumed claim."""
    reconciler = get_reconciler(memo, claim_kind)
    try:
        claim = create_claim_from_resource(claim_kind, spec, meta, status)
    except MalformedClaim as e:
        reconciler.reject(body, meta, patch, e)
        raise kopf.PermanentError(sanitize_exception(e)) from e

    outcome = reconciler.on_add(claim)
    reported = reconciler.report(outcome, body, patch, dict(status or {}))
    raise_for_outcome(outcome, reported, memo.config.retry_delay)


def update_claim(
    claim_kind: ClaimKind,
    body: Any,
    spec: dict[str, Any],
    meta: dict[str, Any],
    status: dict[str, Any],
    old: Any,
    patch: kopf.Patch,
    memo: Any,
) -> None:
    """Observe a spec change of an existing claim."""
    reconciler = get_reconciler(memo, claim_kind)
    try:
        claim = create_claim_from_resource(claim_kind, spec, meta, status)
    except MalformedClaim as e:
        reconciler.reject(body, meta, patch, e)
        raise kopf.PermanentError(sanitize_exception(e)) from e

    outcome = reconciler.on_update(_parse_old_claim(claim_kind, old, meta, status), claim)
    reported = reconciler.report(outcome, body, patch, dict(status or {}))
    raise_for_outcome(outcome, reported, memo.config.retry_delay)


def delete_claim(
    claim_kind: ClaimKind,
    body: Any,
    spec: dict[str, Any],
    meta: dict[str, Any],
    status: dict[str, Any],
    memo: Any,
) -> None:
    """Release the claim's bucket; kopf removes its finalizer on return."""
    reconciler = get_reconciler(memo, claim_kind)
    try:
        claim = create_claim_from_resource(claim_kind, spec, meta, status)
    except MalformedClaim as e:
        reconciler.log_warning(meta, f"Releasing malformed claim without cleanup: {e}",
                               event="delete", reason=e.reason)
        return

    outcome = reconciler.on_delete(claim)
    reconciler.report_release(outcome, body)
    if outcome.state is ClaimState.FAILED and outcome.error is not None and not outcome.error.retryable:
        reconciler.log_warning(claim, f"Releasing claim, bucket {claim.provisioned_bucket_name} is kept",
                               event="delete", reason="ReleasedWithError")
        return
    raise_for_outcome(outcome, True, memo.config.retry_delay)


def register_claim_handlers(claim_kind: ClaimKind, registry: kopf.OperatorRegistry | None = None) -> None:
    """Register add, update and delete handlers for one claim kind."""
    resource = (claim_kind.group, claim_kind.version, claim_kind.plural)
    prefix = claim_kind.plural
    registry = registry or kopf.get_default_registry()

    @kopf.on.resume(*resource, id=f"{prefix}-resume", registry=registry)
    @kopf.on.create(*resource, id=f"{prefix}-add", registry=registry)
    def handle_add(body, spec, meta, status, patch, memo, **_):  # type: ignore[no-untyped-def]
        add_claim(claim_kind, body, spec, meta, status, patch, memo)

    @kopf.on.update(*resource, id=f"{prefix}-update", field="spec", registry=registry)
    def handle_update(body, spec, meta, status, old, patch, memo, **_):  # type: ignore[no-untyped-def]
        update_claim(claim_kind, body, spec, meta, status, old, patch, memo)

    @kopf.on.delete(*resource, id=f"{prefix}-delete", registry=registry)
    def handle_delete(body, spec, meta, status, memo, **_):  # type: ignore[no-untyped-def]
        delete_claim(claim_kind, body, spec, meta, status, memo)
