"""Reconciler for bucket claims.

One :class:`ClaimReconciler` instance serves one claim kind. It turns claim
lifecycle events into bucket provisioning, and reports the outcome back onto
the claim. It keeps no durable state of its own: re-delivered add events are
made harmless by reusing the bucket name recorded in the claim status and by
treating an already-owned bucket as success.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable

import kopf

from .. import metrics
from ..constants import (
    DELETION_POLICY_DELETE,
    PHASE_BOUND,
    PHASE_FAILED,
    PHASE_PENDING,
)
from ..exceptions import (
    AmbiguousOrMissingCredential,
    ClaimError,
    IncompleteCredential,
    InvalidBucketName,
    MalformedClaim,
    NotFound,
    ProvisioningFailed,
    SecretStoreError,
)
from ..kinds import ClaimKind
from ..models import (
    BucketClaim,
    ClaimState,
    ProvisionedBucket,
    ProvisionState,
    ReconcileOutcome,
)
from ..naming import BucketNameGenerator, validate_bucket_name
from ..services.s3.base import StorageProvisioner
from ..tracing import trace_span
from ..utils.conditions import (
    set_credentials_resolved_condition,
    set_provisioning_failed_condition,
    set_ready_condition,
)
from ..utils.errors import sanitize_exception
from ..utils.events import (
    emit_bucket_created,
    emit_bucket_deleted,
    emit_bucket_exists,
    emit_bucket_retained,
    emit_reconcile_failed,
    emit_update_ignored,
    emit_validate_failed,
)
from ..utils.locks import InflightTracker, KeyedLocks
from ..utils.secrets import SecretResolver
from .base import BaseHandler

ConfigMapPublisher = Callable[[BucketClaim, ProvisionedBucket], None]

_CREDENTIAL_ERRORS = (NotFound, AmbiguousOrMissingCredential, IncompleteCredential, SecretStoreError)
# Fields that identify a revision rather than carry intent
_REVISION_FIELDS = {"uid", "generation", "resource_version"}


class ClaimReconciler(BaseHandler):
    """State machine driving a claim from Observed to Provisioned (or Failed)."""

    def __init__(
        self,
        claim_kind: ClaimKind,
        secret_resolver: SecretResolver,
        provisioner: StorageProvisioner,
        name_generator: BucketNameGenerator | None = None,
        configmap_publisher: ConfigMapPublisher | None = None,
        logger: logging.Logger | None = None,
    ):
        """Initialize the reconciler.

        Args:
            claim_kind: Kind this reconciler serves
            secret_resolver: Resolves claim credentials from the secret store
            provisioner: Issues bucket create/delete calls
            name_generator: Generates bucket names for claims without one
            configmap_publisher: Publishes connection details for provisioned claims
            logger: Logger for structured reconciliation events
        """
        super().__init__(
            claim_kind.kind,
            logger or logging.getLogger(f"{__name__}.{claim_kind.kind}"),
        )
        self.claim_kind = claim_kind
        self.secret_resolver = secret_resolver
        self.provisioner = provisioner
        self.name_generator = name_generator or BucketNameGenerator()
        self.configmap_publisher = configmap_publisher
        self._locks = KeyedLocks()
        self._inflight = InflightTracker()

    @property
    def accepting(self) -> bool:
        """Whether new events are still processed."""
        return not self._inflight.closed

    # Event entry points

    def on_add(self, claim: BucketClaim) -> ReconcileOutcome:
        """Provision the bucket for a newly observed (or re-delivered) claim."""
        return self._dispatch(claim, "add", lambda: self._add(claim))

    def on_update(self, old: BucketClaim | None, new: BucketClaim) -> ReconcileOutcome:
        """Record a spec change; updates are observed but not reconciled."""
        return self._dispatch(new, "update", lambda: self._update(old, new))

    def on_delete(self, claim: BucketClaim) -> ReconcileOutcome:
        """Release the claim's bucket according to its deletion policy."""
        return self._dispatch(claim, "delete", lambda: self._delete(claim))

    def stop_accepting(self) -> None:
        """Refuse new events; events already running continue."""
        self._inflight.close()

    def shutdown(self, timeout: float) -> list[Any]:
        """Stop accepting events and wait for running reconciliations.

        Returns:
            Identities of claims still reconciling when ``timeout`` elapsed
        """
        self.stop_accepting()
        self.logger.info(f"Shutting down {self.kind} reconciler, waiting up to {timeout}s "
                         f"for {self._inflight.count} running reconciliation(s)")
        pending = self._inflight.wait_idle(timeout)
        for kind, namespace, name in pending:
            self.log_warning({"name": name, "namespace": namespace},
                             "Reconciliation still running at shutdown; its outcome is not reported",
                             event="shutdown", reason="ShutdownTimeout")
        return pending

    def _dispatch(
        self,
        claim: BucketClaim,
        event: str,
        reconcile_fn: Callable[[], ReconcileOutcome],
    ) -> ReconcileOutcome:
        if not self._inflight.enter(claim.key):
            return self._cancelled(claim, event)
        metrics.inflight_reconciliations.labels(kind=self.kind).inc()
        try:
            with self._locks.hold(claim.key):
                if self._inflight.closed:
                    return self._cancelled(claim, event)
                with trace_span(f"reconcile_{event}", kind=self.kind,
                                attributes={"claim.name": claim.name, "claim.namespace": claim.namespace}):
                    return self.reconcile_with_metrics(claim, event, reconcile_fn)
        finally:
            metrics.inflight_reconciliations.labels(kind=self.kind).dec()
            self._inflight.exit(claim.key)

    def _cancelled(self, claim: BucketClaim, event: str) -> ReconcileOutcome:
        self.log_warning(claim, f"Operator is shutting down, {event} event not processed",
                         event=event, reason="Cancelled")
        metrics.reconcile_total.labels(kind=self.kind, event=event, result=ClaimState.CANCELLED.value).inc()
        return ReconcileOutcome(claim=claim, state=ClaimState.CANCELLED)

    def _failed(
        self,
        claim: BucketClaim,
        event: str,
        error: ClaimError,
        bucket: ProvisionedBucket | None = None,
    ) -> ReconcileOutcome:
        metrics.error_total.labels(kind=self.kind, error_type=type(error).__name__).inc()
        self.log_error(claim, f"{event.capitalize()} failed", error=error, event=event,
                       reason=error.reason, retryable=error.retryable)
        return ReconcileOutcome(claim=claim, state=ClaimState.FAILED, bucket=bucket, error=error)

    # Transitions

    def _add(self, claim: BucketClaim) -> ReconcileOutcome:
        self.log_info(claim, "Claim observed", event="add", reason=ClaimState.OBSERVED.value,
                      resource_version=claim.resource_version)
        if claim.bucket_name:
            try:
                validate_bucket_name(claim.bucket_name)
            except InvalidBucketName as e:
                return self._failed(claim, "add", MalformedClaim(str(e)))

        try:
            credentials = self.secret_resolver.resolve(claim, self.claim_kind)
        except ClaimError as e:
            return self._failed(claim, "add", e)
        self.log_info(claim, "Credentials resolved", event="add", reason=ClaimState.CREDENTIAL_RESOLVED.value)

        if claim.bucket_name:
            bucket_name = claim.bucket_name
        else:
            try:
                bucket_name = self.name_generator.generate(claim.bucket_name_prefix, claim.uid)
            except InvalidBucketName as e:
                return self._failed(claim, "add", MalformedClaim(str(e)))

        result = self.provisioner.create_bucket(bucket_name, credentials)
        bucket = ProvisionedBucket(bucket_name=bucket_name, endpoint=self.provisioner.endpoint, result=result)
        if not result.succeeded:
            return self._failed(claim, "add", ProvisioningFailed(bucket_name, result.reason or "unknown"), bucket)

        self.log_info(claim, f"Bucket {bucket_name} provisioned", event="add",
                      reason=ClaimState.PROVISIONED.value, bucket_name=bucket_name,
                      provision_result=result.state.value)
        return ReconcileOutcome(claim=claim, state=ClaimState.PROVISIONED, bucket=bucket)

    def _update(self, old: BucketClaim | None, new: BucketClaim) -> ReconcileOutcome:
        changed = changed_fields(old, new)
        if "credential_source" in changed:
            self.log_warning(new, "Credential source changed; the existing bucket keeps its original credentials",
                             event="update", reason="CredentialSourceChanged", changed=changed)
        else:
            self.log_info(new, "Claim spec changed; updates are not reconciled",
                          event="update", reason="UpdateObserved", changed=changed)
        return ReconcileOutcome(claim=new, state=ClaimState.OBSERVED)

    def _delete(self, claim: BucketClaim) -> ReconcileOutcome:
        bucket_name = claim.provisioned_bucket_name
        if not bucket_name:
            self.log_info(claim, "Claim has no provisioned bucket, nothing to release",
                          event="delete", reason="Released")
            return ReconcileOutcome(claim=claim, state=ClaimState.DELETED)

        if claim.deletion_policy != DELETION_POLICY_DELETE:
            self.log_info(claim, f"Retaining bucket {bucket_name} per deletionPolicy={claim.deletion_policy}",
                          event="delete", reason="BucketRetained", bucket_name=bucket_name)
            return ReconcileOutcome(claim=claim, state=ClaimState.RETAINED)

        try:
            credentials = self.secret_resolver.resolve(claim, self.claim_kind)
        except ClaimError as e:
            return self._failed(claim, "delete", e)

        result = self.provisioner.delete_bucket(bucket_name, credentials)
        bucket = ProvisionedBucket(bucket_name=bucket_name, endpoint=self.provisioner.endpoint, result=result)
        if not result.succeeded:
            return self._failed(claim, "delete", ProvisioningFailed(bucket_name, result.reason or "unknown"), bucket)

        self.log_info(claim, f"Bucket {bucket_name} released", event="delete",
                      reason="BucketDeleted", bucket_name=bucket_name,
                      provision_result=result.state.value)
        return ReconcileOutcome(claim=claim, state=ClaimState.DELETED, bucket=bucket)

    # Reporting

    def reject(self, body: Any, meta: dict[str, Any], patch: kopf.Patch, error: MalformedClaim) -> None:
        """Report a resource that could not be parsed into a claim."""
        metrics.error_total.labels(kind=self.kind, error_type=type(error).__name__).inc()
        metrics.reconcile_total.labels(kind=self.kind, event="parse", result=ClaimState.FAILED.value).inc()
        self.log_error(meta, "Claim is malformed", error=error, event="parse", reason=error.reason)
        message = sanitize_exception(error)
        emit_validate_failed(body, message)
        patch.status.update({
            "phase": PHASE_FAILED,
            "reason": error.reason,
            "message": message,
            "observedGeneration": meta.get("generation", 0),
        })

    def report(
        self,
        outcome: ReconcileOutcome,
        body: Any,
        patch: kopf.Patch,
        status: dict[str, Any] | None = None,
    ) -> bool:
        """Write ``outcome`` to the claim status, events and connection ConfigMap.

        Returns:
            False when the outcome could not be fully reported and the claim
            should be re-delivered
        """
        status = status or {}
        claim = outcome.claim
        conditions = status.get("conditions", [])
        generation = claim.generation

        if outcome.state is ClaimState.PROVISIONED and outcome.bucket is not None:
            bucket = outcome.bucket
            message = f"Bucket {bucket.bucket_name} is provisioned"
            conditions = set_credentials_resolved_condition(conditions, True, "Resolved",
                                                            "Credentials resolved", generation)
            conditions = set_provisioning_failed_condition(conditions, False, message, generation)
            conditions = set_ready_condition(conditions, True, "Provisioned", message, generation)
            patch.status.update({
                "phase": PHASE_BOUND,
                "bucketName": bucket.bucket_name,
                "endpoint": bucket.endpoint,
                "provisionResult": bucket.result.state.value,
                "reason": None,
                "message": message,
                "observedGeneration": generation,
                "conditions": conditions,
            })
            if bucket.result.state is ProvisionState.CREATED:
                emit_bucket_created(body, bucket.bucket_name)
            else:
                emit_bucket_exists(body, bucket.bucket_name)
            return self._publish_connection_details(claim, bucket)

        if outcome.state is ClaimState.FAILED and outcome.error is not None:
            error = outcome.error
            message = sanitize_exception(error)
            if isinstance(error, MalformedClaim):
                emit_validate_failed(body, message)
            else:
                emit_reconcile_failed(body, message)
            if isinstance(error, _CREDENTIAL_ERRORS):
                conditions = set_credentials_resolved_condition(conditions, False, error.reason,
                                                                message, generation)
            if isinstance(error, ProvisioningFailed):
                conditions = set_provisioning_failed_condition(conditions, True, message, generation)
            conditions = set_ready_condition(conditions, False, error.reason, message, generation)
            patch.status.update({
                "phase": PHASE_PENDING if error.retryable else PHASE_FAILED,
                "reason": error.reason,
                "message": message,
                "observedGeneration": generation,
                "conditions": conditions,
            })
            return True

        if outcome.state is ClaimState.OBSERVED:
            emit_update_ignored(body, "Spec change observed; existing bucket is unchanged")
        return True

    def report_release(self, outcome: ReconcileOutcome, body: Any) -> None:
        """Emit the event for a delete outcome; the claim status is going away."""
        bucket_name = outcome.claim.provisioned_bucket_name
        if outcome.state is ClaimState.DELETED and bucket_name:
            emit_bucket_deleted(body, bucket_name)
        elif outcome.state is ClaimState.RETAINED and bucket_name:
            emit_bucket_retained(body, bucket_name)
        elif outcome.state is ClaimState.FAILED and outcome.error is not None:
            emit_reconcile_failed(body, sanitize_exception(outcome.error))

    def _publish_connection_details(self, claim: BucketClaim, bucket: ProvisionedBucket) -> bool:
        if self.configmap_publisher is None:
            return True
        try:
            self.configmap_publisher(claim, bucket)
        except Exception as e:
            metrics.error_total.labels(kind=self.kind, error_type=type(e).__name__).inc()
            self.log_error(claim, "Failed to publish connection details", error=e,
                           event="add", reason="ConfigMapPublishFailed", bucket_name=bucket.bucket_name)
            return False
        return True


def changed_fields(old: BucketClaim | None, new: BucketClaim) -> list[str]:
    """Names of claim fields whose values differ between ``old`` and ``new``."""
    if old is None:
        return [f.name for f in dataclasses.fields(new) if f.name not in _REVISION_FIELDS]
    return [
        f.name
        for f in dataclasses.fields(new)
        if f.name not in _REVISION_FIELDS and getattr(old, f.name) != getattr(new, f.name)
    ]
