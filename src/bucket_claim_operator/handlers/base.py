"""Base handler class with the logging and metrics shared by claim reconcilers."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from .. import metrics
from ..constants import OPERATOR_NAME
from ..exceptions import UnexpectedReconcileError
from ..logging import log_resource_event
from ..models import BucketClaim, ClaimState, ReconcileOutcome
from ..utils.errors import sanitize_exception


class BaseHandler:
    """Base class for claim handlers with common functionality."""

    def __init__(self, kind: str, logger: logging.Logger | None = None):
        """Initialize base handler.

        Args:
            kind: The Kubernetes resource kind (e.g., "ObjectBucketClaim")
            logger: Logger to write structured resource events to
        """
        self.kind = kind
        self.logger = logger or logging.getLogger(__name__)

    def _get_resource_context(self, claim: BucketClaim | dict[str, Any]) -> dict[str, str]:
        """Extract name, namespace and uid from a claim or raw metadata."""
        if isinstance(claim, BucketClaim):
            return {"name": claim.name, "namespace": claim.namespace, "uid": claim.uid or "unknown"}
        return {
            "name": claim.get("name", "unknown"),
            "namespace": claim.get("namespace", "default"),
            "uid": claim.get("uid", "unknown"),
        }

    def _log(
        self,
        level: int,
        claim: BucketClaim | dict[str, Any],
        message: str,
        event: str,
        reason: str,
        **kwargs: Any,
    ) -> None:
        ctx = self._get_resource_context(claim)
        log_resource_event(
            self.logger,
            controller=OPERATOR_NAME,
            resource_kind=self.kind,
            resource_name=ctx["name"],
            namespace=ctx["namespace"],
            uid=ctx["uid"],
            event=event,
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )

    def log_info(
        self,
        claim: BucketClaim | dict[str, Any],
        message: str,
        event: str = "info",
        reason: str = "Info",
        **kwargs: Any,
    ) -> None:
        """Log an info-level structured log message."""
        self._log(logging.INFO, claim, message, event, reason, **kwargs)

    def log_warning(
        self,
        claim: BucketClaim | dict[str, Any],
        message: str,
        event: str = "warning",
        reason: str = "Warning",
        **kwargs: Any,
    ) -> None:
        """Log a warning-level structured log message."""
        self._log(logging.WARNING, claim, message, event, reason, **kwargs)

    def log_error(
        self,
        claim: BucketClaim | dict[str, Any],
        message: str,
        error: BaseException | None = None,
        event: str = "error",
        reason: str = "Error",
        **kwargs: Any,
    ) -> None:
        """Log an error-level structured log message.

        Args:
            claim: Claim or raw metadata the message refers to
            message: Log message
            error: Optional exception; its sanitized text and type are included
            event: Event type (default: "error")
            reason: Reason for the event (default: "Error")
            **kwargs: Additional fields to include in the log
        """
        log_data = kwargs.copy()
        if error is not None:
            log_data["error"] = sanitize_exception(error)
            log_data["error_type"] = type(error).__name__
        self._log(logging.ERROR, claim, message, event, reason, **log_data)

    def reconcile_with_metrics(
        self,
        claim: BucketClaim,
        event: str,
        reconcile_fn: Callable[[], ReconcileOutcome],
    ) -> ReconcileOutcome:
        """Run ``reconcile_fn`` with duration and result metrics.

        Unexpected exceptions are logged and turned into a failed outcome so
        that one bad claim never stops the watch loop.
        """
        start_time = time.time()
        try:
            outcome = reconcile_fn()
        except Exception as e:
            metrics.error_total.labels(kind=self.kind, error_type=type(e).__name__).inc()
            self.log_error(claim, "Reconciliation failed unexpectedly", error=e,
                           event=event, reason="ReconciliationFailed")
            outcome = ReconcileOutcome(
                claim=claim,
                state=ClaimState.FAILED,
                error=UnexpectedReconcileError(sanitize_exception(e)),
            )
        finally:
            duration = time.time() - start_time
            metrics.reconcile_duration_seconds.labels(kind=self.kind, event=event).observe(duration)

        metrics.reconcile_total.labels(kind=self.kind, event=event, result=outcome.state.value).inc()
        return outcome
