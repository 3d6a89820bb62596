"""Exception types raised while reconciling bucket claims."""

from __future__ import annotations


class ConfigError(ValueError):
    """Raised when the operator configuration is missing or invalid."""


class ClaimError(Exception):
    """Base class for errors that abort reconciliation of a single claim.

    ``retryable`` tells the watch adapter whether the event source should
    re-deliver the claim later.
    """

    retryable = False
    reason = "ReconcileFailed"


class MalformedClaim(ClaimError):
    """A required claim field is missing, empty or invalid."""

    reason = "MalformedClaim"


class NotFound(ClaimError):
    """The referenced credential secret does not exist."""

    retryable = True
    reason = "SecretNotFound"

    def __init__(self, name: str, namespace: str):
        super().__init__(f"Secret '{name}' not found in namespace '{namespace}'")
        self.name = name
        self.namespace = namespace


class AmbiguousOrMissingCredential(ClaimError):
    """Zero or several secrets matched the user label of a claim."""

    reason = "AmbiguousOrMissingCredential"

    def __init__(self, user: str, namespace: str, matches: int):
        super().__init__(
            f"expected to find 1 secret for namespace/user {namespace}/{user}, got {matches}"
        )
        self.user = user
        self.namespace = namespace
        self.matches = matches


class IncompleteCredential(ClaimError):
    """The credential secret lacks a non-empty access or secret key."""

    reason = "IncompleteCredential"

    def __init__(self, secret_name: str, key: str):
        super().__init__(f"Secret '{secret_name}' has no value for key '{key}'")
        self.secret_name = secret_name
        self.key = key


class SecretStoreError(ClaimError):
    """The secret store could not be queried."""

    retryable = True
    reason = "SecretStoreUnavailable"


class ProvisioningFailed(ClaimError):
    """The object-storage call failed for a reason other than already-exists."""

    retryable = True
    reason = "ProvisioningFailed"

    def __init__(self, bucket_name: str, reason: str):
        super().__init__(f"failed provisioning bucket {bucket_name!r}: {reason}")
        self.bucket_name = bucket_name
        self.failure_reason = reason


class InvalidBucketName(ValueError):
    """A bucket name does not satisfy the S3 naming rules."""


class UnexpectedReconcileError(ClaimError):
    """An unanticipated exception escaped a reconciliation step."""

    retryable = True
    reason = "InternalError"
