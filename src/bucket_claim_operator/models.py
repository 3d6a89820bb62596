"""Value types shared by the reconciliation components."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Union

from .constants import DELETION_POLICY_RETAIN
from .exceptions import ClaimError


@dataclass(frozen=True)
class SecretRef:
    """Credentials live in a secret with a known name."""

    name: str


@dataclass(frozen=True)
class ObjectUser:
    """Credentials live in the one secret labelled ``user=<name>``."""

    name: str


CredentialSource = Union[SecretRef, ObjectUser]


@dataclass(frozen=True)
class BucketClaim:
    """Immutable snapshot of a bucket claim as delivered by the watch adapter.

    ``bucket_name`` is the name to provision, pinned by the spec or recorded
    earlier. ``provisioned_bucket_name`` is only set once this operator has
    recorded a successful provisioning in the claim status.
    """

    kind: str
    name: str
    namespace: str
    credential_source: CredentialSource
    uid: str = ""
    generation: int = 0
    resource_version: str = ""
    bucket_name_prefix: str = ""
    bucket_name: str | None = None
    provisioned_bucket_name: str | None = None
    deletion_policy: str = DELETION_POLICY_RETAIN

    @property
    def key(self) -> tuple[str, str, str]:
        """Identity used to serialize events for the same claim."""
        return (self.kind, self.namespace, self.name)


@dataclass(frozen=True)
class Credentials:
    """Static access-key/secret-key pair."""

    access_key: str
    secret_key: str = field(repr=False)


class ProvisionState(str, enum.Enum):
    """Classification of an object-storage call."""

    CREATED = "Created"
    ALREADY_EXISTS = "AlreadyExists"
    DELETED = "Deleted"
    NOT_FOUND = "NotFound"
    FAILED = "Failed"


@dataclass(frozen=True)
class ProvisionResult:
    """Outcome of a single create or delete bucket call."""

    state: ProvisionState
    reason: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is not ProvisionState.FAILED

    @classmethod
    def created(cls) -> ProvisionResult:
        return cls(ProvisionState.CREATED)

    @classmethod
    def already_exists(cls) -> ProvisionResult:
        return cls(ProvisionState.ALREADY_EXISTS)

    @classmethod
    def deleted(cls) -> ProvisionResult:
        return cls(ProvisionState.DELETED)

    @classmethod
    def not_found(cls) -> ProvisionResult:
        return cls(ProvisionState.NOT_FOUND)

    @classmethod
    def failed(cls, reason: str) -> ProvisionResult:
        return cls(ProvisionState.FAILED, reason)


@dataclass(frozen=True)
class ProvisionedBucket:
    """Bucket produced (or confirmed) for one claim during one reconciliation."""

    bucket_name: str
    endpoint: str
    result: ProvisionResult


class ClaimState(str, enum.Enum):
    """Per-claim reconciliation states."""

    OBSERVED = "Observed"
    CREDENTIAL_RESOLVED = "CredentialResolved"
    PROVISIONED = "Provisioned"
    FAILED = "Failed"
    DELETED = "Deleted"
    RETAINED = "Retained"
    CANCELLED = "Cancelled"


@dataclass(frozen=True)
class ReconcileOutcome:
    """Result of handling one watch event, reported back to the watch adapter."""

    claim: BucketClaim
    state: ClaimState
    bucket: ProvisionedBucket | None = None
    error: ClaimError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.state not in (ClaimState.FAILED, ClaimState.CANCELLED)

    @property
    def retryable(self) -> bool:
        if self.state is ClaimState.CANCELLED:
            return True
        return self.error is not None and self.error.retryable
