"""Builder for typed bucket claims."""

from __future__ import annotations

from typing import Any

from ..constants import DELETION_POLICY_DELETE, DELETION_POLICY_RETAIN
from ..exceptions import MalformedClaim
from ..kinds import ClaimKind
from ..models import BucketClaim, CredentialSource, ObjectUser, SecretRef


def _credential_source_from_spec(spec: dict[str, Any]) -> CredentialSource:
    """Pick the single credential source a claim spec names."""
    secret_name = spec.get("secretName")
    secret_ref = spec.get("secretRef")
    if not secret_name and isinstance(secret_ref, dict):
        secret_name = secret_ref.get("name")
    elif not secret_name and isinstance(secret_ref, str):
        secret_name = secret_ref
    object_user = spec.get("objectUser")

    if secret_name and object_user:
        raise MalformedClaim("only one of secretName/secretRef and objectUser may be set")
    if secret_name:
        return SecretRef(name=str(secret_name))
    if object_user:
        return ObjectUser(name=str(object_user))
    raise MalformedClaim("one of secretName/secretRef or objectUser is required")


def create_claim_from_resource(
    claim_kind: ClaimKind,
    spec: dict[str, Any],
    meta: dict[str, Any],
    status: dict[str, Any] | None = None,
) -> BucketClaim:
    """Create a :class:`BucketClaim` snapshot from a watched resource.

    A bucket name recorded in ``status.bucketName`` by an earlier
    reconciliation takes effect when the spec does not pin one, so
    re-delivered events reuse the bucket instead of generating a new name.
    Only the status value marks a bucket as provisioned by this operator.

    Args:
        claim_kind: Kind the resource belongs to
        spec: Resource spec
        meta: Resource metadata
        status: Resource status, if any

    Returns:
        Immutable claim snapshot

    Raises:
        MalformedClaim: If identity or credential fields are missing or invalid
    """
    name = meta.get("name")
    namespace = meta.get("namespace")
    if not name or not namespace:
        raise MalformedClaim("metadata.name and metadata.namespace are required")

    spec = spec or {}
    status = status or {}

    deletion_policy = spec.get("deletionPolicy") or DELETION_POLICY_RETAIN
    if deletion_policy not in (DELETION_POLICY_RETAIN, DELETION_POLICY_DELETE):
        raise MalformedClaim(
            f"deletionPolicy must be {DELETION_POLICY_RETAIN} or {DELETION_POLICY_DELETE}, "
            f"got {deletion_policy!r}"
        )

    prefix = spec.get("generateBucketName") or spec.get("bucketNamePrefix") or ""
    bucket_name = spec.get("bucketName") or status.get("bucketName") or None
    provisioned = status.get("bucketName") or None

    return BucketClaim(
        kind=claim_kind.kind,
        name=name,
        namespace=namespace,
        credential_source=_credential_source_from_spec(spec),
        uid=meta.get("uid", ""),
        generation=meta.get("generation", 0) or 0,
        resource_version=meta.get("resourceVersion", ""),
        bucket_name_prefix=str(prefix),
        bucket_name=str(bucket_name) if bucket_name else None,
        provisioned_bucket_name=str(provisioned) if provisioned else None,
        deletion_policy=deletion_policy,
    )
