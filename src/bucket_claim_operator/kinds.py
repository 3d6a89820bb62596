"""Claim kinds watched by the operator.

Every kind is reconciled by the same :class:`ClaimReconciler`; a
:class:`ClaimKind` only carries what differs between them: where the
resource lives in the API and which secret keys hold the credentials.
"""

from __future__ import annotations

from dataclasses import dataclass

from .constants import KIND_CEPH_OBJECT_BUCKET, KIND_OBJECT_BUCKET_CLAIM


@dataclass(frozen=True)
class ClaimKind:
    """API coordinates and credential layout of one claim kind."""

    kind: str
    group: str
    version: str
    plural: str
    access_key_field: str
    secret_key_field: str

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}"


OBJECT_BUCKET_CLAIM = ClaimKind(
    kind=KIND_OBJECT_BUCKET_CLAIM,
    group="rook.io",
    version="v1alpha2",
    plural="objectbucketclaims",
    access_key_field="accessKeyId",
    secret_key_field="secretAccessKey",
)

CEPH_OBJECT_BUCKET = ClaimKind(
    kind=KIND_CEPH_OBJECT_BUCKET,
    group="ceph.rook.io",
    version="v1beta1",
    plural="cephobjectbuckets",
    access_key_field="AccessKey",
    secret_key_field="SecretKey",
)

CLAIM_KINDS: dict[str, ClaimKind] = {
    claim_kind.kind: claim_kind for claim_kind in (OBJECT_BUCKET_CLAIM, CEPH_OBJECT_BUCKET)
}


def get_claim_kind(kind: str) -> ClaimKind:
    """Look up a registered claim kind by its Kubernetes kind name.

    Raises:
        KeyError: If the kind is not registered
    """
    return CLAIM_KINDS[kind]
