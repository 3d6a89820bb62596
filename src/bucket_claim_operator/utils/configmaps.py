"""Connection details ConfigMap published for provisioned claims."""

from __future__ import annotations

from typing import Any, Callable
from urllib.parse import urlparse

from kubernetes import client

from ..constants import (
    CONFIGMAP_KEY_HOST,
    CONFIGMAP_KEY_NAME,
    CONFIGMAP_KEY_PORT,
    CONFIGMAP_KEY_SSL,
    CONFIGMAP_PREFIX,
    FIELD_MANAGER,
    LABEL_CLAIM_NAME,
    LABEL_MANAGED_BY,
    OPERATOR_NAME,
)
from ..kinds import ClaimKind
from ..models import BucketClaim, ProvisionedBucket


def connection_configmap_name(claim: BucketClaim) -> str:
    """Name of the ConfigMap holding the connection details of ``claim``."""
    return f"{CONFIGMAP_PREFIX}{claim.name}"


def connection_details(endpoint: str, bucket_name: str) -> dict[str, str]:
    """Split an endpoint URL into the keys consumers read."""
    parsed = urlparse(endpoint if "://" in endpoint else f"https://{endpoint}")
    ssl = parsed.scheme == "https"
    port = parsed.port or (443 if ssl else 80)
    return {
        CONFIGMAP_KEY_HOST: parsed.hostname or "",
        CONFIGMAP_KEY_PORT: str(port),
        CONFIGMAP_KEY_NAME: bucket_name,
        CONFIGMAP_KEY_SSL: "true" if ssl else "false",
    }


def build_connection_configmap(
    claim: BucketClaim,
    claim_kind: ClaimKind,
    bucket: ProvisionedBucket,
) -> client.V1ConfigMap:
    """Build the ConfigMap for ``claim``, owned by the claim.

    The owner reference lets Kubernetes garbage collection remove the
    ConfigMap together with the claim.
    """
    owner_references: list[Any] = []
    if claim.uid:
        owner_references.append(
            client.V1OwnerReference(
                api_version=claim_kind.api_version,
                kind=claim_kind.kind,
                name=claim.name,
                uid=claim.uid,
                controller=True,
                block_owner_deletion=True,
            )
        )

    return client.V1ConfigMap(
        metadata=client.V1ObjectMeta(
            name=connection_configmap_name(claim),
            namespace=claim.namespace,
            owner_references=owner_references,
            labels={
                LABEL_MANAGED_BY: OPERATOR_NAME,
                LABEL_CLAIM_NAME: claim.name,
            },
        ),
        data=connection_details(bucket.endpoint, bucket.bucket_name),
    )


def publish_connection_configmap(
    api: client.CoreV1Api,
    claim: BucketClaim,
    claim_kind: ClaimKind,
    bucket: ProvisionedBucket,
    timeout: float,
) -> None:
    """Create the connection ConfigMap, or patch it when it already exists.

    Raises:
        client.exceptions.ApiException: For API errors other than a conflict on create
    """
    body = build_connection_configmap(claim, claim_kind, bucket)
    try:
        api.create_namespaced_config_map(
            namespace=claim.namespace,
            body=body,
            field_manager=FIELD_MANAGER,
            _request_timeout=timeout,
        )
    except client.exceptions.ApiException as e:
        if e.status != 409:
            raise
        api.patch_namespaced_config_map(
            name=body.metadata.name,
            namespace=claim.namespace,
            body=body,
            field_manager=FIELD_MANAGER,
            _request_timeout=timeout,
        )


def make_configmap_publisher(
    api: client.CoreV1Api,
    claim_kind: ClaimKind,
    timeout: float,
) -> Callable[[BucketClaim, ProvisionedBucket], None]:
    """Bind ``publish_connection_configmap`` to one API client and claim kind."""

    def publish(claim: BucketClaim, bucket: ProvisionedBucket) -> None:
        publish_connection_configmap(api, claim, claim_kind, bucket, timeout)

    return publish
