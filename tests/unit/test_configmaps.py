"""Tests for the connection details ConfigMap."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from kubernetes import client

from bucket_claim_operator.kinds import OBJECT_BUCKET_CLAIM
from bucket_claim_operator.models import BucketClaim, ProvisionedBucket, ProvisionResult, SecretRef
from bucket_claim_operator.utils.configmaps import (
    build_connection_configmap,
    connection_configmap_name,
    connection_details,
    make_configmap_publisher,
    publish_connection_configmap,
)

CLAIM = BucketClaim(
    kind="ObjectBucketClaim",
    name="photos",
    namespace="team-a",
    credential_source=SecretRef("photos-creds"),
    uid="0b7f3c1e",
)
BUCKET = ProvisionedBucket(
    bucket_name="photos-k2x9q",
    endpoint="http://rgw.rook-ceph:8080",
    result=ProvisionResult.created(),
)


class TestConnectionDetails:
    """Test cases for connection_details."""

    @pytest.mark.parametrize(
        "endpoint, host, port, ssl",
        [
            ("http://rgw.rook-ceph:8080", "rgw.rook-ceph", "8080", "false"),
            ("https://s3.amazonaws.com", "s3.amazonaws.com", "443", "true"),
            ("http://minio", "minio", "80", "false"),
            ("objects.example.com", "objects.example.com", "443", "true"),
        ],
    )
    def test_endpoint_is_split(self, endpoint, host, port, ssl):
        """Test splitting endpoints into host, port and TLS flag."""
        details = connection_details(endpoint, "photos-k2x9q")

        assert details == {
            "BUCKET_HOST": host,
            "BUCKET_PORT": port,
            "BUCKET_NAME": "photos-k2x9q",
            "BUCKET_SSL": ssl,
        }


class TestBuildConnectionConfigmap:
    """Test cases for build_connection_configmap."""

    def test_metadata(self):
        """Test the ConfigMap name, labels and owner."""
        configmap = build_connection_configmap(CLAIM, OBJECT_BUCKET_CLAIM, BUCKET)

        assert connection_configmap_name(CLAIM) == "bucket-photos"
        assert configmap.metadata.name == "bucket-photos"
        assert configmap.metadata.namespace == "team-a"
        assert configmap.metadata.labels["objectbucket.io/claim-name"] == "photos"
        owner = configmap.metadata.owner_references[0]
        assert owner.kind == "ObjectBucketClaim"
        assert owner.api_version == "rook.io/v1alpha2"
        assert owner.uid == "0b7f3c1e"
        assert configmap.data["BUCKET_NAME"] == "photos-k2x9q"

    def test_no_owner_without_uid(self):
        """Test that claims without a uid get no owner reference."""
        claim = BucketClaim(kind="ObjectBucketClaim", name="photos", namespace="team-a",
                            credential_source=SecretRef("photos-creds"))

        configmap = build_connection_configmap(claim, OBJECT_BUCKET_CLAIM, BUCKET)

        assert configmap.metadata.owner_references == []


class TestPublishConnectionConfigmap:
    """Test cases for publish_connection_configmap."""

    def test_create(self):
        """Test creating the ConfigMap."""
        api = MagicMock()

        publish_connection_configmap(api, CLAIM, OBJECT_BUCKET_CLAIM, BUCKET, timeout=5.0)

        api.create_namespaced_config_map.assert_called_once()
        assert api.create_namespaced_config_map.call_args.kwargs["_request_timeout"] == 5.0
        api.patch_namespaced_config_map.assert_not_called()

    def test_patch_on_conflict(self):
        """Test that an existing ConfigMap is patched."""
        api = MagicMock()
        api.create_namespaced_config_map.side_effect = client.exceptions.ApiException(status=409)

        publish_connection_configmap(api, CLAIM, OBJECT_BUCKET_CLAIM, BUCKET, timeout=5.0)

        api.patch_namespaced_config_map.assert_called_once()
        assert api.patch_namespaced_config_map.call_args.kwargs["name"] == "bucket-photos"

    def test_other_errors_propagate(self):
        """Test that non-conflict errors are raised."""
        api = MagicMock()
        api.create_namespaced_config_map.side_effect = client.exceptions.ApiException(status=403)

        with pytest.raises(client.exceptions.ApiException):
            publish_connection_configmap(api, CLAIM, OBJECT_BUCKET_CLAIM, BUCKET, timeout=5.0)

    def test_publisher_binds_api_and_kind(self):
        """Test the publisher returned by make_configmap_publisher."""
        api = MagicMock()
        publish = make_configmap_publisher(api, OBJECT_BUCKET_CLAIM, timeout=5.0)

        publish(CLAIM, BUCKET)

        assert api.create_namespaced_config_map.call_args.kwargs["namespace"] == "team-a"
