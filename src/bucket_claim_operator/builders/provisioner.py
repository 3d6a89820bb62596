"""Builders for the secret resolver and storage provisioner."""

from __future__ import annotations

import logging

from kubernetes import client, config

from ..config import OperatorConfig
from ..services.aws.client import S3StorageProvisioner
from ..utils.secrets import SecretResolver


def get_core_v1_api() -> client.CoreV1Api:
    """Get a Kubernetes CoreV1Api client.

    Uses the in-cluster service account when available and falls back to
    the local kubeconfig.
    """
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()

    return client.CoreV1Api()


def create_secret_resolver_from_config(
    operator_config: OperatorConfig,
    logger: logging.Logger | None = None,
    api: client.CoreV1Api | None = None,
) -> SecretResolver:
    """Create a :class:`SecretResolver` bounded by the configured timeout."""
    return SecretResolver(
        api=api or get_core_v1_api(),
        timeout=operator_config.secret_store_timeout,
        logger=logger,
    )


def create_provisioner_from_config(
    operator_config: OperatorConfig,
    logger: logging.Logger | None = None,
) -> S3StorageProvisioner:
    """Create an :class:`S3StorageProvisioner` from operator configuration."""
    return S3StorageProvisioner(
        connect_timeout=operator_config.s3_connect_timeout,
        read_timeout=operator_config.s3_read_timeout,
        endpoint_url=operator_config.s3_endpoint_url,
        region=operator_config.s3_region,
        path_style=operator_config.s3_path_style,
        insecure_skip_verify=operator_config.s3_insecure_skip_verify,
        logger=logger,
    )
