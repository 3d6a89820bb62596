"""Builders for claims and reconciliation collaborators."""

from .claim import create_claim_from_resource
from .provisioner import create_provisioner_from_config, create_secret_resolver_from_config

__all__ = [
    "create_claim_from_resource",
    "create_provisioner_from_config",
    "create_secret_resolver_from_config",
]
