"""Base storage provisioner interface."""

from __future__ import annotations

from typing import Protocol

from ...models import Credentials, ProvisionResult


class StorageProvisioner(Protocol):
    """Protocol defining the object-storage calls made while reconciling claims."""

    @property
    def endpoint(self) -> str:
        """Endpoint URL buckets are provisioned against."""
        ...

    def create_bucket(self, name: str, credentials: Credentials) -> ProvisionResult:
        """Create a bucket, classifying the response.

        Never raises for storage errors; they are reported as a failed result.
        """
        ...

    def delete_bucket(self, name: str, credentials: Credentials) -> ProvisionResult:
        """Delete a bucket, classifying the response."""
        ...
