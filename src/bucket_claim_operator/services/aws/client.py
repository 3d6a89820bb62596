"""boto3 implementation of the storage provisioner."""

from __future__ import annotations

import logging
import time
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ... import metrics
from ...models import Credentials, ProvisionResult
from ...tracing import trace_span
from ...utils.errors import sanitize_exception

ALREADY_OWNED_CODES = {"BucketAlreadyOwnedByYou"}
NOT_FOUND_CODES = {"NoSuchBucket", "404", "NotFound"}


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "Unknown")


class S3StorageProvisioner:
    """Creates and deletes buckets on an S3-compatible endpoint.

    Every call builds its own client from the credentials it is given, so
    rotated credentials take effect on the next claim without any cache to
    invalidate.
    """

    def __init__(
        self,
        connect_timeout: float,
        read_timeout: float,
        endpoint_url: str | None = None,
        region: str = "us-east-1",
        path_style: bool = True,
        insecure_skip_verify: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the provisioner.

        Args:
            connect_timeout: Connection timeout in seconds for each S3 request
            read_timeout: Read timeout in seconds for each S3 request
            endpoint_url: S3 endpoint URL (AWS default endpoint when None)
            region: Region to sign requests for and create buckets in
            path_style: Use path-style addressing
            insecure_skip_verify: Skip TLS verification
            logger: Logger for provisioning diagnostics
        """
        self.endpoint_url = endpoint_url
        self.region = region
        self.insecure_skip_verify = insecure_skip_verify
        self.logger = logger or logging.getLogger(__name__)
        self.client_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path" if path_style else "auto"},
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
            # Re-delivery of the claim is the only retry mechanism
            retries={"mode": "standard", "total_max_attempts": 1},
        )

    @property
    def endpoint(self) -> str:
        if self.endpoint_url:
            return self.endpoint_url
        if self.region == "us-east-1":
            return "https://s3.amazonaws.com"
        return f"https://s3.{self.region}.amazonaws.com"

    def _make_client(self, credentials: Credentials) -> Any:
        """Create a request-scoped S3 client for ``credentials``."""
        return boto3.client(
            "s3",
            endpoint_url=self.endpoint_url,
            region_name=self.region,
            aws_access_key_id=credentials.access_key,
            aws_secret_access_key=credentials.secret_key,
            config=self.client_config,
            verify=not self.insecure_skip_verify,
        )

    def create_bucket(self, name: str, credentials: Credentials) -> ProvisionResult:
        """Create bucket ``name``.

        ``BucketAlreadyOwnedByYou`` counts as success so repeated requests
        for the same name converge. ``BucketAlreadyExists`` means another
        owner holds the name and is a failure.
        """
        create_params: dict[str, Any] = {"Bucket": name}
        if self.region and self.region != "us-east-1":
            create_params["CreateBucketConfiguration"] = {"LocationConstraint": self.region}

        start_time = time.time()
        with trace_span("create_bucket", attributes={"bucket.name": name}):
            try:
                s3_client = self._make_client(credentials)
                s3_client.create_bucket(**create_params)
                result = ProvisionResult.created()
                self.logger.info(f"Created bucket {name}")
            except ClientError as e:
                code = _error_code(e)
                if code in ALREADY_OWNED_CODES:
                    result = ProvisionResult.already_exists()
                    self.logger.info(f"Bucket {name} already exists and is owned by these credentials")
                else:
                    result = ProvisionResult.failed(f"{code}: {sanitize_exception(e)}")
                    self.logger.error(f"Failed to create bucket {name}: {result.reason}")
            except BotoCoreError as e:
                result = ProvisionResult.failed(f"{type(e).__name__}: {sanitize_exception(e)}")
                self.logger.error(f"Failed to create bucket {name}: {result.reason}")
            finally:
                duration = time.time() - start_time
                metrics.api_call_duration_seconds.labels(api_type="s3", operation="create_bucket").observe(duration)

        metrics.bucket_operations_total.labels(operation="create", result=result.state.value).inc()
        return result

    def delete_bucket(self, name: str, credentials: Credentials) -> ProvisionResult:
        """Delete bucket ``name``; a bucket that is already gone counts as success.

        Non-empty buckets are not emptied first; ``BucketNotEmpty`` is
        reported as a failure.
        """
        start_time = time.time()
        with trace_span("delete_bucket", attributes={"bucket.name": name}):
            try:
                s3_client = self._make_client(credentials)
                s3_client.delete_bucket(Bucket=name)
                result = ProvisionResult.deleted()
                self.logger.info(f"Deleted bucket {name}")
            except ClientError as e:
                code = _error_code(e)
                if code in NOT_FOUND_CODES:
                    result = ProvisionResult.not_found()
                    self.logger.info(f"Bucket {name} does not exist, nothing to delete")
                else:
                    result = ProvisionResult.failed(f"{code}: {sanitize_exception(e)}")
                    self.logger.error(f"Failed to delete bucket {name}: {result.reason}")
            except BotoCoreError as e:
                result = ProvisionResult.failed(f"{type(e).__name__}: {sanitize_exception(e)}")
                self.logger.error(f"Failed to delete bucket {name}: {result.reason}")
            finally:
                duration = time.time() - start_time
                metrics.api_call_duration_seconds.labels(api_type="s3", operation="delete_bucket").observe(duration)

        metrics.bucket_operations_total.labels(operation="delete", result=result.state.value).inc()
        return result
