"""Resolution of claim credentials from Kubernetes secrets."""

from __future__ import annotations

import base64
import binascii
import logging
import time
from typing import Any

from kubernetes import client

from .. import metrics
from ..constants import LABEL_USER
from ..exceptions import (
    AmbiguousOrMissingCredential,
    IncompleteCredential,
    NotFound,
    SecretStoreError,
)
from ..kinds import ClaimKind
from ..models import BucketClaim, Credentials, ObjectUser, SecretRef
from ..tracing import trace_span
from .errors import sanitize_exception


def decode_secret_value(value: str | bytes | None) -> str:
    """Decode a value from ``V1Secret.data``.

    The API returns base64 text; some client versions and test doubles
    hand back raw bytes instead. Values that do not decode are treated as
    missing.
    """
    if value is None:
        return ""
    try:
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return ""


def user_label_selector(user: str) -> str:
    """Label selector matching the credential secret of an object user."""
    return f"{LABEL_USER}={user}"


class SecretResolver:
    """Finds and validates the credential secret a claim refers to.

    Read only: secrets are never created or modified here.
    """

    def __init__(
        self,
        api: client.CoreV1Api,
        timeout: float,
        logger: logging.Logger | None = None,
    ):
        """Initialize the resolver.

        Args:
            api: Kubernetes CoreV1Api used for secret reads
            timeout: Request timeout in seconds for every secret store call
            logger: Logger for lookup diagnostics
        """
        self.api = api
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    def resolve(self, claim: BucketClaim, claim_kind: ClaimKind) -> Credentials:
        """Return the access/secret key pair for ``claim``.

        Raises:
            NotFound: The named secret does not exist
            AmbiguousOrMissingCredential: Zero or several secrets carry the user label
            IncompleteCredential: A key field is missing or empty
            SecretStoreError: The secret store request failed
        """
        source = claim.credential_source
        with trace_span("resolve_credentials", kind=claim.kind, attributes={"claim.name": claim.name}):
            if isinstance(source, SecretRef):
                secret = self._read_secret(source.name, claim.namespace)
            elif isinstance(source, ObjectUser):
                secret = self._find_user_secret(source.name, claim.namespace)
            else:
                raise TypeError(f"unsupported credential source: {source!r}")
            return self._extract_credentials(secret, claim_kind)

    def _read_secret(self, name: str, namespace: str) -> Any:
        start_time = time.time()
        try:
            secret = self.api.read_namespaced_secret(
                name=name,
                namespace=namespace,
                _request_timeout=self.timeout,
            )
            metrics.secret_lookups_total.labels(method="name", result="success").inc()
            return secret
        except client.exceptions.ApiException as e:
            if e.status == 404:
                metrics.secret_lookups_total.labels(method="name", result="not_found").inc()
                raise NotFound(name, namespace) from e
            metrics.secret_lookups_total.labels(method="name", result="error").inc()
            raise SecretStoreError(
                f"failed to read secret {namespace}/{name}: {sanitize_exception(e)}"
            ) from e
        except Exception as e:
            # urllib3 timeouts and connection errors surface as plain exceptions
            metrics.secret_lookups_total.labels(method="name", result="error").inc()
            raise SecretStoreError(
                f"failed to read secret {namespace}/{name}: {sanitize_exception(e)}"
            ) from e
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation="read_secret").observe(duration)

    def _find_user_secret(self, user: str, namespace: str) -> Any:
        selector = user_label_selector(user)
        start_time = time.time()
        try:
            secret_list = self.api.list_namespaced_secret(
                namespace=namespace,
                label_selector=selector,
                _request_timeout=self.timeout,
            )
        except Exception as e:
            metrics.secret_lookups_total.labels(method="label", result="error").inc()
            raise SecretStoreError(
                f"could not list user secrets by '{LABEL_USER}' label: {sanitize_exception(e)}"
            ) from e
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation="list_secrets").observe(duration)

        items = list(secret_list.items or [])
        if len(items) != 1:
            # A user owns exactly one live credential secret; never guess between several.
            metrics.secret_lookups_total.labels(method="label", result="ambiguous").inc()
            raise AmbiguousOrMissingCredential(user, namespace, len(items))

        metrics.secret_lookups_total.labels(method="label", result="success").inc()
        self.logger.debug(f"Found credential secret {items[0].metadata.name} for user {namespace}/{user}")
        return items[0]

    def _extract_credentials(self, secret: Any, claim_kind: ClaimKind) -> Credentials:
        secret_name = secret.metadata.name if secret.metadata else "unknown"
        data = secret.data or {}

        access_key = decode_secret_value(data.get(claim_kind.access_key_field))
        if not access_key:
            raise IncompleteCredential(secret_name, claim_kind.access_key_field)

        secret_key = decode_secret_value(data.get(claim_kind.secret_key_field))
        if not secret_key:
            raise IncompleteCredential(secret_name, claim_kind.secret_key_field)

        return Credentials(access_key=access_key, secret_key=secret_key)
