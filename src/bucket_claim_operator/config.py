"""Operator configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

from .constants import KIND_CEPH_OBJECT_BUCKET, KIND_OBJECT_BUCKET_CLAIM
from .exceptions import ConfigError

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

ALL_CLAIM_KINDS = (KIND_OBJECT_BUCKET_CLAIM, KIND_CEPH_OBJECT_BUCKET)


@dataclass(frozen=True)
class OperatorConfig:
    """Runtime settings for the operator.

    The three timeouts have no defaults: every blocking call made while
    reconciling a claim must be bounded by an explicitly configured value.
    """

    secret_store_timeout: float
    s3_connect_timeout: float
    s3_read_timeout: float
    s3_endpoint_url: str | None = None
    s3_region: str = "us-east-1"
    s3_path_style: bool = True
    s3_insecure_skip_verify: bool = False
    watched_kinds: tuple[str, ...] = ALL_CLAIM_KINDS
    watch_namespaces: tuple[str, ...] = field(default_factory=tuple)
    retry_delay: float = 30.0
    shutdown_timeout: float = 30.0
    max_workers: int = 4
    metrics_port: int = 8080
    publish_connection_configmap: bool = True
    log_level: str = "INFO"


def _required_float(env: Mapping[str, str], name: str) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        raise ConfigError(f"{name} is required")
    return _positive_float(name, raw)


def _optional_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    return _positive_float(name, raw)


def _positive_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ConfigError(f"{name} must be greater than zero, got {raw!r}")
    return value


def _optional_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e
    if value <= 0:
        raise ConfigError(f"{name} must be greater than zero, got {raw!r}")
    return value


def _optional_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def _split_list(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def load_watched_kinds(env: Mapping[str, str] | None = None) -> tuple[str, ...]:
    """Claim kinds selected by ``WATCHED_CLAIM_KINDS`` (all kinds when unset).

    Raises:
        ConfigError: If an unknown kind is named
    """
    if env is None:
        env = os.environ

    watched_kinds = _split_list(env.get("WATCHED_CLAIM_KINDS")) or ALL_CLAIM_KINDS
    unknown = [kind for kind in watched_kinds if kind not in ALL_CLAIM_KINDS]
    if unknown:
        raise ConfigError(
            f"WATCHED_CLAIM_KINDS contains unknown kinds: {', '.join(unknown)}"
        )
    return watched_kinds


def load_config(env: Mapping[str, str] | None = None) -> OperatorConfig:
    """Build an :class:`OperatorConfig` from environment variables.

    Args:
        env: Mapping to read from (defaults to ``os.environ``)

    Returns:
        Validated operator configuration

    Raises:
        ConfigError: If a required value is missing or a value is invalid
    """
    if env is None:
        env = os.environ

    watched_kinds = load_watched_kinds(env)

    log_level = env.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"
    if log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigError(f"LOG_LEVEL must be a logging level name, got {log_level!r}")

    return OperatorConfig(
        secret_store_timeout=_required_float(env, "SECRET_STORE_TIMEOUT_SECONDS"),
        s3_connect_timeout=_required_float(env, "S3_CONNECT_TIMEOUT_SECONDS"),
        s3_read_timeout=_required_float(env, "S3_READ_TIMEOUT_SECONDS"),
        s3_endpoint_url=env.get("S3_ENDPOINT_URL") or None,
        s3_region=env.get("S3_REGION") or "us-east-1",
        s3_path_style=_optional_bool(env, "S3_PATH_STYLE", True),
        s3_insecure_skip_verify=_optional_bool(env, "S3_INSECURE_SKIP_VERIFY", False),
        watched_kinds=watched_kinds,
        watch_namespaces=_split_list(env.get("WATCH_NAMESPACE")),
        retry_delay=_optional_float(env, "RETRY_DELAY_SECONDS", 30.0),
        shutdown_timeout=_optional_float(env, "SHUTDOWN_TIMEOUT_SECONDS", 30.0),
        max_workers=_optional_int(env, "MAX_WORKERS", 4),
        metrics_port=_optional_int(env, "METRICS_PORT", 8080),
        publish_connection_configmap=_optional_bool(env, "PUBLISH_CONNECTION_CONFIGMAP", True),
        log_level=log_level,
    )
