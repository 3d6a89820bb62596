"""Tests for operator configuration loading."""

from __future__ import annotations

import pytest

from bucket_claim_operator.config import ALL_CLAIM_KINDS, load_config, load_watched_kinds
from bucket_claim_operator.constants import KIND_CEPH_OBJECT_BUCKET
from bucket_claim_operator.exceptions import ConfigError

REQUIRED_ENV = {
    "SECRET_STORE_TIMEOUT_SECONDS": "5",
    "S3_CONNECT_TIMEOUT_SECONDS": "3",
    "S3_READ_TIMEOUT_SECONDS": "10",
}


def env_with(**overrides: str) -> dict[str, str]:
    env = dict(REQUIRED_ENV)
    env.update(overrides)
    return env


class TestLoadConfig:
    """Test cases for load_config."""

    def test_required_timeouts_and_defaults(self):
        """Test that required timeouts are read and optional values default."""
        config = load_config(env_with())

        assert config.secret_store_timeout == 5.0
        assert config.s3_connect_timeout == 3.0
        assert config.s3_read_timeout == 10.0
        assert config.s3_endpoint_url is None
        assert config.s3_region == "us-east-1"
        assert config.s3_path_style is True
        assert config.watched_kinds == ALL_CLAIM_KINDS
        assert config.watch_namespaces == ()
        assert config.publish_connection_configmap is True
        assert config.log_level == "INFO"

    @pytest.mark.parametrize("missing", sorted(REQUIRED_ENV))
    def test_missing_timeout_is_rejected(self, missing):
        """Test that every timeout must be configured explicitly."""
        env = env_with()
        del env[missing]

        with pytest.raises(ConfigError, match=missing):
            load_config(env)

    @pytest.mark.parametrize("value", ["0", "-1", "soon", "   "])
    def test_invalid_timeout_is_rejected(self, value):
        """Test that non-positive or non-numeric timeouts are rejected."""
        with pytest.raises(ConfigError):
            load_config(env_with(S3_READ_TIMEOUT_SECONDS=value))

    def test_optional_values(self):
        """Test parsing of optional settings."""
        config = load_config(env_with(
            S3_ENDPOINT_URL="http://rgw.rook-ceph:8080",
            S3_REGION="eu-central-1",
            S3_PATH_STYLE="false",
            S3_INSECURE_SKIP_VERIFY="yes",
            WATCH_NAMESPACE="team-a, team-b",
            RETRY_DELAY_SECONDS="12.5",
            MAX_WORKERS="8",
            PUBLISH_CONNECTION_CONFIGMAP="off",
            LOG_LEVEL="debug",
        ))

        assert config.s3_endpoint_url == "http://rgw.rook-ceph:8080"
        assert config.s3_region == "eu-central-1"
        assert config.s3_path_style is False
        assert config.s3_insecure_skip_verify is True
        assert config.watch_namespaces == ("team-a", "team-b")
        assert config.retry_delay == 12.5
        assert config.max_workers == 8
        assert config.publish_connection_configmap is False
        assert config.log_level == "DEBUG"

    def test_invalid_boolean_is_rejected(self):
        """Test that unparseable booleans are rejected."""
        with pytest.raises(ConfigError, match="S3_PATH_STYLE"):
            load_config(env_with(S3_PATH_STYLE="maybe"))

    def test_invalid_log_level_is_rejected(self):
        """Test that unknown log levels are rejected."""
        with pytest.raises(ConfigError, match="LOG_LEVEL"):
            load_config(env_with(LOG_LEVEL="chatty"))

    def test_config_is_immutable(self):
        """Test that the loaded configuration cannot be modified."""
        config = load_config(env_with())

        with pytest.raises(AttributeError):
            config.s3_region = "elsewhere"  # type: ignore[misc]


class TestLoadWatchedKinds:
    """Test cases for load_watched_kinds."""

    def test_defaults_to_all_kinds(self):
        """Test that all kinds are watched when unset."""
        assert load_watched_kinds({}) == ALL_CLAIM_KINDS

    def test_subset(self):
        """Test selecting a single kind."""
        assert load_watched_kinds({"WATCHED_CLAIM_KINDS": KIND_CEPH_OBJECT_BUCKET}) == (
            KIND_CEPH_OBJECT_BUCKET,
        )

    def test_unknown_kind_is_rejected(self):
        """Test that unknown kinds are rejected."""
        with pytest.raises(ConfigError, match="Widget"):
            load_watched_kinds({"WATCHED_CLAIM_KINDS": "ObjectBucketClaim,Widget"})
