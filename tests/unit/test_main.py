"""Tests for operator startup and shutdown wiring."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import kopf
import pytest

from bucket_claim_operator import main as operator_main
from bucket_claim_operator.constants import FINALIZER
from bucket_claim_operator.exceptions import ConfigError

ENV = {
    "SECRET_STORE_TIMEOUT_SECONDS": "5",
    "S3_CONNECT_TIMEOUT_SECONDS": "3",
    "S3_READ_TIMEOUT_SECONDS": "10",
    "WATCHED_CLAIM_KINDS": "ObjectBucketClaim",
    "METRICS_PORT": "9090",
}


@patch("bucket_claim_operator.main.initialize_tracing")
@patch("bucket_claim_operator.main.structured_logging.setup_structured_logging")
@patch("bucket_claim_operator.main.start_health_server")
@patch("bucket_claim_operator.main.get_core_v1_api")
class TestConfigure:
    """Test cases for the startup handler."""

    def test_builds_reconcilers(self, mock_api, mock_server, mock_logging, mock_tracing, monkeypatch):
        """Test that one reconciler is built per watched kind."""
        for key, value in ENV.items():
            monkeypatch.setenv(key, value)
        settings = kopf.OperatorSettings()
        memo = kopf.Memo()

        operator_main.configure(settings=settings, memo=memo)

        assert list(memo.reconcilers) == ["ObjectBucketClaim"]
        assert memo.config.secret_store_timeout == 5.0
        assert settings.persistence.finalizer == FINALIZER
        assert settings.execution.max_workers == 4
        assert mock_server.call_args.args[0] == 9090
        is_ready = mock_server.call_args.kwargs["is_ready"]
        assert is_ready() is True

    def test_invalid_config_aborts_startup(self, mock_api, mock_server, mock_logging, mock_tracing, monkeypatch):
        """Test that a missing timeout stops the operator."""
        monkeypatch.delenv("S3_READ_TIMEOUT_SECONDS", raising=False)
        monkeypatch.setenv("SECRET_STORE_TIMEOUT_SECONDS", "5")
        monkeypatch.setenv("S3_CONNECT_TIMEOUT_SECONDS", "3")

        with pytest.raises(kopf.PermanentError, match="S3_READ_TIMEOUT_SECONDS"):
            operator_main.configure(settings=kopf.OperatorSettings(), memo=kopf.Memo())

        mock_server.assert_not_called()


class TestShutdown:
    """Test cases for the cleanup handler."""

    def test_drains_reconcilers_and_stops_server(self):
        """Test that every reconciler stops before any is waited on."""
        calls = []
        first = MagicMock()
        first.stop_accepting.side_effect = lambda: calls.append("stop-first")
        first.shutdown.side_effect = lambda timeout: calls.append("wait-first") or []
        second = MagicMock()
        second.stop_accepting.side_effect = lambda: calls.append("stop-second")
        second.shutdown.side_effect = lambda timeout: calls.append("wait-second") or []
        memo = kopf.Memo()
        memo.reconcilers = {"a": first, "b": second}
        memo.config = MagicMock(shutdown_timeout=1.0)
        memo.health_server = MagicMock()

        operator_main.shutdown(memo=memo)

        assert calls == ["stop-first", "stop-second", "wait-first", "wait-second"]
        memo.health_server.shutdown.assert_called_once()

    def test_shutdown_before_startup(self):
        """Test that cleanup tolerates a failed startup."""
        operator_main.shutdown(memo=kopf.Memo())


def test_config_error_is_value_error():
    """Test that configuration errors are ValueErrors."""
    assert issubclass(ConfigError, ValueError)
