"""Unit tests for Settings.

Tests that the Settings class validates configuration values correctly and
that the grouped views mirror the flat fields.
"""

import pytest
from pydantic import ValidationError

from src.config import Settings


class TestDefaults:
    """Tests for default values."""

    def test_port_layout_defaults(self):
        """Test the API and enclave port defaults."""
        settings = Settings()

        assert settings.api_port == 8082
        assert settings.enclave_first_host_port == 8083
        assert settings.enclave_internal_port == 8081

    def test_enclave_defaults(self):
        """Test the enclave workload defaults."""
        settings = Settings()

        assert settings.enclave_image == "function"
        assert settings.enclave_public_host == "host.docker.internal"
        assert settings.enclave_mount_path == "/data"
        assert settings.readiness_failure_policy == "keep"


class TestValidators:
    """Tests for field and model validators."""

    def test_rejects_relative_mount_path(self):
        """Test that the mount target must be absolute."""
        with pytest.raises(ValidationError) as exc_info:
            Settings(enclave_mount_path="data")

        assert any("enclave_mount_path" in str(e) for e in exc_info.value.errors())

    def test_rejects_unknown_log_format(self):
        """Test that only json and console are accepted."""
        with pytest.raises(ValidationError):
            Settings(log_format="xml")

    def test_normalizes_log_format(self):
        """Test that log format is lowercased."""
        assert Settings(log_format="CONSOLE").log_format == "console"

    def test_rejects_port_collision(self):
        """Test that the first enclave port cannot be the API port."""
        with pytest.raises(ValidationError):
            Settings(api_port=9000, enclave_first_host_port=9000)

    def test_rejects_out_of_range_port(self):
        """Test that ports must be valid TCP ports."""
        with pytest.raises(ValidationError):
            Settings(enclave_first_host_port=70000)

    def test_rejects_unknown_failure_policy(self):
        """Test that the readiness failure policy is an enum."""
        with pytest.raises(ValidationError):
            Settings(readiness_failure_policy="retry")

    def test_reads_environment(self, monkeypatch):
        """Test that environment variables override defaults."""
        monkeypatch.setenv("ENCLAVE_IMAGE", "function:v2")
        monkeypatch.setenv("READINESS_TIMEOUT_SECONDS", "5")

        settings = Settings()

        assert settings.enclave_image == "function:v2"
        assert settings.readiness_timeout_seconds == 5.0


class TestGroupedViews:
    """Tests for the grouped configuration views."""

    def test_enclave_view(self):
        """Test that the enclave view mirrors flat fields."""
        settings = Settings(enclave_public_host="enclaves.example.com", enclave_internal_port=9001)

        assert settings.enclave.public_host == "enclaves.example.com"
        assert settings.enclave.container_port == "9001/tcp"
        assert settings.enclave.endpoint_url(8083) == "http://enclaves.example.com:8083"

    def test_enclave_environment(self):
        """Test the environment passed to enclave containers."""
        settings = Settings(enclave_use_insecure_http=False)

        env = settings.enclave.environment()

        assert env == {
            "FRONTEND_URL": "http://localhost:3000",
            "FRONTEND_HOST": "localhost",
            "BACKEND_URL": "http://host.docker.internal:8080",
            "USE_INSECURE_HTTP": "false",
        }

    def test_docker_labels(self):
        """Test that labels are namespaced by the configured prefix."""
        settings = Settings(container_label_prefix="org.example")

        assert settings.docker.label("managed") == "org.example.managed"

    def test_api_view(self):
        """Test that the API view carries the server timeouts."""
        settings = Settings(api_keep_alive_timeout=30)

        assert settings.api.keep_alive_timeout == 30
        assert settings.api.shutdown_timeout == 10
