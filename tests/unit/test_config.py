"""Unit tests for Replica Store configuration."""

import pytest
from pydantic import ValidationError

from replica_store.infrastructure.config import (
    Config,
    NodeClientConfig,
    ObservabilityConfig,
    ReplicationConfig,
)


@pytest.mark.unit
class TestConfig:
    """Test configuration loading and validation."""

    def test_default_config(self):
        """Test default configuration values."""
        config = Config()
        assert config.replication.default_replication_factor == 2
        assert config.node_client.request_timeout_seconds == 30.0
        assert config.observability.log_format == "json"

    def test_replication_config_defaults(self):
        """Test replication configuration defaults."""
        replication = ReplicationConfig()
        assert replication.max_parallel_writes == 8
        assert replication.write_deadline_seconds is None
        assert replication.verify_checksums is False
        assert replication.max_allocation_attempts == 5

    def test_replication_factor_must_be_positive(self):
        """Test that a zero replication factor is rejected."""
        with pytest.raises(ValidationError):
            ReplicationConfig(default_replication_factor=0)

    def test_write_deadline_must_be_positive(self):
        """Test that a non-positive write deadline is rejected."""
        with pytest.raises(ValidationError):
            ReplicationConfig(write_deadline_seconds=0)

    def test_observability_defaults(self):
        """Test observability configuration defaults."""
        observability = ObservabilityConfig()
        assert observability.log_level == "info"
        assert observability.otlp_endpoint == ""
        assert observability.environment == "development"

    def test_env_override(self, monkeypatch):
        """Test that environment variables override defaults."""
        monkeypatch.setenv("REPLICA_STORE_REPLICATION_DEFAULT_REPLICATION_FACTOR", "3")
        monkeypatch.setenv("REPLICA_STORE_REPLICATION_VERIFY_CHECKSUMS", "true")
        monkeypatch.setenv("REPLICA_STORE_NODE_CLIENT_REQUEST_TIMEOUT_SECONDS", "5")

        replication = ReplicationConfig()
        assert replication.default_replication_factor == 3
        assert replication.verify_checksums is True
        assert NodeClientConfig().request_timeout_seconds == 5.0
