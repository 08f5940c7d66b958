"""Configuration management for Replica Store using Pydantic Settings."""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReplicationConfig(BaseSettings):
    """Placement, replication and versioning configuration."""

    model_config = SettingsConfigDict(env_prefix="REPLICA_STORE_REPLICATION_")

    default_replication_factor: int = Field(default=2, ge=1)
    max_parallel_writes: int = Field(default=8, ge=1)
    write_deadline_seconds: Optional[float] = Field(default=None, gt=0)
    verify_checksums: bool = False
    max_allocation_attempts: int = Field(default=5, ge=1)


class NodeClientConfig(BaseSettings):
    """Blob node client configuration."""

    model_config = SettingsConfigDict(env_prefix="REPLICA_STORE_NODE_CLIENT_")

    request_timeout_seconds: float = Field(default=30.0, gt=0)


class ObservabilityConfig(BaseSettings):
    """Observability configuration."""

    model_config = SettingsConfigDict(env_prefix="REPLICA_STORE_OBSERVABILITY_")

    log_level: str = "info"
    log_format: str = "json"
    otlp_endpoint: str = ""
    environment: str = "development"


class Config(BaseSettings):
    """Root configuration for Replica Store."""

    model_config = SettingsConfigDict(
        env_prefix="REPLICA_STORE_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    replication: ReplicationConfig = Field(default_factory=ReplicationConfig)
    node_client: NodeClientConfig = Field(default_factory=NodeClientConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config()
