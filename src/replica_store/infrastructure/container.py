"""Dependency injection container for Replica Store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

import structlog
from opentelemetry import trace

from replica_store.adapters.outbound.http_blob_client import HttpBlobNodeClient
from replica_store.adapters.outbound.memory_metadata_store import InMemoryMetadataStore
from replica_store.adapters.outbound.memory_node_registry import InMemoryNodeRegistry
from replica_store.application.object_service import ObjectService
from replica_store.infrastructure.config import Config, get_config
from replica_store.infrastructure.logging import setup_logging
from replica_store.infrastructure.metrics import ReplicaStoreMetrics, get_metrics
from replica_store.infrastructure.tracing import setup_tracing
from replica_store.ports.outbound import BlobNodeClient


@dataclass
class Container:
    """Dependency injection container for replica store components."""

    config: Config
    logger: structlog.stdlib.BoundLogger
    tracer: trace.Tracer
    metrics: ReplicaStoreMetrics
    registry: InMemoryNodeRegistry
    metadata_store: InMemoryMetadataStore
    blob_client: BlobNodeClient
    object_service: ObjectService

    _instance: ClassVar[Optional["Container"]] = None

    @classmethod
    def create(cls, blob_client: Optional[BlobNodeClient] = None) -> "Container":
        """Create and initialize the container with all dependencies.

        Args:
            blob_client: Blob node client to use instead of the HTTP client.
        """
        if cls._instance is not None:
            return cls._instance

        config = get_config()
        logger = setup_logging(
            level=config.observability.log_level,
            log_format=config.observability.log_format,
        )
        tracer = setup_tracing(config)
        metrics = get_metrics()

        registry = InMemoryNodeRegistry()
        metadata_store = InMemoryMetadataStore()
        client = blob_client or HttpBlobNodeClient(
            timeout_seconds=config.node_client.request_timeout_seconds
        )
        object_service = ObjectService(
            registry=registry,
            metadata_store=metadata_store,
            client=client,
            config=config.replication,
            metrics=metrics,
            tracer=tracer,
            logger=logger,
        )

        cls._instance = cls(
            config=config,
            logger=logger,
            tracer=tracer,
            metrics=metrics,
            registry=registry,
            metadata_store=metadata_store,
            blob_client=client,
            object_service=object_service,
        )

        logger.info(
            "replica_store_container_initialized",
            environment=config.observability.environment,
            default_replication_factor=config.replication.default_replication_factor,
            verify_checksums=config.replication.verify_checksums,
        )

        return cls._instance

    @classmethod
    def get(cls) -> "Container":
        """Get the singleton container instance."""
        if cls._instance is None:
            return cls.create()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the container (useful for testing)."""
        if cls._instance is not None and isinstance(
            cls._instance.blob_client, HttpBlobNodeClient
        ):
            cls._instance.blob_client.close()
        cls._instance = None


def get_container() -> Container:
    """Get the dependency injection container."""
    return Container.get()
