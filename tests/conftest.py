"""Pytest configuration and shared fixtures for Replica Store tests."""

import pytest
from prometheus_client import CollectorRegistry

from replica_store.adapters.outbound.memory_blob_client import InMemoryBlobNodeClient
from replica_store.adapters.outbound.memory_metadata_store import InMemoryMetadataStore
from replica_store.adapters.outbound.memory_node_registry import InMemoryNodeRegistry
from replica_store.application.object_service import ObjectService
from replica_store.infrastructure.config import Config, ReplicationConfig
from replica_store.infrastructure.container import Container
from replica_store.infrastructure.metrics import ReplicaStoreMetrics


@pytest.fixture(autouse=True)
def reset_container():
    """Reset the DI container before each test."""
    Container.reset()
    yield
    Container.reset()


@pytest.fixture
def test_config() -> Config:
    """Provide a test configuration."""
    return Config()


@pytest.fixture
def metrics_registry() -> CollectorRegistry:
    """Private Prometheus registry so tests never collide."""
    return CollectorRegistry()


@pytest.fixture
def metrics(metrics_registry: CollectorRegistry) -> ReplicaStoreMetrics:
    """Metrics bound to the private registry."""
    return ReplicaStoreMetrics(registry=metrics_registry)


@pytest.fixture
def registry() -> InMemoryNodeRegistry:
    """Node registry with three UP nodes: node-a, node-b, node-c."""
    reg = InMemoryNodeRegistry()
    for name in ("node-a", "node-b", "node-c"):
        reg.register_node(name, f"http://{name}:8080", node_id=name)
    return reg


@pytest.fixture
def blob_client() -> InMemoryBlobNodeClient:
    """In-process blob node client with fault injection."""
    return InMemoryBlobNodeClient()


@pytest.fixture
def metadata_store() -> InMemoryMetadataStore:
    """Metadata store holding one bucket named ``photos``."""
    store = InMemoryMetadataStore()
    store.create_bucket("photos")
    return store


@pytest.fixture
def replication_config() -> ReplicationConfig:
    """Replication configuration with the default factor of 2."""
    return ReplicationConfig()


@pytest.fixture
def service(
    registry: InMemoryNodeRegistry,
    metadata_store: InMemoryMetadataStore,
    blob_client: InMemoryBlobNodeClient,
    replication_config: ReplicationConfig,
    metrics: ReplicaStoreMetrics,
) -> ObjectService:
    """Object service wired to in-memory adapters."""
    return ObjectService(
        registry=registry,
        metadata_store=metadata_store,
        client=blob_client,
        config=replication_config,
        metrics=metrics,
    )


@pytest.fixture
def sample_object_data() -> bytes:
    """Provide sample object data for testing."""
    return b"Hello, World! This is test data for the replica store."


# Pytest markers
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")
