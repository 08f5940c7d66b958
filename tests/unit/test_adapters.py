"""Unit tests for the in-memory adapters and the DI container."""

import pytest

from replica_store.adapters.outbound.memory_blob_client import InMemoryBlobNodeClient
from replica_store.adapters.outbound.memory_node_registry import InMemoryNodeRegistry
from replica_store.domain.entities.node import NodeStatus
from replica_store.domain.errors import (
    BlobNotFoundError,
    NodeError,
    NodeUnreachableError,
)
from replica_store.infrastructure.container import Container, get_container


@pytest.mark.unit
class TestNodeRegistry:
    """Test the in-memory node registry."""

    def test_register_generates_ids(self):
        """Test generated node IDs."""
        registry = InMemoryNodeRegistry()
        first = registry.register_node("node-a", "http://a:8080")
        second = registry.register_node("node-b", "http://b:8080")
        assert (first.node_id, second.node_id) == ("node-001", "node-002")

    def test_reregister_updates_address(self):
        """Test that registering a known name updates it in place."""
        registry = InMemoryNodeRegistry()
        node = registry.register_node("node-a", "http://a:8080")
        registry.set_status(node.node_id, NodeStatus.DOWN)

        again = registry.register_node("node-a", "http://a2:8080")

        assert again.node_id == node.node_id
        assert again.address == "http://a2:8080"
        assert again.is_up
        assert len(registry.list_nodes()) == 1

    def test_up_snapshot(self, registry):
        """Test that only UP nodes are listed for placement."""
        registry.set_status("node-b", NodeStatus.MAINTENANCE)
        assert {n.node_id for n in registry.list_up_nodes()} == {"node-a", "node-c"}

    def test_unknown_node_status(self, registry):
        """Test changing the status of an unknown node."""
        with pytest.raises(KeyError):
            registry.set_status("node-z", NodeStatus.DOWN)

    def test_heartbeat_and_removal(self, registry):
        """Test heartbeats and node removal."""
        before = registry.get_node("node-a").last_heartbeat
        registry.record_heartbeat("node-a")
        assert registry.get_node("node-a").last_heartbeat >= before

        assert registry.remove_node("node-a")
        assert not registry.remove_node("node-a")
        assert registry.get_node("node-a") is None

    def test_snapshots_are_copies(self, registry):
        """Test that mutating a returned node does not change the registry."""
        node = registry.get_node("node-a")
        node.status = NodeStatus.DOWN
        assert registry.get_node("node-a").is_up


@pytest.mark.unit
class TestInMemoryBlobClient:
    """Test the in-process blob node client."""

    def test_store_fetch_delete(self, registry):
        """Test the basic blob lifecycle."""
        client = InMemoryBlobNodeClient()
        node = registry.get_node("node-a")

        client.store(node, "p", b"data")
        assert client.fetch(node, "p") == b"data"

        client.delete(node, "p")
        with pytest.raises(BlobNotFoundError):
            client.fetch(node, "p")

    def test_fault_injection(self, registry):
        """Test partitions and failing operations."""
        client = InMemoryBlobNodeClient()
        node = registry.get_node("node-a")

        client.partition("node-a")
        assert client.health(node) is NodeStatus.DOWN
        with pytest.raises(NodeUnreachableError):
            client.store(node, "p", b"data")

        client.heal("node-a")
        client.fail_fetches("node-a")
        client.store(node, "p", b"data")
        with pytest.raises(NodeError):
            client.fetch(node, "p")
        assert client.health(node) is NodeStatus.UP


@pytest.mark.unit
class TestContainer:
    """Test dependency wiring."""

    def test_create_with_injected_client(self):
        """Test that the container wires the object service."""
        client = InMemoryBlobNodeClient()
        container = Container.create(blob_client=client)

        assert container.blob_client is client
        assert container.config.replication.default_replication_factor == 2
        assert get_container() is container

    def test_container_runs_uploads(self):
        """Test an upload through the wired service."""
        container = Container.create(blob_client=InMemoryBlobNodeClient())
        container.metadata_store.create_bucket("photos")
        for name in ("node-a", "node-b"):
            container.registry.register_node(name, f"http://{name}:8080")

        result = container.object_service.upload("photos", "cat.png", b"meow")
        assert result.successful_replicas == 2
        assert container.metadata_store.list_buckets()[0].name == "photos"

    def test_reset(self):
        """Test that reset drops the singleton."""
        first = Container.create(blob_client=InMemoryBlobNodeClient())
        Container.reset()
        assert Container.get() is not first
