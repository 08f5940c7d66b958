"""Integration tests for replicated object lifecycle operations."""

import threading

import pytest

from replica_store.adapters.outbound.memory_blob_client import InMemoryBlobNodeClient
from replica_store.adapters.outbound.memory_metadata_store import InMemoryMetadataStore
from replica_store.adapters.outbound.memory_node_registry import InMemoryNodeRegistry
from replica_store.application.object_service import ObjectService
from replica_store.domain.entities.node import NodeStatus
from replica_store.domain.entities.replica import WriteStatus
from replica_store.domain.errors import (
    AllReplicasFailedError,
    BucketNotFoundError,
    EntryNotFoundError,
    InsufficientReplicasError,
    ReplicationFailedError,
    VersionGoneError,
)
from replica_store.domain.services.integrity import compute_checksum
from replica_store.domain.services.placement_service import PlacementService
from replica_store.infrastructure.config import ReplicationConfig


@pytest.mark.integration
class TestUploadDownload:
    """Integration tests for upload and download."""

    def test_round_trip(self, service, blob_client, sample_object_data):
        """Test that uploaded bytes come back unchanged."""
        result = service.upload("photos", "cat.png", sample_object_data)

        assert result.version == 1
        assert result.checksum == compute_checksum(sample_object_data)
        assert result.successful_replicas == 2
        assert not result.degraded

        downloaded = service.download("photos", "cat.png")
        assert downloaded.data == sample_object_data
        assert downloaded.checksum == result.checksum
        assert downloaded.version == 1
        assert downloaded.size == len(sample_object_data)

    def test_replicas_share_one_storage_path(self, service, blob_client):
        """Test that every replica uses the same relative path."""
        result = service.upload("photos", "cat.png", b"meow", replication_factor=3)

        paths = {r.storage_path for r in result.replicas}
        assert len(paths) == 1
        path = paths.pop()
        assert path.startswith("photos/") and path.endswith("/1/blob")
        for node_id in ("node-a", "node-b", "node-c"):
            assert blob_client.blobs_on(node_id)[path] == b"meow"

    def test_replicas_follow_placement(self, service):
        """Test that the recorded replica order is the placement order."""
        result = service.upload("photos", "cat.png", b"meow")
        expected = service.placement.select_replicas("photos/cat.png", 2)
        assert [r.node_id for r in result.replicas] == [n.node_id for n in expected]

    def test_versions_are_sequential(self, service):
        """Test that repeated uploads create new versions."""
        versions = [service.upload("photos", "log.txt", f"v{i}".encode()).version for i in range(3)]
        assert versions == [1, 2, 3]
        assert service.download("photos", "log.txt").data == b"v2"
        assert service.download("photos", "log.txt", version=1).data == b"v0"

    def test_concurrent_uploads_get_distinct_versions(self, registry, metadata_store, blob_client):
        """Test concurrent uploads of one key."""
        service = ObjectService(
            registry,
            metadata_store,
            blob_client,
            config=ReplicationConfig(max_allocation_attempts=100),
        )
        results = []
        lock = threading.Lock()

        def upload(i):
            result = service.upload("photos", "hot.bin", bytes([i]))
            with lock:
                results.append(result.version)

        threads = [threading.Thread(target=upload, args=(i,)) for i in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(results) == list(range(1, 11))

    def test_empty_object(self, service):
        """Test that a zero-byte object round-trips."""
        service.upload("photos", "empty", b"")
        assert service.download("photos", "empty").data == b""

    def test_unknown_bucket(self, service):
        """Test uploading to a bucket that does not exist."""
        with pytest.raises(BucketNotFoundError):
            service.upload("videos", "clip.mp4", b"x")

    def test_download_unknown_key(self, service):
        """Test downloading a key that was never uploaded."""
        with pytest.raises(EntryNotFoundError):
            service.download("photos", "missing.png")

    def test_invalid_replication_factor(self, service):
        """Test that R < 1 is rejected."""
        with pytest.raises(ValueError):
            service.upload("photos", "cat.png", b"x", replication_factor=0)


@pytest.mark.integration
class TestPartialFailure:
    """Integration tests for node failures during upload and download."""

    def test_partition_during_upload(self, monkeypatch, metrics, metrics_registry):
        """Test a write that misses one replica and a read that still succeeds.

        Nodes A, B, C score 0.81, 0.42, 0.77 for the key, so A and C are
        selected. C is partitioned, so its replica is recorded FAILED.
        """
        scores = {"A": 0.81, "B": 0.42, "C": 0.77}
        monkeypatch.setattr(
            PlacementService, "score", staticmethod(lambda key, name: scores[name])
        )
        registry = InMemoryNodeRegistry()
        for name in ("A", "B", "C"):
            registry.register_node(name, f"http://{name.lower()}:8080", node_id=name)
        store = InMemoryMetadataStore()
        store.create_bucket("photos")
        client = InMemoryBlobNodeClient()
        client.partition("C")
        service = ObjectService(registry, store, client, metrics=metrics)

        result = service.upload("photos", "cat.png", b"meow", replication_factor=2)

        assert [(r.node_id, r.write_status) for r in result.replicas] == [
            ("A", WriteStatus.SUCCESS),
            ("C", WriteStatus.FAILED),
        ]
        assert result.degraded
        assert metrics_registry.get_sample_value(
            "replica_store_uploads_total", {"bucket": "photos", "outcome": "degraded"}
        ) == 1.0

        downloaded = service.download("photos", "cat.png")
        assert downloaded.data == b"meow"
        assert downloaded.checksum == result.checksum
        assert downloaded.node_id == "A"
        assert [call[0] for call in client.fetch_calls] == ["A"]

    def test_read_fails_over_to_second_replica(self, service, blob_client):
        """Test that a download survives losing the first replica."""
        result = service.upload("photos", "cat.png", b"meow")
        first, second = (r.node_id for r in result.replicas)
        blob_client.partition(first)

        downloaded = service.download("photos", "cat.png")
        assert downloaded.data == b"meow"
        assert downloaded.node_id == second

    def test_all_replicas_down_on_read(self, service, blob_client):
        """Test that a read fails only once every replica has failed."""
        result = service.upload("photos", "cat.png", b"meow")
        for replica in result.replicas:
            blob_client.partition(replica.node_id)

        with pytest.raises(AllReplicasFailedError):
            service.download("photos", "cat.png")

    def test_no_replica_written(self, service, blob_client, registry):
        """Test that an upload reaching no replica records nothing."""
        for node in registry.list_nodes():
            blob_client.fail_stores(node.node_id)

        with pytest.raises(ReplicationFailedError):
            service.upload("photos", "cat.png", b"meow")
        assert service.list_versions("photos", "cat.png") == []

        for node in registry.list_nodes():
            blob_client.heal(node.node_id)
        # The allocated number is never reused
        assert service.upload("photos", "cat.png", b"meow").version == 2

    def test_insufficient_nodes(self, service, registry):
        """Test that an upload with too few UP nodes leaves no trace."""
        registry.set_status("node-c", NodeStatus.DOWN)

        with pytest.raises(InsufficientReplicasError):
            service.upload("photos", "cat.png", b"meow", replication_factor=3)
        assert service.list_objects("photos") == []

        assert service.upload("photos", "cat.png", b"meow").version == 1

    def test_down_node_is_not_selected(self, service, registry):
        """Test that placement skips nodes marked DOWN."""
        registry.set_status("node-a", NodeStatus.DOWN)
        result = service.upload("photos", "cat.png", b"meow")
        assert "node-a" not in {r.node_id for r in result.replicas}


@pytest.mark.integration
class TestVersionLifecycle:
    """Integration tests for deletion and listings."""

    def test_delete_falls_back_to_previous_version(self, service, blob_client):
        """Test that deleting the newest version exposes the previous one."""
        service.upload("photos", "cat.png", b"one")
        service.upload("photos", "cat.png", b"two")
        calls_before = len(blob_client.delete_calls)

        record = service.delete_version("photos", "cat.png", 2)

        assert record.deleted
        assert len(blob_client.delete_calls) == calls_before
        assert service.download("photos", "cat.png").data == b"one"
        with pytest.raises(VersionGoneError):
            service.download("photos", "cat.png", version=2)

    def test_version_info(self, service):
        """Test resolving version metadata without reading bytes."""
        result = service.upload("photos", "cat.png", b"meow")
        info = service.get_version_info("photos", "cat.png")
        assert info.version == result.version
        assert info.checksum == result.checksum
        assert info.successful_replicas == 2

    def test_list_objects(self, service):
        """Test listing keys by prefix."""
        for key in ("2024/b.png", "2024/a.png", "2023/c.png"):
            service.upload("photos", key, b"x")

        assert [s.key for s in service.list_objects("photos")] == [
            "2023/c.png",
            "2024/a.png",
            "2024/b.png",
        ]
        summaries = service.list_objects("photos", prefix="2024/")
        assert [s.key for s in summaries] == ["2024/a.png", "2024/b.png"]
        assert all(s.next_version == 2 for s in summaries)

    def test_list_versions(self, service):
        """Test listing live versions."""
        for data in (b"1", b"2", b"3"):
            service.upload("photos", "cat.png", data)
        service.delete_version("photos", "cat.png", 1)
        assert [v.version for v in service.list_versions("photos", "cat.png")] == [2, 3]
