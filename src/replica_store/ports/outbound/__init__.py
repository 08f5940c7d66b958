"""Outbound ports - interfaces for external collaborators.

The replication engine depends on three external systems:
- the node registry (which storage nodes exist and which are UP),
- the storage nodes themselves (one blob client call per node),
- the metadata store (buckets, object entries and object versions).

References:
    - DESIGN.md (Ports)
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Optional, Protocol

from replica_store.domain.entities.bucket import Bucket
from replica_store.domain.entities.node import NodeStatus, StorageNode
from replica_store.domain.entities.object import ObjectEntry, ObjectVersion


# =============================================================================
# Node Registry Port
# =============================================================================


class NodeRegistry(Protocol):
    """Read-only view of the storage node registry.

    Thread Safety:
        All methods must be thread-safe. Each placement decision takes one
        snapshot via ``list_up_nodes``; staleness is tolerated and shows up
        as a failed write or read against that node.
    """

    @abstractmethod
    def list_up_nodes(self) -> list[StorageNode]:
        """Return a snapshot of the nodes currently UP.

        Returns:
            Nodes with status UP, in no particular order.
        """
        ...

    @abstractmethod
    def get_node(self, node_id: str) -> Optional[StorageNode]:
        """Look up a node by ID regardless of status.

        Args:
            node_id: Node ID.

        Returns:
            Node or None if unknown.
        """
        ...


# =============================================================================
# Blob Node Client Port
# =============================================================================


class BlobNodeClient(Protocol):
    """Uniform store/fetch/delete/health calls against one storage node.

    ``path`` is an opaque string chosen by the engine. Containment of the
    path inside the node's storage root is enforced by the node.

    Errors:
        NodeUnreachableError: connection failure or timeout.
        BlobNotFoundError: the node has no blob at ``path``.
        NodeError: any other non-success result.

    Thread Safety:
        Implementations must be safe to call from several threads at once;
        the replication coordinator fans writes out over a thread pool.
    """

    @abstractmethod
    def store(self, node: StorageNode, path: str, data: bytes) -> None:
        """Store bytes on a node.

        Args:
            node: Target node.
            path: Storage path on the node.
            data: Blob content.
        """
        ...

    @abstractmethod
    def fetch(self, node: StorageNode, path: str) -> bytes:
        """Fetch bytes from a node.

        Args:
            node: Source node.
            path: Storage path on the node.

        Returns:
            Blob content.
        """
        ...

    @abstractmethod
    def delete(self, node: StorageNode, path: str) -> None:
        """Delete a blob from a node.

        Not used by the engine (deletes are tombstones); reserved for a
        future hard-delete.

        Args:
            node: Target node.
            path: Storage path on the node.
        """
        ...

    @abstractmethod
    def health(self, node: StorageNode) -> NodeStatus:
        """Check a node's health.

        Args:
            node: Node to check.

        Returns:
            NodeStatus.UP or NodeStatus.DOWN. Never raises for an unhealthy
            node.
        """
        ...


# =============================================================================
# Metadata Store Port
# =============================================================================


class MetadataStore(Protocol):
    """Repository for buckets, object entries and object versions.

    Thread Safety:
        All methods must be thread-safe. ``compare_and_set_next_version``
        must be atomic: it is the single point of mutual exclusion for
        version allocation.
    """

    @abstractmethod
    def create_bucket(self, name: str) -> Bucket:
        """Create a bucket.

        Raises:
            BucketExistsError: If the name is taken.
        """
        ...

    @abstractmethod
    def get_bucket_by_name(self, name: str) -> Optional[Bucket]:
        """Get a bucket by name, or None."""
        ...

    @abstractmethod
    def get_entry(self, bucket_id: str, key: str) -> Optional[ObjectEntry]:
        """Get the entry for a key, or None."""
        ...

    @abstractmethod
    def get_or_create_entry(self, bucket_id: str, key: str) -> ObjectEntry:
        """Get the entry for a key, creating it with ``next_version=1``."""
        ...

    @abstractmethod
    def list_entries(self, bucket_id: str, prefix: str = "") -> list[ObjectEntry]:
        """List entries of a bucket whose key starts with ``prefix``."""
        ...

    @abstractmethod
    def compare_and_set_next_version(
        self, entry_id: int, expected: int, new: int
    ) -> bool:
        """Atomically move an entry's counter from ``expected`` to ``new``.

        Args:
            entry_id: Entry ID.
            expected: Counter value the caller read.
            new: Value to store.

        Returns:
            True if the counter still held ``expected`` and was updated,
            False if another writer got there first.
        """
        ...

    @abstractmethod
    def save_version(self, version: ObjectVersion) -> None:
        """Persist a new object version."""
        ...

    @abstractmethod
    def get_version(self, entry_id: int, version: int) -> Optional[ObjectVersion]:
        """Get an exact version, tombstoned or not."""
        ...

    @abstractmethod
    def get_latest_live_version(self, entry_id: int) -> Optional[ObjectVersion]:
        """Get the highest-numbered non-deleted version."""
        ...

    @abstractmethod
    def list_versions(
        self, entry_id: int, include_deleted: bool = False
    ) -> list[ObjectVersion]:
        """List versions in ascending version order."""
        ...

    @abstractmethod
    def set_deleted(self, entry_id: int, version: int, deleted: bool = True) -> bool:
        """Set a version's tombstone flag.

        Returns:
            True if the version exists.
        """
        ...


__all__ = [
    "NodeRegistry",
    "BlobNodeClient",
    "MetadataStore",
]
