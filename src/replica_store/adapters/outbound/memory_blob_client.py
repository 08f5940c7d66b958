"""In-process blob node client.

Each node's blobs live in a dictionary keyed by node ID. Faults can be
injected per node to simulate partitions, failing disks or corrupted
replicas, which is how the replication paths are exercised without a
network.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from replica_store.domain.entities.node import NodeStatus, StorageNode
from replica_store.domain.errors import (
    BlobNotFoundError,
    NodeError,
    NodeUnreachableError,
)

logger = logging.getLogger(__name__)


class InMemoryBlobNodeClient:
    """BlobNodeClient backed by per-node dictionaries."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._blobs: dict[str, dict[str, bytes]] = {}  # node_id -> path -> data
        self._unreachable: set[str] = set()
        self._failing_stores: set[str] = set()
        self._failing_fetches: set[str] = set()
        self._store_hooks: dict[str, Callable[[], None]] = {}
        self.store_calls: list[tuple[str, str]] = []
        self.fetch_calls: list[tuple[str, str]] = []
        self.delete_calls: list[tuple[str, str]] = []

    # Fault injection

    def partition(self, node_id: str) -> None:
        """Make a node unreachable for every call."""
        with self._lock:
            self._unreachable.add(node_id)

    def heal(self, node_id: str) -> None:
        """Undo every injected fault for a node."""
        with self._lock:
            self._unreachable.discard(node_id)
            self._failing_stores.discard(node_id)
            self._failing_fetches.discard(node_id)
            self._store_hooks.pop(node_id, None)

    def fail_stores(self, node_id: str) -> None:
        """Reject store calls on a node with a node error."""
        with self._lock:
            self._failing_stores.add(node_id)

    def fail_fetches(self, node_id: str) -> None:
        """Reject fetch calls on a node with a node error."""
        with self._lock:
            self._failing_fetches.add(node_id)

    def on_store(self, node_id: str, hook: Callable[[], None]) -> None:
        """Run ``hook`` before a store on ``node_id`` (e.g. to block it)."""
        with self._lock:
            self._store_hooks[node_id] = hook

    def corrupt(self, node_id: str, path: str, data: bytes) -> None:
        """Overwrite a stored blob with different bytes."""
        with self._lock:
            self._blobs.setdefault(node_id, {})[path] = data

    def blobs_on(self, node_id: str) -> dict[str, bytes]:
        with self._lock:
            return dict(self._blobs.get(node_id, {}))

    # BlobNodeClient

    def store(self, node: StorageNode, path: str, data: bytes) -> None:
        with self._lock:
            self.store_calls.append((node.node_id, path))
            hook = self._store_hooks.get(node.node_id)
        if hook is not None:
            hook()
        with self._lock:
            self._check_reachable(node)
            if node.node_id in self._failing_stores:
                raise NodeError(node.node_id, "Storage operation failed. Status: 500")
            self._blobs.setdefault(node.node_id, {})[path] = bytes(data)
        logger.debug("Stored %d bytes on node %s at %s", len(data), node.name, path)

    def fetch(self, node: StorageNode, path: str) -> bytes:
        with self._lock:
            self.fetch_calls.append((node.node_id, path))
            self._check_reachable(node)
            if node.node_id in self._failing_fetches:
                raise NodeError(node.node_id, "Fetch failed. Status: 500")
            data = self._blobs.get(node.node_id, {}).get(path)
        if data is None:
            raise BlobNotFoundError(node.node_id, f"no blob at {path}")
        return data

    def delete(self, node: StorageNode, path: str) -> None:
        with self._lock:
            self.delete_calls.append((node.node_id, path))
            self._check_reachable(node)
            self._blobs.get(node.node_id, {}).pop(path, None)

    def health(self, node: StorageNode) -> NodeStatus:
        with self._lock:
            if node.node_id in self._unreachable:
                return NodeStatus.DOWN
        return NodeStatus.UP

    def _check_reachable(self, node: StorageNode) -> None:
        if node.node_id in self._unreachable:
            raise NodeUnreachableError(node.node_id, f"Connection failed to {node.address}")
