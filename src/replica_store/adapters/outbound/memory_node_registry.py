"""In-memory node registry.

Stands in for the node-management service: nodes are registered with a name
and base address, and their status is changed explicitly. The replication
engine only reads from it.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Optional

from replica_store.domain.entities.node import NodeStatus, StorageNode

logger = logging.getLogger(__name__)


class InMemoryNodeRegistry:
    """Thread-safe in-memory implementation of the NodeRegistry port."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._nodes: dict[str, StorageNode] = {}

    def register_node(
        self,
        name: str,
        address: str,
        node_id: Optional[str] = None,
        status: NodeStatus = NodeStatus.UP,
    ) -> StorageNode:
        """Register a node, or refresh the address of a known name.

        Args:
            name: Unique node name (used for placement scoring).
            address: Base URL of the node.
            node_id: Explicit ID. Generated when omitted.
            status: Initial status.

        Returns:
            The registered node.
        """
        with self._lock:
            existing = next((n for n in self._nodes.values() if n.name == name), None)
            if existing is not None:
                existing.address = address
                existing.status = status
                existing.last_heartbeat = datetime.utcnow()
                logger.info("Re-registered storage node %s at %s", name, address)
                return replace(existing)

            node = StorageNode(
                node_id=node_id or f"node-{next(self._ids):03d}",
                name=name,
                address=address,
                status=status,
            )
            if node.node_id in self._nodes:
                raise ValueError(f"Node ID {node.node_id} already registered")
            self._nodes[node.node_id] = node
            logger.info("Registered storage node %s (%s) at %s", name, node.node_id, address)
            return replace(node)

    def set_status(self, node_id: str, status: NodeStatus) -> StorageNode:
        """Change a node's status.

        Raises:
            KeyError: If the node is unknown.
        """
        with self._lock:
            node = self._nodes[node_id]
            node.status = status
            logger.info("Storage node %s is now %s", node.name, status.value)
            return replace(node)

    def record_heartbeat(self, node_id: str) -> None:
        with self._lock:
            self._nodes[node_id].last_heartbeat = datetime.utcnow()

    def remove_node(self, node_id: str) -> bool:
        with self._lock:
            return self._nodes.pop(node_id, None) is not None

    def list_nodes(self) -> list[StorageNode]:
        with self._lock:
            return [replace(n) for n in self._nodes.values()]

    def list_up_nodes(self) -> list[StorageNode]:
        with self._lock:
            return [replace(n) for n in self._nodes.values() if n.is_up]

    def get_node(self, node_id: str) -> Optional[StorageNode]:
        with self._lock:
            node = self._nodes.get(node_id)
            return replace(node) if node else None
