"""Storage node registry record."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class NodeStatus(str, Enum):
    """Availability status of a storage node."""

    UP = "UP"
    DOWN = "DOWN"
    MAINTENANCE = "MAINTENANCE"


@dataclass
class StorageNode:
    """A storage node as published by the node registry.

    Read-only to the replication engine. Only UP nodes take part in
    placement; the address is used for every read and write.
    """

    node_id: str
    name: str
    address: str
    status: NodeStatus = NodeStatus.UP
    last_heartbeat: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_up(self) -> bool:
        return self.status is NodeStatus.UP

    def url(self, endpoint: str) -> str:
        """Build an absolute URL for an endpoint on this node.

        Args:
            endpoint: Path such as ``/store``.

        Returns:
            Base address joined with the endpoint.
        """
        return f"{self.address.rstrip('/')}/{endpoint.lstrip('/')}"
