"""Replica descriptors recorded for each object version."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class WriteStatus(str, Enum):
    """Outcome of writing one replica at upload time."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


@dataclass(frozen=True, slots=True)
class ReplicaDescriptor:
    """Address of one copy of one version's bytes.

    ``(node_id, storage_path)`` is the durable, re-derivable address.
    ``write_status`` and ``error`` describe the write attempt only and are
    not re-verified on read.

    Example:
        >>> r = ReplicaDescriptor("node-1", "photos/7/3/blob", WriteStatus.SUCCESS)
        >>> r.succeeded
        True
    """

    node_id: str
    storage_path: str
    write_status: WriteStatus
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.write_status is WriteStatus.SUCCESS

    def to_dict(self) -> dict:
        """Serialize for API responses and logs."""
        data = {
            "node_id": self.node_id,
            "storage_path": self.storage_path,
            "write_status": self.write_status.value,
        }
        if self.error is not None:
            data["error"] = self.error
        return data
