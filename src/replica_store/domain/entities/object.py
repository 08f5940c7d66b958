"""Object entry and object version entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from replica_store.domain.entities.replica import ReplicaDescriptor


@dataclass
class ObjectEntry:
    """A logical key within a bucket.

    ``next_version`` starts at 1 and only ever moves forward. A number handed
    out once is never handed out again, even when the version it was meant
    for is deleted or never written.
    """

    entry_id: int
    bucket_id: str
    key: str
    next_version: int = 1
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class ObjectVersion:
    """One immutable upload of an object.

    Everything except ``deleted`` is fixed at creation. ``replicas`` keeps
    placement order, which is also the read preference order.
    """

    entry_id: int
    version: int
    size: int
    checksum: str  # SHA256 hex
    replicas: tuple[ReplicaDescriptor, ...] = ()
    deleted: bool = False
    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_live(self) -> bool:
        return not self.deleted

    @property
    def successful_replicas(self) -> int:
        """Number of replicas whose write succeeded."""
        return sum(1 for r in self.replicas if r.succeeded)


@dataclass
class ObjectSummary:
    """Listing row for an object entry."""

    key: str
    entry_id: int
    created_at: datetime
    next_version: int


@dataclass
class UploadResult:
    """Outcome of an upload returned to the caller."""

    bucket: str
    key: str
    version: int
    checksum: str
    size: int
    replication_factor: int
    replicas: tuple[ReplicaDescriptor, ...] = ()

    @property
    def successful_replicas(self) -> int:
        return sum(1 for r in self.replicas if r.succeeded)

    @property
    def degraded(self) -> bool:
        """True when fewer than ``replication_factor`` replicas were written."""
        return self.successful_replicas < self.replication_factor

    def replica_summary(self) -> dict:
        """Summarize per-replica outcomes.

        Returns:
            Dict with requested, successful and per-replica details.
        """
        return {
            "requested": self.replication_factor,
            "successful": self.successful_replicas,
            "degraded": self.degraded,
            "replicas": [r.to_dict() for r in self.replicas],
        }


@dataclass
class DownloadResult:
    """Bytes and metadata served by a download."""

    data: bytes
    checksum: str
    version: int
    size: int
    created_at: datetime
    node_id: Optional[str] = None
