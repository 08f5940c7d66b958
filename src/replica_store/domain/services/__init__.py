"""Domain services."""

from replica_store.domain.services.placement_service import (
    PlacementService,
    replication_key,
)
from replica_store.domain.services.replication_service import ReplicationService
from replica_store.domain.services.version_manager import VersionManager
from replica_store.domain.services.integrity import compute_checksum, verify_checksum

__all__ = [
    "PlacementService",
    "ReplicationService",
    "VersionManager",
    "replication_key",
    "compute_checksum",
    "verify_checksum",
]
