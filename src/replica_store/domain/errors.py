"""Error taxonomy for the placement-and-replication engine.

Placement and version-resolution errors are terminal and reach the caller.
Node errors are per-replica and absorbed by the replication coordinator;
they only surface once every replica is exhausted.
"""

from __future__ import annotations


class ReplicaStoreError(Exception):
    """Base class for replica store errors."""

    pass


# =============================================================================
# Placement
# =============================================================================


class InvalidReplicationFactorError(ReplicaStoreError, ValueError):
    """Raised when a caller asks for fewer than one replica."""

    def __init__(self, replication_factor: int) -> None:
        self.replication_factor = replication_factor
        super().__init__(
            f"Replication factor must be positive, got {replication_factor}"
        )


class InsufficientReplicasError(ReplicaStoreError):
    """Raised when fewer UP nodes exist than the replication factor."""

    def __init__(self, required: int, available: int) -> None:
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient available nodes. Required: {required}, Available: {available}"
        )


# =============================================================================
# Node I/O (recoverable per replica)
# =============================================================================


class NodeError(ReplicaStoreError):
    """Raised when a storage node rejects or fails a request."""

    def __init__(self, node_id: str, message: str) -> None:
        self.node_id = node_id
        super().__init__(f"node {node_id}: {message}")


class NodeUnreachableError(NodeError):
    """Raised on connection failures and timeouts."""

    pass


class BlobNotFoundError(NodeError):
    """Raised when a node has no blob at the requested path."""

    pass


class ChecksumMismatchError(NodeError):
    """Raised when fetched bytes do not match the recorded checksum."""

    pass


# =============================================================================
# Metadata resolution
# =============================================================================


class BucketNotFoundError(ReplicaStoreError):
    """Raised when a bucket does not exist."""

    def __init__(self, bucket: str) -> None:
        self.bucket = bucket
        super().__init__(f"Bucket '{bucket}' not found")


class BucketExistsError(ReplicaStoreError):
    """Raised when creating a bucket whose name is taken."""

    def __init__(self, bucket: str) -> None:
        self.bucket = bucket
        super().__init__(f"Bucket '{bucket}' already exists")


class EntryNotFoundError(ReplicaStoreError):
    """Raised when a key has never been uploaded to a bucket."""

    def __init__(self, bucket: str, key: str) -> None:
        self.bucket = bucket
        self.key = key
        super().__init__(f"Object '{key}' not found in bucket '{bucket}'")


class VersionNotFoundError(ReplicaStoreError):
    """Raised when a specific version does not exist."""

    def __init__(self, key: str, version: int) -> None:
        self.key = key
        self.version = version
        super().__init__(f"Version {version} not found for object '{key}'")


class VersionGoneError(ReplicaStoreError):
    """Raised when a specific version exists but is tombstoned."""

    def __init__(self, key: str, version: int) -> None:
        self.key = key
        self.version = version
        super().__init__(f"Version {version} of object '{key}' has been deleted")


class NoVersionsAvailableError(ReplicaStoreError):
    """Raised when an entry has no live versions."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"No versions available for object '{key}'")


# =============================================================================
# Replication outcomes
# =============================================================================


class AllReplicasFailedError(ReplicaStoreError):
    """Raised when every replica failed on read (service unavailable)."""

    def __init__(self, storage_path: str, attempted: int) -> None:
        self.storage_path = storage_path
        self.attempted = attempted
        super().__init__(
            f"All {attempted} storage locations failed for '{storage_path}'"
        )


class ReplicationFailedError(ReplicaStoreError):
    """Raised when an upload could not be written to any replica."""

    def __init__(self, storage_path: str, attempted: int) -> None:
        self.storage_path = storage_path
        self.attempted = attempted
        super().__init__(
            f"Write of '{storage_path}' failed on all {attempted} selected nodes"
        )


class ConcurrentAllocationConflictError(ReplicaStoreError):
    """Raised when a version counter update lost an optimistic race."""

    def __init__(self, entry_id: int, attempts: int) -> None:
        self.entry_id = entry_id
        self.attempts = attempts
        super().__init__(
            f"Version allocation for entry {entry_id} conflicted {attempts} times"
        )


__all__ = [
    "ReplicaStoreError",
    "InvalidReplicationFactorError",
    "InsufficientReplicasError",
    "NodeError",
    "NodeUnreachableError",
    "BlobNotFoundError",
    "ChecksumMismatchError",
    "BucketNotFoundError",
    "BucketExistsError",
    "EntryNotFoundError",
    "VersionNotFoundError",
    "VersionGoneError",
    "NoVersionsAvailableError",
    "AllReplicasFailedError",
    "ReplicationFailedError",
    "ConcurrentAllocationConflictError",
]
