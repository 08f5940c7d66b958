"""Inbound ports - API contracts for the replica store.

Inbound ports define the operations that the HTTP layer and other callers
use: upload, download and version deletion, plus listings.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Optional, Protocol

from replica_store.domain.entities.object import (
    DownloadResult,
    ObjectSummary,
    ObjectVersion,
    UploadResult,
)


# =============================================================================
# Object Service Port
# =============================================================================


class ObjectServicePort(Protocol):
    """Protocol for replicated, versioned object operations.

    Thread Safety:
        All methods must be thread-safe. Concurrent uploads to the same key
        receive distinct, increasing version numbers.

    Failure model:
        Single-node failures are hidden from the caller whenever at least one
        replica can serve the request.

    Example:
        result = service.upload("photos", "cat.png", data, replication_factor=2)
        if result.degraded:
            # fewer than 2 replicas hold the bytes
            pass
        blob = service.download("photos", "cat.png")
        assert blob.checksum == result.checksum
    """

    @abstractmethod
    def upload(
        self,
        bucket: str,
        key: str,
        data: bytes,
        replication_factor: Optional[int] = None,
    ) -> UploadResult:
        """Upload a new version of an object.

        Args:
            bucket: Bucket name.
            key: Object key.
            data: Object bytes.
            replication_factor: Replica count. Defaults to configuration.

        Returns:
            Version number, checksum and per-replica outcome.

        Raises:
            InvalidReplicationFactorError: If replication_factor < 1.
            BucketNotFoundError: If the bucket does not exist.
            InsufficientReplicasError: If fewer UP nodes than requested.
            ReplicationFailedError: If no replica could be written.
        """
        ...

    @abstractmethod
    def download(
        self, bucket: str, key: str, version: Optional[int] = None
    ) -> DownloadResult:
        """Download a version, the latest live one by default.

        Raises:
            EntryNotFoundError: If the key was never uploaded.
            NoVersionsAvailableError: If no live version exists.
            VersionNotFoundError: If ``version`` does not exist.
            VersionGoneError: If ``version`` is tombstoned.
            AllReplicasFailedError: If no replica could serve the bytes.
        """
        ...

    @abstractmethod
    def delete_version(self, bucket: str, key: str, version: int) -> ObjectVersion:
        """Tombstone a version.

        Raises:
            EntryNotFoundError: If the key was never uploaded.
            VersionNotFoundError: If ``version`` does not exist.
        """
        ...

    @abstractmethod
    def get_version_info(
        self, bucket: str, key: str, version: Optional[int] = None
    ) -> ObjectVersion:
        """Resolve a version's metadata without reading bytes."""
        ...

    @abstractmethod
    def list_objects(self, bucket: str, prefix: str = "") -> list[ObjectSummary]:
        """List object entries of a bucket."""
        ...

    @abstractmethod
    def list_versions(self, bucket: str, key: str) -> list[ObjectVersion]:
        """List live versions of a key, oldest first."""
        ...


__all__ = [
    "ObjectServicePort",
]
