"""Version manager: allocation and resolution of object versions.

Allocation uses optimistic read-modify-write on the entry's ``next_version``
counter. The metadata store's compare-and-set is the only point of mutual
exclusion, so two concurrent allocations for the same entry never return the
same number. A lost race re-reads the counter and tries again.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from replica_store.domain.entities.bucket import Bucket
from replica_store.domain.entities.object import ObjectEntry, ObjectVersion
from replica_store.domain.errors import (
    BucketNotFoundError,
    ConcurrentAllocationConflictError,
    EntryNotFoundError,
    NoVersionsAvailableError,
    VersionGoneError,
    VersionNotFoundError,
)
from replica_store.ports.outbound import MetadataStore

if TYPE_CHECKING:
    from replica_store.infrastructure.metrics import ReplicaStoreMetrics

logger = logging.getLogger(__name__)


class VersionManager:
    """Allocates, resolves and tombstones object versions."""

    def __init__(
        self,
        store: MetadataStore,
        max_allocation_attempts: int = 5,
        metrics: Optional["ReplicaStoreMetrics"] = None,
    ) -> None:
        """Initialize the version manager.

        Args:
            store: Metadata store.
            max_allocation_attempts: Optimistic retries before giving up.
            metrics: Optional metrics collector.
        """
        if max_allocation_attempts < 1:
            raise ValueError("max_allocation_attempts must be at least 1")
        self._store = store
        self._max_attempts = max_allocation_attempts
        self._metrics = metrics

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_bucket(self, bucket: str) -> Bucket:
        """Get a bucket by name.

        Raises:
            BucketNotFoundError: If the bucket does not exist.
        """
        found = self._store.get_bucket_by_name(bucket)
        if found is None:
            raise BucketNotFoundError(bucket)
        return found

    def get_entry(self, bucket: str, key: str) -> ObjectEntry:
        """Get the entry for a key.

        Raises:
            BucketNotFoundError: If the bucket does not exist.
            EntryNotFoundError: If the key was never uploaded.
        """
        found = self._store.get_entry(self.get_bucket(bucket).bucket_id, key)
        if found is None:
            raise EntryNotFoundError(bucket, key)
        return found

    # -------------------------------------------------------------------------
    # Allocation
    # -------------------------------------------------------------------------

    def allocate(self, bucket: str, key: str) -> tuple[ObjectEntry, int]:
        """Allocate the next version number for a key.

        Creates the entry on first upload.

        Args:
            bucket: Bucket name.
            key: Object key.

        Returns:
            ``(entry, version)``.

        Raises:
            BucketNotFoundError: If the bucket does not exist.
            ConcurrentAllocationConflictError: If every attempt lost its race.
        """
        entry = self._store.get_or_create_entry(self.get_bucket(bucket).bucket_id, key)
        for attempt in range(1, self._max_attempts + 1):
            current = entry.next_version
            if self._store.compare_and_set_next_version(
                entry.entry_id, current, current + 1
            ):
                logger.debug("Allocated version %d for %s/%s", current, bucket, key)
                return entry, current

            if self._metrics:
                self._metrics.allocation_conflicts.inc()
            logger.debug(
                "Version allocation conflict on %s/%s (attempt %d)",
                bucket,
                key,
                attempt,
            )
            entry = self._store.get_entry(entry.bucket_id, entry.key) or entry
        raise ConcurrentAllocationConflictError(entry.entry_id, self._max_attempts)

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def resolve_latest(self, bucket: str, key: str) -> ObjectVersion:
        """Resolve the newest live version.

        Raises:
            EntryNotFoundError: If the key was never uploaded.
            NoVersionsAvailableError: If no live version exists.
        """
        entry = self.get_entry(bucket, key)
        latest = self._store.get_latest_live_version(entry.entry_id)
        if latest is None:
            raise NoVersionsAvailableError(key)
        return latest

    def resolve_version(self, bucket: str, key: str, version: int) -> ObjectVersion:
        """Resolve an exact version.

        Raises:
            EntryNotFoundError: If the key was never uploaded.
            VersionNotFoundError: If the version does not exist.
            VersionGoneError: If the version is tombstoned.
        """
        found = self._find_version(bucket, key, version)
        if found.deleted:
            raise VersionGoneError(key, version)
        return found

    def resolve(self, bucket: str, key: str, version: Optional[int] = None) -> ObjectVersion:
        """Resolve ``version`` or, when None, the latest live version."""
        if version is None:
            return self.resolve_latest(bucket, key)
        return self.resolve_version(bucket, key, version)

    def list_entries(self, bucket: str, prefix: str = "") -> list[ObjectEntry]:
        """List entries of a bucket whose key starts with ``prefix``."""
        return self._store.list_entries(self.get_bucket(bucket).bucket_id, prefix)

    def list_versions(
        self, bucket: str, key: str, include_deleted: bool = False
    ) -> list[ObjectVersion]:
        """List versions of a key, oldest first."""
        entry = self.get_entry(bucket, key)
        return self._store.list_versions(entry.entry_id, include_deleted=include_deleted)

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def record(self, version: ObjectVersion) -> None:
        """Persist a freshly written version."""
        self._store.save_version(version)

    def tombstone(self, bucket: str, key: str, version: int) -> ObjectVersion:
        """Mark a version deleted. Bytes stay on the nodes.

        Tombstoning an already deleted version is a no-op.

        Raises:
            EntryNotFoundError: If the key was never uploaded.
            VersionNotFoundError: If the version does not exist.
        """
        found = self._find_version(bucket, key, version)
        if not found.deleted:
            self._store.set_deleted(found.entry_id, version, True)
            if self._metrics:
                self._metrics.versions_tombstoned.inc()
        return self._store.get_version(found.entry_id, version) or found

    def _find_version(self, bucket: str, key: str, version: int) -> ObjectVersion:
        entry = self.get_entry(bucket, key)
        found = self._store.get_version(entry.entry_id, version)
        if found is None:
            raise VersionNotFoundError(key, version)
        return found
