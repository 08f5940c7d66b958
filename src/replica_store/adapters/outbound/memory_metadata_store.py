"""In-memory metadata store.

Keeps buckets, object entries and object versions in dictionaries behind a
single lock. Records are copied on the way in and out so callers never hold
a reference to stored state, as with a database-backed repository.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import replace
from typing import Optional

from replica_store.domain.entities.bucket import Bucket
from replica_store.domain.entities.object import ObjectEntry, ObjectVersion
from replica_store.domain.errors import BucketExistsError


class InMemoryMetadataStore:
    """Thread-safe in-memory implementation of the MetadataStore port."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._bucket_ids = itertools.count(1)
        self._entry_ids = itertools.count(1)

        self._buckets: dict[str, Bucket] = {}  # name -> Bucket
        self._entries: dict[int, ObjectEntry] = {}  # entry_id -> ObjectEntry
        self._entry_index: dict[tuple[str, str], int] = {}  # (bucket_id, key) -> entry_id
        self._versions: dict[int, dict[int, ObjectVersion]] = {}  # entry_id -> version -> ObjectVersion

    # Buckets

    def create_bucket(self, name: str) -> Bucket:
        with self._lock:
            if name in self._buckets:
                raise BucketExistsError(name)
            bucket = Bucket(bucket_id=f"bucket-{next(self._bucket_ids):04d}", name=name)
            self._buckets[name] = bucket
            return replace(bucket)

    def get_bucket_by_name(self, name: str) -> Optional[Bucket]:
        with self._lock:
            bucket = self._buckets.get(name)
            return replace(bucket) if bucket else None

    def list_buckets(self) -> list[Bucket]:
        with self._lock:
            return [replace(b) for b in self._buckets.values()]

    # Entries

    def get_entry(self, bucket_id: str, key: str) -> Optional[ObjectEntry]:
        with self._lock:
            entry_id = self._entry_index.get((bucket_id, key))
            if entry_id is None:
                return None
            return replace(self._entries[entry_id])

    def get_or_create_entry(self, bucket_id: str, key: str) -> ObjectEntry:
        with self._lock:
            entry_id = self._entry_index.get((bucket_id, key))
            if entry_id is None:
                entry_id = next(self._entry_ids)
                self._entries[entry_id] = ObjectEntry(
                    entry_id=entry_id, bucket_id=bucket_id, key=key
                )
                self._entry_index[(bucket_id, key)] = entry_id
                self._versions[entry_id] = {}
            return replace(self._entries[entry_id])

    def list_entries(self, bucket_id: str, prefix: str = "") -> list[ObjectEntry]:
        with self._lock:
            entries = [
                replace(e)
                for e in self._entries.values()
                if e.bucket_id == bucket_id and e.key.startswith(prefix)
            ]
        return sorted(entries, key=lambda e: e.key)

    def compare_and_set_next_version(self, entry_id: int, expected: int, new: int) -> bool:
        with self._lock:
            entry = self._entries.get(entry_id)
            if entry is None:
                raise KeyError(f"Unknown entry {entry_id}")
            if entry.next_version != expected:
                return False
            entry.next_version = new
            return True

    # Versions

    def save_version(self, version: ObjectVersion) -> None:
        with self._lock:
            versions = self._versions.setdefault(version.entry_id, {})
            if version.version in versions:
                raise ValueError(
                    f"Version {version.version} already recorded for entry {version.entry_id}"
                )
            versions[version.version] = replace(version)

    def get_version(self, entry_id: int, version: int) -> Optional[ObjectVersion]:
        with self._lock:
            found = self._versions.get(entry_id, {}).get(version)
            return replace(found) if found else None

    def get_latest_live_version(self, entry_id: int) -> Optional[ObjectVersion]:
        with self._lock:
            live = [v for v in self._versions.get(entry_id, {}).values() if not v.deleted]
            if not live:
                return None
            return replace(max(live, key=lambda v: v.version))

    def list_versions(self, entry_id: int, include_deleted: bool = False) -> list[ObjectVersion]:
        with self._lock:
            versions = [
                replace(v)
                for v in self._versions.get(entry_id, {}).values()
                if include_deleted or not v.deleted
            ]
        return sorted(versions, key=lambda v: v.version)

    def set_deleted(self, entry_id: int, version: int, deleted: bool = True) -> bool:
        with self._lock:
            found = self._versions.get(entry_id, {}).get(version)
            if found is None:
                return False
            found.deleted = deleted
            return True
