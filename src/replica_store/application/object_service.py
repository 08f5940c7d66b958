"""Replica Store Application Service.

Orchestrates the domain services into the operations exposed to callers:

    upload:   bucket check -> placement -> version allocation -> checksum
              -> replicated write -> version record
    download: version resolution -> failover read
    delete:   tombstone only, no node is contacted

Placement runs before allocation, so an upload rejected for lack of UP nodes
leaves no version behind and does not advance the version counter.

References:
    - DESIGN.md (Application service)
"""

from __future__ import annotations

import time
from typing import Optional

import structlog
from opentelemetry import trace

from replica_store.domain.entities.object import (
    DownloadResult,
    ObjectSummary,
    ObjectVersion,
    UploadResult,
)
from replica_store.domain.errors import (
    AllReplicasFailedError,
    InsufficientReplicasError,
    InvalidReplicationFactorError,
    ReplicationFailedError,
)
from replica_store.domain.services.integrity import compute_checksum
from replica_store.domain.services.placement_service import (
    PlacementService,
    replication_key,
)
from replica_store.domain.services.replication_service import ReplicationService
from replica_store.domain.services.version_manager import VersionManager
from replica_store.infrastructure.config import ReplicationConfig
from replica_store.infrastructure.logging import get_logger
from replica_store.infrastructure.metrics import ReplicaStoreMetrics
from replica_store.ports.outbound import BlobNodeClient, MetadataStore, NodeRegistry


class ObjectService:
    """Upload, download and delete replicated object versions."""

    def __init__(
        self,
        registry: NodeRegistry,
        metadata_store: MetadataStore,
        client: BlobNodeClient,
        config: Optional[ReplicationConfig] = None,
        metrics: Optional[ReplicaStoreMetrics] = None,
        tracer: Optional[trace.Tracer] = None,
        logger: Optional[structlog.stdlib.BoundLogger] = None,
    ) -> None:
        """Initialize the service.

        Args:
            registry: Node registry.
            metadata_store: Metadata store for entries and versions.
            client: Blob node client, built once and shared.
            config: Replication configuration.
            metrics: Optional metrics collector.
            tracer: OpenTelemetry tracer. Defaults to the global provider.
            logger: Structured logger.
        """
        self._config = config or ReplicationConfig()
        self._metrics = metrics
        self._tracer = tracer or trace.get_tracer("replica_store")
        self._logger = logger or get_logger(__name__)

        self._placement = PlacementService(registry)
        self._replication = ReplicationService(
            client,
            registry,
            max_parallel_writes=self._config.max_parallel_writes,
            write_deadline_seconds=self._config.write_deadline_seconds,
            verify_checksums=self._config.verify_checksums,
            metrics=metrics,
        )
        self._versions = VersionManager(
            metadata_store,
            max_allocation_attempts=self._config.max_allocation_attempts,
            metrics=metrics,
        )

    @property
    def placement(self) -> PlacementService:
        return self._placement

    @property
    def replication(self) -> ReplicationService:
        return self._replication

    @property
    def versions(self) -> VersionManager:
        return self._versions

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
            Upload result. ``degraded`` is set when fewer replicas than
            requested were written.

        Raises:
            InvalidReplicationFactorError: If replication_factor < 1.
            BucketNotFoundError: If the bucket does not exist.
            InsufficientReplicasError: If fewer UP nodes than requested.
            ReplicationFailedError: If no replica could be written.
        """
        factor = (
            self._config.default_replication_factor
            if replication_factor is None
            else replication_factor
        )
        if factor < 1:
            raise InvalidReplicationFactorError(factor)

        log = self._logger.bind(bucket=bucket, key=key, replication_factor=factor)
        started = time.perf_counter()

        with self._tracer.start_as_current_span("replica_store.upload") as span:
            span.set_attribute("replica_store.bucket", bucket)
            span.set_attribute("replica_store.key", key)
            span.set_attribute("replica_store.replication_factor", factor)

            self._versions.get_bucket(bucket)
            try:
                nodes = self._placement.select_replicas(
                    replication_key(bucket, key), factor
                )
            except InsufficientReplicasError as e:
                log.error(
                    "upload_rejected",
                    reason="insufficient_replicas",
                    available=e.available,
                )
                if self._metrics:
                    self._metrics.placement_failures.inc()
                    self._metrics.uploads.labels(bucket=bucket, outcome="rejected").inc()
                raise

            entry, version = self._versions.allocate(bucket, key)
            span.set_attribute("replica_store.version", version)
            checksum = compute_checksum(data)
            storage_path = ReplicationService.storage_path(bucket, entry.entry_id, version)

            log.debug(
                "replicating_upload",
                version=version,
                storage_path=storage_path,
                nodes=[n.name for n in nodes],
            )
            replicas = self._replication.replicate(nodes, storage_path, data)

            if not any(r.succeeded for r in replicas):
                log.error("upload_failed", version=version, storage_path=storage_path)
                if self._metrics:
                    self._metrics.failed_writes.inc()
                    self._metrics.uploads.labels(bucket=bucket, outcome="failed").inc()
                raise ReplicationFailedError(storage_path, len(nodes))

            self._versions.record(
                ObjectVersion(
                    entry_id=entry.entry_id,
                    version=version,
                    size=len(data),
                    checksum=checksum,
                    replicas=tuple(replicas),
                )
            )

            result = UploadResult(
                bucket=bucket,
                key=key,
                version=version,
                checksum=checksum,
                size=len(data),
                replication_factor=factor,
                replicas=tuple(replicas),
            )
            span.set_attribute("replica_store.successful_replicas", result.successful_replicas)

        if result.degraded:
            log.warning(
                "degraded_replication",
                version=version,
                successful=result.successful_replicas,
                failed_nodes=[r.node_id for r in replicas if not r.succeeded],
            )
        if self._metrics:
            outcome = "degraded" if result.degraded else "ok"
            self._metrics.uploads.labels(bucket=bucket, outcome=outcome).inc()
            self._metrics.bytes_uploaded.labels(bucket=bucket).inc(len(data))
            self._metrics.upload_latency.labels(bucket=bucket).observe(
                time.perf_counter() - started
            )

        log.info(
            "object_uploaded",
            version=version,
            checksum=checksum,
            size=len(data),
            successful_replicas=result.successful_replicas,
        )
        return result

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
        log = self._logger.bind(bucket=bucket, key=key, version=version or "latest")
        started = time.perf_counter()

        with self._tracer.start_as_current_span("replica_store.download") as span:
            span.set_attribute("replica_store.bucket", bucket)
            span.set_attribute("replica_store.key", key)

            record = self._versions.resolve(bucket, key, version)
            span.set_attribute("replica_store.version", record.version)

            try:
                data, replica = self._replication.fetch(
                    record.replicas, expected_checksum=record.checksum
                )
            except AllReplicasFailedError:
                log.error("download_unavailable", resolved_version=record.version)
                if self._metrics:
                    self._metrics.downloads.labels(bucket=bucket, outcome="unavailable").inc()
                raise
            span.set_attribute("replica_store.node_id", replica.node_id)

        if self._metrics:
            self._metrics.downloads.labels(bucket=bucket, outcome="ok").inc()
            self._metrics.bytes_downloaded.labels(bucket=bucket).inc(len(data))
            self._metrics.download_latency.labels(bucket=bucket).observe(
                time.perf_counter() - started
            )

        log.info(
            "object_downloaded",
            resolved_version=record.version,
            node_id=replica.node_id,
            size=len(data),
        )
        return DownloadResult(
            data=data,
            checksum=record.checksum,
            version=record.version,
            size=record.size,
            created_at=record.created_at,
            node_id=replica.node_id,
        )

    def delete_version(self, bucket: str, key: str, version: int) -> ObjectVersion:
        """Tombstone a version. Bytes stay on the storage nodes.

        Raises:
            EntryNotFoundError: If the key was never uploaded.
            VersionNotFoundError: If ``version`` does not exist.
        """
        with self._tracer.start_as_current_span("replica_store.delete_version") as span:
            span.set_attribute("replica_store.bucket", bucket)
            span.set_attribute("replica_store.key", key)
            span.set_attribute("replica_store.version", version)
            record = self._versions.tombstone(bucket, key, version)

        self._logger.info("version_deleted", bucket=bucket, key=key, version=version)
        return record

    def get_version_info(
        self, bucket: str, key: str, version: Optional[int] = None
    ) -> ObjectVersion:
        """Resolve a version's metadata without reading bytes."""
        return self._versions.resolve(bucket, key, version)

    def list_objects(self, bucket: str, prefix: str = "") -> list[ObjectSummary]:
        """List object entries of a bucket, ordered by key."""
        return [
            ObjectSummary(
                key=entry.key,
                entry_id=entry.entry_id,
                created_at=entry.created_at,
                next_version=entry.next_version,
            )
            for entry in self._versions.list_entries(bucket, prefix)
        ]

    def list_versions(self, bucket: str, key: str) -> list[ObjectVersion]:
        """List live versions of a key, oldest first."""
        return self._versions.list_versions(bucket, key)
