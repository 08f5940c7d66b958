"""Replication coordinator: multi-node writes and failover reads.

Write path:
    One independent store call per selected node, fanned out over a bounded
    thread pool and joined before returning. A failing node never cancels or
    blocks another node's attempt. Every node gets a descriptor in placement
    order, SUCCESS or FAILED. Fewer successes than nodes is a degraded write:
    it is logged and counted, not raised.

Read path:
    Replicas are tried one at a time in stored order. Any error skips to the
    next replica; the first successful fetch wins. Optional checksum
    verification treats a mismatch like a transport failure.

The coordinator holds no durable state. Deletes are tombstones recorded by
the version manager; no node is ever asked to delete bytes.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Sequence

from replica_store.domain.entities.node import StorageNode
from replica_store.domain.entities.replica import ReplicaDescriptor, WriteStatus
from replica_store.domain.errors import AllReplicasFailedError, ChecksumMismatchError
from replica_store.domain.services.integrity import verify_checksum
from replica_store.ports.outbound import BlobNodeClient, NodeRegistry

if TYPE_CHECKING:
    from replica_store.infrastructure.metrics import ReplicaStoreMetrics

logger = logging.getLogger(__name__)

DEADLINE_EXCEEDED = "write deadline exceeded"


@dataclass
class _WriteAttempt:
    """One node's write, settled exactly once by the writer or by the deadline."""

    node: StorageNode
    outcome: Optional[ReplicaDescriptor] = None
    abandoned: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def settle(self, outcome: ReplicaDescriptor) -> bool:
        """Record the write outcome. False if the deadline already gave up on it."""
        with self._lock:
            if self.abandoned:
                return False
            self.outcome = outcome
            return True

    def abandon(self) -> Optional[ReplicaDescriptor]:
        """Stop waiting. Returns the outcome if the write had already settled."""
        with self._lock:
            if self.outcome is None:
                self.abandoned = True
            return self.outcome


class ReplicationService:
    """Propagates version bytes to replicas and reads them back."""

    def __init__(
        self,
        client: BlobNodeClient,
        registry: NodeRegistry,
        max_parallel_writes: int = 8,
        write_deadline_seconds: Optional[float] = None,
        verify_checksums: bool = False,
        metrics: Optional["ReplicaStoreMetrics"] = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            client: Blob node client shared by all node calls.
            registry: Node registry used to resolve replica node IDs on read.
            max_parallel_writes: Upper bound on concurrent store calls.
            write_deadline_seconds: Total time to wait for store calls. Calls
                still running afterwards finish in the background and are
                recorded as FAILED. None waits for every call.
            verify_checksums: Recompute the checksum of fetched bytes.
            metrics: Optional metrics collector.
        """
        if max_parallel_writes < 1:
            raise ValueError("max_parallel_writes must be at least 1")
        self._client = client
        self._registry = registry
        self._max_parallel_writes = max_parallel_writes
        self._write_deadline = write_deadline_seconds
        self._verify_checksums = verify_checksums
        self._metrics = metrics

    @property
    def verify_checksums(self) -> bool:
        return self._verify_checksums

    @staticmethod
    def storage_path(bucket_name: str, entry_id: int, version: int) -> str:
        """Build the storage path of a version.

        The same path is used on every replica, so any replica can be read
        with the same relative address. The full bucket name is used.

        Args:
            bucket_name: Bucket name.
            entry_id: Object entry ID.
            version: Version number.

        Returns:
            ``{bucket}/{entry_id}/{version}/blob``.
        """
        return f"{bucket_name}/{entry_id}/{version}/blob"

    # -------------------------------------------------------------------------
    # Write path
    # -------------------------------------------------------------------------

    def replicate(
        self,
        nodes: Sequence[StorageNode],
        storage_path: str,
        data: bytes,
    ) -> list[ReplicaDescriptor]:
        """Write bytes to every selected node.

        Args:
            nodes: Selected nodes in placement order.
            storage_path: Path used on every node.
            data: Blob content.

        Returns:
            One descriptor per node, in the order of ``nodes``.
        """
        if not nodes:
            return []

        attempts = [_WriteAttempt(node) for node in nodes]
        workers = min(self._max_parallel_writes, len(nodes))
        executor = ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="replica-write"
        )
        futures: list[Future[None]] = []
        done: set[Future[None]] = set()
        try:
            for attempt in attempts:
                futures.append(
                    executor.submit(self._store_one, attempt, storage_path, data)
                )
            done, _ = wait(futures, timeout=self._write_deadline)
        finally:
            # Queued calls past the deadline are dropped, running ones finish
            for future in futures:
                if future not in done:
                    future.cancel()
            executor.shutdown(wait=False)

        descriptors: list[ReplicaDescriptor] = []
        for attempt in attempts:
            outcome = attempt.abandon()
            if outcome is None:
                logger.warning(
                    "Write to node %s at %s did not finish before the deadline",
                    attempt.node.name,
                    storage_path,
                )
                self._record_write(attempt.node, WriteStatus.FAILED)
                outcome = ReplicaDescriptor(
                    node_id=attempt.node.node_id,
                    storage_path=storage_path,
                    write_status=WriteStatus.FAILED,
                    error=DEADLINE_EXCEEDED,
                )
            descriptors.append(outcome)

        successes = sum(1 for d in descriptors if d.succeeded)
        if successes < len(nodes):
            logger.warning(
                "Insufficient successful replications for %s. Expected: %d, Got: %d",
                storage_path,
                len(nodes),
                successes,
            )
            if self._metrics:
                self._metrics.degraded_writes.inc()
        return descriptors

    def _store_one(
        self, attempt: _WriteAttempt, storage_path: str, data: bytes
    ) -> None:
        """Store on one node and settle the attempt, SUCCESS or FAILED."""
        node = attempt.node
        try:
            self._client.store(node, storage_path, data)
        except Exception as e:
            logger.error("Failed to replicate to node %s: %s", node.name, e)
            outcome = ReplicaDescriptor(
                node_id=node.node_id,
                storage_path=storage_path,
                write_status=WriteStatus.FAILED,
                error=str(e),
            )
        else:
            logger.debug("Successfully replicated to node: %s", node.name)
            outcome = ReplicaDescriptor(
                node_id=node.node_id,
                storage_path=storage_path,
                write_status=WriteStatus.SUCCESS,
            )

        if attempt.settle(outcome):
            self._record_write(node, outcome.write_status)
        else:
            # Already reported FAILED at the deadline
            logger.info(
                "Late write to node %s at %s finished with %s",
                node.name,
                storage_path,
                outcome.write_status.value,
            )

    def _record_write(self, node: StorageNode, status: WriteStatus) -> None:
        if self._metrics:
            self._metrics.replica_writes.labels(
                node=node.node_id, status=status.value
            ).inc()

    # -------------------------------------------------------------------------
    # Read path
    # -------------------------------------------------------------------------

    def fetch(
        self,
        replicas: Sequence[ReplicaDescriptor],
        expected_checksum: Optional[str] = None,
        verify: Optional[bool] = None,
    ) -> tuple[bytes, ReplicaDescriptor]:
        """Read a version's bytes with ordered failover.

        Args:
            replicas: Stored replica list, in read preference order.
            expected_checksum: Checksum recorded at upload time.
            verify: Override the configured checksum verification.

        Returns:
            ``(data, replica)`` for the first replica that served the bytes.

        Raises:
            AllReplicasFailedError: If no replica could serve the bytes.
        """
        storage_path = replicas[0].storage_path if replicas else ""
        if not replicas:
            logger.error("No storage locations provided for fetch operation")
            self._record_exhausted()
            raise AllReplicasFailedError(storage_path, 0)

        should_verify = self._verify_checksums if verify is None else verify

        for attempt, replica in enumerate(replicas):
            node = self._registry.get_node(replica.node_id)
            if node is None:
                logger.warning("Storage node not found: %s", replica.node_id)
                self._record_read_failure(replica.node_id)
                continue

            try:
                logger.debug("Attempting to fetch from node: %s", node.name)
                data = self._client.fetch(node, replica.storage_path)
                if should_verify and expected_checksum is not None:
                    if not verify_checksum(data, expected_checksum):
                        if self._metrics:
                            self._metrics.checksum_mismatches.labels(node=node.node_id).inc()
                        raise ChecksumMismatchError(
                            node.node_id,
                            f"checksum mismatch for {replica.storage_path}",
                        )
            except Exception as e:
                logger.warning(
                    "Failed to fetch %s from node %s: %s",
                    replica.storage_path,
                    node.name,
                    e,
                )
                self._record_read_failure(node.node_id)
                continue

            if attempt > 0 and self._metrics:
                self._metrics.failover_reads.inc()
            logger.info(
                "Fetched %s from node %s (attempt %d)",
                replica.storage_path,
                node.name,
                attempt + 1,
            )
            return data, replica

        logger.error("All storage locations failed for %s", storage_path)
        self._record_exhausted()
        raise AllReplicasFailedError(storage_path, len(replicas))

    def _record_read_failure(self, node: str) -> None:
        if self._metrics:
            self._metrics.replica_read_failures.labels(node=node).inc()

    def _record_exhausted(self) -> None:
        if self._metrics:
            self._metrics.reads_exhausted.inc()
