"""Prometheus metrics for Replica Store."""

from prometheus_client import Counter, Histogram, Info, CollectorRegistry, REGISTRY


class ReplicaStoreMetrics:
    """Metrics collector for the placement-and-replication engine."""

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        # Object Operations
        self.uploads = Counter(
            "replica_store_uploads_total",
            "Total uploads by outcome",
            ["bucket", "outcome"],
            registry=registry,
        )
        self.downloads = Counter(
            "replica_store_downloads_total",
            "Total downloads by outcome",
            ["bucket", "outcome"],
            registry=registry,
        )
        self.bytes_uploaded = Counter(
            "replica_store_bytes_uploaded_total",
            "Total bytes accepted by uploads",
            ["bucket"],
            registry=registry,
        )
        self.bytes_downloaded = Counter(
            "replica_store_bytes_downloaded_total",
            "Total bytes served by downloads",
            ["bucket"],
            registry=registry,
        )
        self.versions_tombstoned = Counter(
            "replica_store_versions_tombstoned_total",
            "Total versions marked deleted",
            registry=registry,
        )

        # Placement
        self.placement_failures = Counter(
            "replica_store_placement_failures_total",
            "Uploads rejected for lack of UP nodes",
            registry=registry,
        )
        self.allocation_conflicts = Counter(
            "replica_store_version_allocation_conflicts_total",
            "Optimistic version allocation retries",
            registry=registry,
        )

        # Replica Writes
        self.replica_writes = Counter(
            "replica_store_replica_writes_total",
            "Replica store calls by node and status",
            ["node", "status"],
            registry=registry,
        )
        self.degraded_writes = Counter(
            "replica_store_degraded_writes_total",
            "Uploads written to fewer replicas than requested",
            registry=registry,
        )
        self.failed_writes = Counter(
            "replica_store_failed_writes_total",
            "Uploads that reached no replica at all",
            registry=registry,
        )

        # Replica Reads
        self.replica_read_failures = Counter(
            "replica_store_replica_read_failures_total",
            "Replica fetches skipped during failover",
            ["node"],
            registry=registry,
        )
        self.failover_reads = Counter(
            "replica_store_failover_reads_total",
            "Reads served by a replica other than the first",
            registry=registry,
        )
        self.reads_exhausted = Counter(
            "replica_store_reads_exhausted_total",
            "Reads where every replica failed",
            registry=registry,
        )
        self.checksum_mismatches = Counter(
            "replica_store_checksum_mismatches_total",
            "Fetched replicas whose bytes did not match the recorded checksum",
            ["node"],
            registry=registry,
        )

        # API Latency
        self.upload_latency = Histogram(
            "replica_store_upload_latency_seconds",
            "Upload latency including all replica writes",
            ["bucket"],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0],
            registry=registry,
        )
        self.download_latency = Histogram(
            "replica_store_download_latency_seconds",
            "Download latency including failover",
            ["bucket"],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0],
            registry=registry,
        )

        # System Info
        self.system_info = Info(
            "replica_store",
            "Replica store system information",
            registry=registry,
        )


_metrics: ReplicaStoreMetrics | None = None


def get_metrics() -> ReplicaStoreMetrics:
    """Get the singleton metrics instance."""
    global _metrics
    if _metrics is None:
        _metrics = ReplicaStoreMetrics()
    return _metrics
