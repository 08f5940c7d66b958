"""Infrastructure layer - cross-cutting concerns."""

from replica_store.infrastructure.config import Config, get_config
from replica_store.infrastructure.logging import setup_logging, get_logger
from replica_store.infrastructure.metrics import ReplicaStoreMetrics, get_metrics
from replica_store.infrastructure.tracing import setup_tracing, get_tracer

__all__ = [
    "Config",
    "get_config",
    "setup_logging",
    "get_logger",
    "ReplicaStoreMetrics",
    "get_metrics",
    "setup_tracing",
    "get_tracer",
]
