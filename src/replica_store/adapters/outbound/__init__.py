"""Outbound adapters - implementations of outbound ports.

HTTP and in-process blob node clients, plus in-memory node registry and
metadata store.
"""

from replica_store.adapters.outbound.http_blob_client import HttpBlobNodeClient
from replica_store.adapters.outbound.memory_blob_client import InMemoryBlobNodeClient
from replica_store.adapters.outbound.memory_metadata_store import InMemoryMetadataStore
from replica_store.adapters.outbound.memory_node_registry import InMemoryNodeRegistry

__all__ = [
    "HttpBlobNodeClient",
    "InMemoryBlobNodeClient",
    "InMemoryMetadataStore",
    "InMemoryNodeRegistry",
]
