"""Domain entities."""

from replica_store.domain.entities.bucket import Bucket
from replica_store.domain.entities.node import NodeStatus, StorageNode
from replica_store.domain.entities.object import (
    DownloadResult,
    ObjectEntry,
    ObjectSummary,
    ObjectVersion,
    UploadResult,
)
from replica_store.domain.entities.replica import ReplicaDescriptor, WriteStatus

__all__ = [
    "Bucket",
    "StorageNode",
    "NodeStatus",
    "ObjectEntry",
    "ObjectVersion",
    "ObjectSummary",
    "UploadResult",
    "DownloadResult",
    "ReplicaDescriptor",
    "WriteStatus",
]
