"""Bucket entity for object storage."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Bucket:
    """A bucket (namespace) for objects.

    Buckets are owned by the bucket-management collaborator; the replication
    engine only consumes them by reference. The name is immutable and unique.
    """

    bucket_id: str
    name: str
    created_at: datetime = field(default_factory=datetime.utcnow)
