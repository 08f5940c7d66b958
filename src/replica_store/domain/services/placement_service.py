"""Rendezvous-hash placement of object replicas on storage nodes.

Every UP node gets an independent score for a replication key; the R
highest-scoring nodes hold the replicas, highest first. Adding or removing a
node only changes the selection for keys that ranked that node in their top
R, so all other keys keep an identical replica set.

Scoring:
    digest = SHA256(f"{key}@{node_name}")
    h      = first 8 bytes of digest, big-endian unsigned
    mixed  = h ^ (h >> 1)
    score  = (mixed >> 11) / 2**53          # in [0, 1)

Ties (same score) are broken by node name so the result is reproducible.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Iterable, Optional

from replica_store.domain.entities.node import StorageNode
from replica_store.domain.errors import (
    InsufficientReplicasError,
    InvalidReplicationFactorError,
)
from replica_store.ports.outbound import NodeRegistry

logger = logging.getLogger(__name__)

_MASK_64 = (1 << 64) - 1
_MANTISSA_SCALE = 1.0 / (1 << 53)


def replication_key(bucket: str, key: str) -> str:
    """Build the replication key for an object.

    Args:
        bucket: Bucket name.
        key: Object key.

    Returns:
        ``bucket/key``.
    """
    return f"{bucket}/{key}"


class PlacementService:
    """Selects replica nodes with rendezvous hashing."""

    def __init__(self, registry: Optional[NodeRegistry] = None) -> None:
        """Initialize placement.

        Args:
            registry: Node registry used when no explicit node set is given.
        """
        self._registry = registry

    @staticmethod
    def score(key: str, node_name: str) -> float:
        """Score a node for a key.

        Args:
            key: Replication key.
            node_name: Node name.

        Returns:
            Deterministic score in [0, 1).
        """
        digest = hashlib.sha256(f"{key}@{node_name}".encode("utf-8")).digest()
        value = int.from_bytes(digest[:8], byteorder="big", signed=False)
        mixed = (value ^ (value >> 1)) & _MASK_64
        return (mixed >> 11) * _MANTISSA_SCALE

    def rank_nodes(
        self, key: str, nodes: Iterable[StorageNode]
    ) -> list[tuple[StorageNode, float]]:
        """Rank nodes for a key, best first.

        Args:
            key: Replication key.
            nodes: Candidate nodes.

        Returns:
            ``(node, score)`` pairs sorted by score descending, then name.
        """
        scored = [(node, self.score(key, node.name)) for node in nodes]
        scored.sort(key=lambda item: (-item[1], item[0].name))
        return scored

    def select_replicas(
        self,
        key: str,
        replication_factor: int,
        nodes: Optional[Iterable[StorageNode]] = None,
    ) -> list[StorageNode]:
        """Pick ``replication_factor`` distinct UP nodes for a key.

        Args:
            key: Replication key (see ``replication_key``).
            replication_factor: Number of replicas, at least 1.
            nodes: Candidate nodes. Defaults to a registry snapshot of UP
                nodes. Non-UP nodes are ignored.

        Returns:
            Selected nodes in placement order (also read preference order).

        Raises:
            InvalidReplicationFactorError: If replication_factor < 1.
            ValueError: If no node source exists.
            InsufficientReplicasError: If fewer UP nodes than required.
        """
        if replication_factor < 1:
            raise InvalidReplicationFactorError(replication_factor)

        if nodes is None:
            if self._registry is None:
                raise ValueError("No node registry configured and no nodes given")
            nodes = self._registry.list_up_nodes()

        # Dedupe by node_id; a registry snapshot may list a node twice
        candidates: dict[str, StorageNode] = {}
        for node in nodes:
            if node.is_up:
                candidates.setdefault(node.node_id, node)

        if len(candidates) < replication_factor:
            logger.error(
                "Insufficient available nodes for %s: required=%d available=%d",
                key,
                replication_factor,
                len(candidates),
            )
            raise InsufficientReplicasError(replication_factor, len(candidates))

        ranked = self.rank_nodes(key, candidates.values())
        selected = [node for node, _ in ranked[:replication_factor]]

        logger.debug("Selected nodes for %s: %s", key, [n.name for n in selected])
        return selected
