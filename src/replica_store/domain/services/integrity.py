"""Checksum computation and verification for object bytes."""

from __future__ import annotations

import hashlib
import hmac

CHECKSUM_ALGORITHM = "sha256"


def compute_checksum(data: bytes) -> str:
    """Calculate the SHA256 checksum of data.

    Args:
        data: Exact bytes written to the replicas.

    Returns:
        Hex string of checksum.
    """
    return hashlib.sha256(data).hexdigest()


def verify_checksum(data: bytes, expected: str) -> bool:
    """Verify data against a recorded checksum.

    Args:
        data: Bytes returned by a replica.
        expected: Hex checksum recorded at upload time.

    Returns:
        True if checksum matches.
    """
    return hmac.compare_digest(compute_checksum(data), expected.lower())
