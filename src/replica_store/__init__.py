"""
Replica Store - Replicated, Versioned Object Storage

Object storage that places every object version on several storage nodes
using rendezvous hashing, writes replicas under partial failure, reads them
back with ordered failover, and keeps a tombstone-based version history.
"""

__version__ = "0.1.0"
__author__ = "Systems Engineering Portfolio"
