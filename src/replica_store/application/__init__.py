"""Application layer - orchestration of domain services."""

from replica_store.application.object_service import ObjectService

__all__ = ["ObjectService"]
