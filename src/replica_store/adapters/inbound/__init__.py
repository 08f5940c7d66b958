"""Inbound adapters for the Replica Store.

Provides the REST API adapter over the object service.
"""

from replica_store.adapters.inbound.rest_api import create_app

__all__ = ["create_app"]
