"""FastAPI REST adapter for the Replica Store.

Thin HTTP binding over the object service, plus the bucket and node
management endpoints that feed the metadata store and node registry.

Usage:
    from replica_store.adapters.inbound.rest_api import create_app

    app = create_app()
    # Run with: uvicorn module:app --host 0.0.0.0 --port 8080

References:
    - ports/inbound (API contracts)
"""

from __future__ import annotations

import base64
import binascii
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from replica_store import __version__
from replica_store.domain.entities.node import NodeStatus, StorageNode
from replica_store.domain.entities.object import ObjectVersion
from replica_store.domain.errors import (
    AllReplicasFailedError,
    BucketExistsError,
    BucketNotFoundError,
    EntryNotFoundError,
    InsufficientReplicasError,
    InvalidReplicationFactorError,
    NoVersionsAvailableError,
    ReplicaStoreError,
    ReplicationFailedError,
    VersionGoneError,
    VersionNotFoundError,
)
from replica_store.infrastructure.container import Container
from replica_store.ports.inbound import ObjectServicePort

_ERROR_STATUS: dict[type[ReplicaStoreError], int] = {
    BucketNotFoundError: status.HTTP_404_NOT_FOUND,
    EntryNotFoundError: status.HTTP_404_NOT_FOUND,
    VersionNotFoundError: status.HTTP_404_NOT_FOUND,
    NoVersionsAvailableError: status.HTTP_404_NOT_FOUND,
    VersionGoneError: status.HTTP_410_GONE,
    BucketExistsError: status.HTTP_409_CONFLICT,
    InvalidReplicationFactorError: status.HTTP_400_BAD_REQUEST,
    InsufficientReplicasError: status.HTTP_503_SERVICE_UNAVAILABLE,
    AllReplicasFailedError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ReplicationFailedError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


# Pydantic models for request/response serialization


class CreateBucketRequest(BaseModel):
    """Request to create a bucket."""

    name: str = Field(
        ...,
        min_length=3,
        max_length=63,
        pattern=r"^[a-z0-9][a-z0-9.-]*[a-z0-9]$",
        description="Bucket name",
    )


class BucketResponse(BaseModel):
    """Bucket details response."""

    bucket_id: str
    name: str
    created_at: datetime


class RegisterNodeRequest(BaseModel):
    """Request to register a storage node."""

    name: str = Field(..., min_length=2, max_length=50, description="Unique node name")
    address: str = Field(..., pattern=r"^https?://", description="Base URL of the node")


class NodeStatusRequest(BaseModel):
    """Request to change a node's status."""

    status: NodeStatus


class NodeResponse(BaseModel):
    """Storage node details."""

    node_id: str
    name: str
    address: str
    status: NodeStatus
    last_heartbeat: datetime


class NodeListResponse(BaseModel):
    """List of storage nodes."""

    nodes: list[NodeResponse]
    count: int


class NodeHealthResponse(BaseModel):
    """Result of a storage node health check."""

    node_id: str
    status: NodeStatus


class PutObjectRequest(BaseModel):
    """Request to upload an object version (JSON mode)."""

    data_base64: str = Field(..., description="Base64-encoded object data")
    replication_factor: Optional[int] = Field(default=None, ge=1, description="Replica count")


class ReplicaResponse(BaseModel):
    """Outcome of one replica write."""

    node_id: str
    storage_path: str
    write_status: str
    error: Optional[str] = None


class UploadResponse(BaseModel):
    """Upload result."""

    bucket: str
    key: str
    version: int
    checksum: str
    size_bytes: int
    replication_factor: int
    successful_replicas: int
    degraded: bool
    replicas: list[ReplicaResponse]


class VersionResponse(BaseModel):
    """Object version metadata."""

    version: int
    size_bytes: int
    checksum: str
    deleted: bool
    created_at: datetime
    replicas: list[ReplicaResponse]


class VersionListResponse(BaseModel):
    """Live versions of an object."""

    bucket: str
    key: str
    versions: list[VersionResponse]
    count: int


class DeleteVersionResponse(BaseModel):
    """Tombstone acknowledgement."""

    deleted: bool
    bucket: str
    key: str
    version: int


class ObjectSummaryResponse(BaseModel):
    """Listing row for an object."""

    key: str
    entry_id: int
    created_at: datetime
    next_version: int


class ObjectListResponse(BaseModel):
    """List of objects."""

    objects: list[ObjectSummaryResponse]
    count: int


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = __version__


def _node_response(node: StorageNode) -> NodeResponse:
    return NodeResponse(
        node_id=node.node_id,
        name=node.name,
        address=node.address,
        status=node.status,
        last_heartbeat=node.last_heartbeat,
    )


def _version_response(record: ObjectVersion) -> VersionResponse:
    return VersionResponse(
        version=record.version,
        size_bytes=record.size,
        checksum=record.checksum,
        deleted=record.deleted,
        created_at=record.created_at,
        replicas=[ReplicaResponse(**r.to_dict()) for r in record.replicas],
    )


def create_app(container: Container | None = None) -> FastAPI:
    """Create FastAPI application with Replica Store endpoints.

    Args:
        container: Wired dependencies. Defaults to the process container.

    Returns:
        Configured FastAPI application.
    """
    deps = container or Container.get()
    service: ObjectServicePort = deps.object_service
    registry = deps.registry
    metadata = deps.metadata_store

    app = FastAPI(
        title="Replica Store API",
        description="Replicated, versioned object storage",
        version=__version__,
    )

    @app.exception_handler(ReplicaStoreError)
    async def replica_store_error_handler(request: Request, exc: ReplicaStoreError):
        code = next(
            (c for t, c in _ERROR_STATUS.items() if isinstance(exc, t)),
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
        return JSONResponse(status_code=code, content={"detail": str(exc)})

    # Health endpoints
    @app.get("/health", response_model=HealthResponse, tags=["System"])
    def health_check():
        """Check service health status."""
        return HealthResponse(status="healthy")

    # Bucket endpoints
    @app.post(
        "/buckets",
        response_model=BucketResponse,
        status_code=status.HTTP_201_CREATED,
        tags=["Buckets"],
    )
    def create_bucket(request: CreateBucketRequest):
        """Create a new bucket."""
        bucket = metadata.create_bucket(request.name)
        return BucketResponse(
            bucket_id=bucket.bucket_id, name=bucket.name, created_at=bucket.created_at
        )

    @app.get("/buckets/{bucket_name}", response_model=BucketResponse, tags=["Buckets"])
    def get_bucket(bucket_name: str):
        """Get bucket details."""
        bucket = metadata.get_bucket_by_name(bucket_name)
        if bucket is None:
            raise BucketNotFoundError(bucket_name)
        return BucketResponse(
            bucket_id=bucket.bucket_id, name=bucket.name, created_at=bucket.created_at
        )

    # Node endpoints
    @app.post(
        "/nodes",
        response_model=NodeResponse,
        status_code=status.HTTP_201_CREATED,
        tags=["Nodes"],
    )
    def register_node(request: RegisterNodeRequest):
        """Register a storage node."""
        return _node_response(registry.register_node(request.name, request.address))

    @app.get("/nodes", response_model=NodeListResponse, tags=["Nodes"])
    def list_nodes():
        """List all storage nodes."""
        nodes = registry.list_nodes()
        return NodeListResponse(nodes=[_node_response(n) for n in nodes], count=len(nodes))

    @app.put("/nodes/{node_id}/status", response_model=NodeResponse, tags=["Nodes"])
    def update_node_status(node_id: str, request: NodeStatusRequest):
        """Change a node's status."""
        if registry.get_node(node_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Storage node {node_id} not found",
            )
        return _node_response(registry.set_status(node_id, request.status))

    @app.get("/nodes/{node_id}/health", response_model=NodeHealthResponse, tags=["Nodes"])
    def check_node_health(node_id: str):
        """Check a storage node's health endpoint."""
        node = registry.get_node(node_id)
        if node is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Storage node {node_id} not found",
            )
        return NodeHealthResponse(node_id=node_id, status=deps.blob_client.health(node))

    # Object endpoints
    @app.get("/objects/{bucket_name}", response_model=ObjectListResponse, tags=["Objects"])
    def list_objects(bucket_name: str, prefix: str = ""):
        """List objects in a bucket."""
        summaries = service.list_objects(bucket_name, prefix)
        return ObjectListResponse(
            objects=[
                ObjectSummaryResponse(
                    key=s.key,
                    entry_id=s.entry_id,
                    created_at=s.created_at,
                    next_version=s.next_version,
                )
                for s in summaries
            ],
            count=len(summaries),
        )

    @app.put(
        "/objects/{bucket_name}/{key:path}",
        response_model=UploadResponse,
        status_code=status.HTTP_201_CREATED,
        tags=["Objects"],
    )
    def upload_object(bucket_name: str, key: str, request: PutObjectRequest):
        """Upload a new version of an object (JSON mode with base64 data)."""
        try:
            data = base64.b64decode(request.data_base64, validate=True)
        except binascii.Error:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid base64 data",
            )

        result = service.upload(bucket_name, key, data, request.replication_factor)
        return UploadResponse(
            bucket=result.bucket,
            key=result.key,
            version=result.version,
            checksum=result.checksum,
            size_bytes=result.size,
            replication_factor=result.replication_factor,
            successful_replicas=result.successful_replicas,
            degraded=result.degraded,
            replicas=[ReplicaResponse(**r.to_dict()) for r in result.replicas],
        )

    @app.get("/objects/{bucket_name}/{key:path}", tags=["Objects"])
    def download_object(bucket_name: str, key: str, version: Optional[int] = None):
        """Download an object version (latest live version by default)."""
        result = service.download(bucket_name, key, version)
        return Response(
            content=result.data,
            media_type="application/octet-stream",
            headers={
                "X-Object-Checksum": result.checksum,
                "X-Object-Version": str(result.version),
                "X-Object-Created": result.created_at.isoformat(),
            },
        )

    @app.delete(
        "/objects/{bucket_name}/{key:path}",
        response_model=DeleteVersionResponse,
        tags=["Objects"],
    )
    def delete_object_version(bucket_name: str, key: str, version: int):
        """Tombstone a specific version of an object."""
        record = service.delete_version(bucket_name, key, version)
        return DeleteVersionResponse(
            deleted=record.deleted, bucket=bucket_name, key=key, version=record.version
        )

    @app.get(
        "/versions/{bucket_name}/{key:path}",
        response_model=VersionListResponse,
        tags=["Objects"],
    )
    def list_versions(bucket_name: str, key: str):
        """List live versions of an object."""
        versions = service.list_versions(bucket_name, key)
        return VersionListResponse(
            bucket=bucket_name,
            key=key,
            versions=[_version_response(v) for v in versions],
            count=len(versions),
        )

    return app
