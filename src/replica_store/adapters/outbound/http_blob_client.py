"""HTTP blob node client.

Talks to storage nodes over their REST interface:

    PUT    {address}/store          multipart form: file, path
    GET    {address}/fetch?path=... blob bytes
    DELETE {address}/store?path=...
    GET    {address}/health         {"status": "UP" | "DOWN", ...}

One ``httpx.Client`` is built once (or injected) and shared by every call.
Each call carries its own timeout.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from replica_store.domain.entities.node import NodeStatus, StorageNode
from replica_store.domain.errors import (
    BlobNotFoundError,
    NodeError,
    NodeUnreachableError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class HttpBlobNodeClient:
    """BlobNodeClient over HTTP."""

    def __init__(
        self,
        http_client: httpx.Client | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the client.

        Args:
            http_client: Optional httpx.Client for dependency injection (testing).
            timeout_seconds: Per-call timeout.
        """
        self._timeout = timeout_seconds
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout_seconds)

    def close(self) -> None:
        """Close the underlying client if this instance created it."""
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "HttpBlobNodeClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def store(self, node: StorageNode, path: str, data: bytes) -> None:
        """Upload a blob with a multipart PUT to ``/store``.

        Raises:
            NodeUnreachableError: On connection errors or timeouts.
            NodeError: On a non-2xx response.
        """
        logger.debug("Uploading file to node %s at path: %s", node.name, path)
        response = self._request(
            node,
            "PUT",
            node.url("/store"),
            files={"file": ("file", data, "application/octet-stream")},
            data={"path": path},
        )
        if not response.is_success:
            raise NodeError(
                node.node_id,
                f"Storage operation failed. Status: {response.status_code}",
            )

    def fetch(self, node: StorageNode, path: str) -> bytes:
        """Download a blob from ``/fetch``.

        Raises:
            NodeUnreachableError: On connection errors or timeouts.
            BlobNotFoundError: On 404.
            NodeError: On any other non-2xx response.
        """
        logger.debug("Fetching file from node %s at path: %s", node.name, path)
        response = self._request(node, "GET", node.url("/fetch"), params={"path": path})
        if response.status_code == httpx.codes.NOT_FOUND:
            raise BlobNotFoundError(node.node_id, f"no blob at {path}")
        if not response.is_success:
            raise NodeError(node.node_id, f"Fetch failed. Status: {response.status_code}")
        return response.content

    def delete(self, node: StorageNode, path: str) -> None:
        """Delete a blob via ``DELETE /store``. A missing blob is not an error.

        Raises:
            NodeUnreachableError: On connection errors or timeouts.
            NodeError: On a non-2xx response other than 404.
        """
        response = self._request(node, "DELETE", node.url("/store"), params={"path": path})
        if response.status_code == httpx.codes.NOT_FOUND:
            return
        if not response.is_success:
            raise NodeError(node.node_id, f"Delete failed. Status: {response.status_code}")

    def health(self, node: StorageNode) -> NodeStatus:
        """Call ``/health``. Any failure reports DOWN."""
        try:
            response = self._request(node, "GET", node.url("/health"))
        except NodeUnreachableError as e:
            logger.warning("Health check failed for node %s: %s", node.name, e)
            return NodeStatus.DOWN

        if not response.is_success:
            return NodeStatus.DOWN
        try:
            payload = response.json()
        except ValueError:
            return NodeStatus.DOWN
        if isinstance(payload, dict) and str(payload.get("status", "")).upper() == "UP":
            return NodeStatus.UP
        return NodeStatus.DOWN

    def _request(
        self, node: StorageNode, method: str, url: str, **kwargs: Any
    ) -> httpx.Response:
        try:
            return self._http.request(method, url, timeout=self._timeout, **kwargs)
        except httpx.TimeoutException as e:
            raise NodeUnreachableError(
                node.node_id, f"Timed out after {self._timeout}s: {e}"
            ) from e
        except httpx.TransportError as e:
            raise NodeUnreachableError(
                node.node_id, f"Connection failed to {node.address}: {e}"
            ) from e
