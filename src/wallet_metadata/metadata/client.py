"""Metadata store client — fetch and put entries by address.

- GET /metadata/{address} — current entry, 404 when none has been written
- PUT /metadata/{address} — replace the entry

:class:`MetadataStore` is the interface the orchestrator depends on;
:class:`MetadataClient` is the httpx implementation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

import httpx

from wallet_metadata.errors.metadata_errors import (
    MetadataNetworkError,
    MetadataNotFoundError,
    MetadataRemotePayloadError,
)
from wallet_metadata.metadata.models import MetadataBody, RemoteMetadataPayload

if TYPE_CHECKING:
    from wallet_metadata.config.settings import MetadataConfig

logger = logging.getLogger(__name__)


class MetadataStore(Protocol):
    """Remote blob store holding one entry per address."""

    async def fetch(self, address: str) -> RemoteMetadataPayload:
        """Return the entry at ``address``.

        Raises:
            MetadataNotFoundError: If nothing is stored there yet.
            MetadataNetworkError: On any other transport failure.
        """
        ...

    async def put(self, address: str, body: MetadataBody) -> None:
        """Store ``body`` at ``address``.

        Raises:
            MetadataNetworkError: On failure; ``status_code == 404`` signals
                that the address state changed under the writer.
        """
        ...


class MetadataClient:
    """Async HTTP client for the metadata store.

    Usage::

        client = MetadataClient(config)
        await client.connect()
        try:
            entry = await client.fetch(address)
        finally:
            await client.close()
    """

    def __init__(self, config: MetadataConfig) -> None:
        """Initialize the client.

        Args:
            config: Metadata configuration (api_url, timeout).
        """
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:  # noqa: ASYNC910
        """Create the underlying HTTP client."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self._config.api_url.rstrip("/"),
            headers={"Accept": "application/json"},
            timeout=self._config.timeout,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def is_connected(self) -> bool:
        """Check if the HTTP client is active."""
        return self._client is not None

    async def __aenter__(self) -> MetadataClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch(self, address: str) -> RemoteMetadataPayload:
        """Fetch the entry stored at ``address``.

        Raises:
            MetadataNotFoundError: On 404.
            MetadataNetworkError: On transport errors or other non-200 statuses.
            MetadataRemotePayloadError: If the body is not a valid entry.
        """
        client = self._ensure_connected()
        try:
            response = await client.get(f"/metadata/{address}")
        except httpx.HTTPError as exc:
            raise MetadataNetworkError(f"metadata fetch failed: {exc}") from exc

        if response.status_code == 404:
            raise MetadataNotFoundError(address)
        if response.status_code != 200:
            self._raise_for_status(response, "fetch")

        try:
            data = response.json()
        except ValueError as exc:
            raise MetadataRemotePayloadError("metadata response is not JSON") from exc
        return RemoteMetadataPayload.from_dict(data)

    async def put(self, address: str, body: MetadataBody) -> None:
        """Write an entry to ``address``.

        Raises:
            MetadataNetworkError: On transport errors or non-2xx statuses.
        """
        client = self._ensure_connected()
        try:
            response = await client.put(f"/metadata/{address}", json=body.to_dict())
        except httpx.HTTPError as exc:
            raise MetadataNetworkError(f"metadata put failed: {exc}") from exc

        if not response.is_success:
            self._raise_for_status(response, "put")
        logger.debug("Stored metadata entry type %d at %s", body.type_id, address)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ensure_connected(self) -> httpx.AsyncClient:
        """Return the HTTP client, raising if not connected."""
        if self._client is None:
            msg = "MetadataClient not connected. Call connect() first."
            raise MetadataNetworkError(msg)
        return self._client

    def _raise_for_status(self, response: httpx.Response, operation: str) -> None:
        """Raise a MetadataNetworkError from a non-2xx response."""
        status = response.status_code
        try:
            body = response.json()
            detail = body.get("error", body.get("message", response.text))
        except Exception:  # noqa: BLE001
            detail = response.text

        message = f"metadata {operation} failed ({status}): {detail}"
        raise MetadataNetworkError(message, status_code=status)
