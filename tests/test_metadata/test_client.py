"""Tests for the metadata HTTP client — uses httpx mock transport."""

from __future__ import annotations

import json

import httpx
import pytest

from wallet_metadata.config.settings import MetadataConfig
from wallet_metadata.errors.metadata_errors import (
    MetadataNetworkError,
    MetadataNotFoundError,
    MetadataRemotePayloadError,
)
from wallet_metadata.metadata.client import MetadataClient
from wallet_metadata.metadata.models import MetadataBody

_BASE_URL = "https://metadata.test.com"
_ADDRESS = "1BgGZ9tcN4rm9KBzDn7KprQz87SZ26SAMH"
_ENTRY = {
    "version": 1,
    "payload": "AAE=",
    "signature": "c2ln",
    "prev_magic_hash": "ab" * 32,
    "type_id": 5,
}

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _config() -> MetadataConfig:
    return MetadataConfig(api_url=_BASE_URL)


async def _connected_client(handler) -> MetadataClient:
    client = MetadataClient(_config())
    await client.connect()
    await client._client.aclose()
    client._client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url=_BASE_URL
    )
    return client


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestMetadataClientLifecycle:
    async def test_not_connected_by_default(self):
        assert MetadataClient(_config()).is_connected is False

    async def test_connect_and_close(self):
        client = MetadataClient(_config())
        await client.connect()
        assert client.is_connected is True
        await client.close()
        assert client.is_connected is False

    async def test_context_manager(self):
        async with MetadataClient(_config()) as client:
            assert client.is_connected is True
        assert client.is_connected is False

    async def test_close_idempotent(self):
        await MetadataClient(_config()).close()

    async def test_not_connected_raises(self):
        with pytest.raises(MetadataNetworkError, match="not connected"):
            await MetadataClient(_config()).fetch(_ADDRESS)


# ---------------------------------------------------------------------------
# Fetch
# ---------------------------------------------------------------------------


class TestMetadataFetch:
    async def test_fetch_entry(self):
        def handler(request: httpx.Request):
            assert request.method == "GET"
            assert request.url.path == f"/metadata/{_ADDRESS}"
            return httpx.Response(200, json=_ENTRY)

        client = await _connected_client(handler)
        entry = await client.fetch(_ADDRESS)
        assert entry.type_id == 5
        assert entry.prev_magic_hash == "ab" * 32
        await client.close()

    async def test_fetch_not_found(self):
        def handler(request: httpx.Request):
            return httpx.Response(404, json={"error": "not found"})

        client = await _connected_client(handler)
        with pytest.raises(MetadataNotFoundError) as exc_info:
            await client.fetch(_ADDRESS)
        assert exc_info.value.is_404
        assert exc_info.value.address == _ADDRESS
        await client.close()

    async def test_fetch_server_error(self):
        def handler(request: httpx.Request):
            return httpx.Response(500, json={"error": "boom"})

        client = await _connected_client(handler)
        with pytest.raises(MetadataNetworkError, match="500") as exc_info:
            await client.fetch(_ADDRESS)
        assert not isinstance(exc_info.value, MetadataNotFoundError)
        assert exc_info.value.status_code == 500
        assert exc_info.value.transient is True
        await client.close()

    async def test_fetch_transport_error(self):
        def handler(request: httpx.Request):
            raise httpx.ConnectTimeout("timed out", request=request)

        client = await _connected_client(handler)
        with pytest.raises(MetadataNetworkError, match="fetch failed") as exc_info:
            await client.fetch(_ADDRESS)
        assert exc_info.value.status_code is None
        await client.close()

    async def test_fetch_non_json(self):
        def handler(request: httpx.Request):
            return httpx.Response(200, text="<html>")

        client = await _connected_client(handler)
        with pytest.raises(MetadataRemotePayloadError):
            await client.fetch(_ADDRESS)
        await client.close()


# ---------------------------------------------------------------------------
# Put
# ---------------------------------------------------------------------------


class TestMetadataPut:
    async def test_put_body(self):
        captured: dict = {}

        def handler(request: httpx.Request):
            captured["method"] = request.method
            captured["path"] = request.url.path
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={})

        client = await _connected_client(handler)
        body = MetadataBody(version=1, payload="AAE=", signature="c2ln", type_id=5)
        await client.put(_ADDRESS, body)
        assert captured["method"] == "PUT"
        assert captured["path"] == f"/metadata/{_ADDRESS}"
        assert captured["body"] == {
            "version": 1,
            "payload": "AAE=",
            "signature": "c2ln",
            "type_id": 5,
        }
        await client.close()

    async def test_put_404_is_network_error(self):
        def handler(request: httpx.Request):
            return httpx.Response(404, text="gone")

        client = await _connected_client(handler)
        body = MetadataBody(version=1, payload="AAE=", signature="c2ln", type_id=5)
        with pytest.raises(MetadataNetworkError) as exc_info:
            await client.put(_ADDRESS, body)
        assert exc_info.value.is_404
        assert not isinstance(exc_info.value, MetadataNotFoundError)
        await client.close()

    async def test_put_forbidden(self):
        def handler(request: httpx.Request):
            return httpx.Response(403, json={"message": "bad signature"})

        client = await _connected_client(handler)
        body = MetadataBody(version=1, payload="AAE=", signature="c2ln", type_id=5)
        with pytest.raises(MetadataNetworkError, match="bad signature"):
            await client.put(_ADDRESS, body)
        await client.close()
