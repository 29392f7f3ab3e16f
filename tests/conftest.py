"""Shared test fixtures for the wallet-metadata test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from wallet_metadata.config.settings import MetadataConfig
from wallet_metadata.errors.metadata_errors import MetadataNetworkError, MetadataNotFoundError
from wallet_metadata.metadata.models import MetadataBody, RemoteMetadataPayload
from wallet_metadata.metadata.service import MetadataService

if TYPE_CHECKING:
    from collections.abc import Callable

# BIP32 test vector 1 seed
TEST_SEED = bytes.fromhex("000102030405060708090a0b0c0d0e0f")


class InMemoryMetadataStore:
    """MetadataStore fake that records every call.

    ``put_failures`` and ``fetch_failures`` are consumed in order; each
    entry is an exception to raise, or a callable run before raising
    ``MetadataNetworkError(status_code=404)`` (used to simulate another
    device writing between our fetch and our put).
    """

    def __init__(self) -> None:
        self.entries: dict[str, dict] = {}
        self.calls: list[tuple[str, str]] = []
        self.bodies: list[MetadataBody] = []
        self.put_failures: list[Exception | Callable[[], None]] = []
        self.fetch_failures: list[Exception] = []

    async def fetch(self, address: str) -> RemoteMetadataPayload:
        self.calls.append(("GET", address))
        if self.fetch_failures:
            raise self.fetch_failures.pop(0)
        if address not in self.entries:
            raise MetadataNotFoundError(address)
        return RemoteMetadataPayload.from_dict(self.entries[address])

    async def put(self, address: str, body: MetadataBody) -> None:
        self.calls.append(("PUT", address))
        self.bodies.append(body)
        if self.put_failures:
            failure = self.put_failures.pop(0)
            if isinstance(failure, Exception):
                raise failure
            failure()
            raise MetadataNetworkError("address state changed", status_code=404)
        self.entries[address] = body.to_dict()

    def methods(self) -> list[str]:
        return [method for method, _ in self.calls]


@pytest.fixture
def seed() -> bytes:
    return TEST_SEED


@pytest.fixture
def metadata_config() -> MetadataConfig:
    """Config with no retry delay so conflict tests run instantly."""
    return MetadataConfig(retry_delay=0.0)


@pytest.fixture
def store() -> InMemoryMetadataStore:
    return InMemoryMetadataStore()


@pytest.fixture
def service(store, seed, metadata_config) -> MetadataService:
    return MetadataService.from_seed(store, seed, metadata_config)
