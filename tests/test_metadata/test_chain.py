"""Tests for the magic-hash chain builder."""

from __future__ import annotations

import base64

import pytest

from wallet_metadata.errors.metadata_errors import (
    MetadataChainError,
    MetadataRemotePayloadError,
)
from wallet_metadata.keys.message import message_hash
from wallet_metadata.metadata.chain import (
    chain_message,
    encode_chain_message,
    magic_hash,
    magic_hash_of,
)
from wallet_metadata.metadata.models import RemoteMetadataPayload
from wallet_metadata.utils.crypto import sha256

_PAYLOAD = b"ciphertext-bytes"
_PREV = sha256(b"previous entry")


class TestChainMessage:
    def test_first_write_is_payload(self):
        assert chain_message(_PAYLOAD) == _PAYLOAD
        assert chain_message(_PAYLOAD, b"") == _PAYLOAD

    def test_chained_layout(self):
        assert chain_message(_PAYLOAD, _PREV) == _PREV + sha256(_PAYLOAD)

    def test_changes_with_prev(self):
        other_prev = sha256(b"another entry")
        assert chain_message(_PAYLOAD, _PREV) != chain_message(_PAYLOAD, other_prev)
        assert chain_message(_PAYLOAD, _PREV) != chain_message(_PAYLOAD)

    def test_changes_with_payload(self):
        assert chain_message(_PAYLOAD, _PREV) != chain_message(b"other", _PREV)
        assert chain_message(_PAYLOAD) != chain_message(b"other")

    def test_bad_prev_length(self):
        with pytest.raises(MetadataChainError, match="32 bytes"):
            chain_message(_PAYLOAD, b"\x01" * 5)


class TestMagicHash:
    def test_is_message_hash_of_encoded_chain(self):
        expected = message_hash(base64.b64encode(_PREV + sha256(_PAYLOAD)).decode())
        assert magic_hash(_PAYLOAD, _PREV) == expected

    def test_binds_prev(self):
        assert magic_hash(_PAYLOAD, _PREV) != magic_hash(_PAYLOAD)

    def test_encode_chain_message(self):
        assert encode_chain_message(b"\x00\x01") == "AAE="

    def test_magic_hash_of_entry(self):
        entry = RemoteMetadataPayload(
            version=1,
            payload=base64.b64encode(_PAYLOAD).decode(),
            signature="sig",
            type_id=5,
            prev_magic_hash=_PREV.hex(),
        )
        assert magic_hash_of(entry) == magic_hash(_PAYLOAD, _PREV)

    def test_magic_hash_of_first_entry(self):
        entry = RemoteMetadataPayload(
            version=1, payload=base64.b64encode(_PAYLOAD).decode(), signature="sig", type_id=5
        )
        assert magic_hash_of(entry) == magic_hash(_PAYLOAD)

    def test_magic_hash_of_undecodable_entry(self):
        entry = RemoteMetadataPayload(version=1, payload="@@@", signature="sig", type_id=5)
        with pytest.raises(MetadataRemotePayloadError, match="base64"):
            magic_hash_of(entry)
