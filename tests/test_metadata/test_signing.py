"""Tests for entry signing by metadata nodes."""

from __future__ import annotations

import base64
from dataclasses import replace

import pytest

from wallet_metadata.errors.metadata_errors import MetadataSigningError
from wallet_metadata.metadata.chain import chain_message
from wallet_metadata.metadata.entry_type import EntryType
from wallet_metadata.metadata.node import derive
from wallet_metadata.metadata.signing import sign, verify
from wallet_metadata.utils.crypto import sha256

_MESSAGE = chain_message(b"ciphertext", sha256(b"prev"))


def test_signature_verifies_against_node_address(seed):
    node = derive(seed, EntryType.ETHEREUM)
    signature = sign(_MESSAGE, node)
    assert len(base64.b64decode(signature)) == 65
    assert verify(_MESSAGE, signature, node.address) is True


def test_signature_bound_to_message(seed):
    node = derive(seed, EntryType.ETHEREUM)
    signature = sign(_MESSAGE, node)
    assert verify(chain_message(b"ciphertext"), signature, node.address) is False


def test_signature_bound_to_node(seed):
    node = derive(seed, EntryType.ETHEREUM)
    other = derive(seed, EntryType.BITCOIN)
    assert verify(_MESSAGE, sign(_MESSAGE, node), other.address) is False


def test_corrupt_signing_key(seed):
    node = replace(derive(seed, EntryType.ETHEREUM), signing_key=b"\x00" * 32)
    with pytest.raises(MetadataSigningError, match="ETHEREUM"):
        sign(_MESSAGE, node)
