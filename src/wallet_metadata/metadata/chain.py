"""Magic-hash chain — binds each entry to the entry it replaced.

``chain_message(payload, prev)`` is the canonical message signed for an
entry: the raw ciphertext for the first entry at an address, otherwise
``prev || SHA-256(payload)``. An entry's magic hash is the Bitcoin
signed-message digest of the base64 chain message, which is exactly what
its signature signs.

A writer must read the current entry immediately before writing and chain
to its magic hash. A concurrent writer that read a stale entry produces a
signature bound to a different chain position.
"""

from __future__ import annotations

import base64

from wallet_metadata.errors.metadata_errors import MetadataChainError
from wallet_metadata.keys.message import message_hash
from wallet_metadata.metadata.models import RemoteMetadataPayload
from wallet_metadata.utils.crypto import sha256

MAGIC_HASH_SIZE = 32


def chain_message(payload: bytes, prev_magic_hash: bytes | None = None) -> bytes:
    """Build the message binding ``payload`` to ``prev_magic_hash``.

    Raises:
        MetadataChainError: If ``prev_magic_hash`` has the wrong length.
    """
    if not prev_magic_hash:
        return bytes(payload)
    if len(prev_magic_hash) != MAGIC_HASH_SIZE:
        msg = f"prev magic hash must be {MAGIC_HASH_SIZE} bytes, got {len(prev_magic_hash)}"
        raise MetadataChainError(msg)
    return bytes(prev_magic_hash) + sha256(payload)


def encode_chain_message(message: bytes) -> str:
    """Text form of a chain message, as fed to the message signer."""
    return base64.b64encode(message).decode("ascii")


def magic_hash(payload: bytes, prev_magic_hash: bytes | None = None) -> bytes:
    """Compute the magic hash of an entry."""
    return message_hash(encode_chain_message(chain_message(payload, prev_magic_hash)))


def magic_hash_of(entry: RemoteMetadataPayload) -> bytes:
    """Compute the magic hash of a stored entry.

    Raises:
        MetadataRemotePayloadError: If the entry cannot be decoded.
        MetadataChainError: If its prev magic hash is malformed.
    """
    return magic_hash(entry.payload_bytes(), entry.prev_magic_hash_bytes())
