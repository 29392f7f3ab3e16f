"""Entry signing — Bitcoin message signatures by a node's signing key."""

from __future__ import annotations

from wallet_metadata.errors.metadata_errors import MetadataSigningError
from wallet_metadata.keys.message import sign_message, verify_message
from wallet_metadata.metadata.chain import encode_chain_message
from wallet_metadata.metadata.node import MetadataNode


def sign(message: bytes, node: MetadataNode) -> str:
    """Sign a chain message with the node's key.

    Returns:
        Base64 compact signature, recoverable to ``node.address``.

    Raises:
        MetadataSigningError: If the key material is unusable.
    """
    try:
        return sign_message(node.signing_key, encode_chain_message(message))
    except ValueError as exc:
        raise MetadataSigningError(f"failed to sign message for {node.type.name}") from exc


def verify(message: bytes, signature: str, address: str) -> bool:
    """Check that ``signature`` over a chain message was produced for ``address``."""
    return verify_message(address, signature, encode_chain_message(message))
