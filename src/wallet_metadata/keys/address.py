"""P2PKH address encoding for metadata node addresses.

A metadata entry is stored under the Base58Check P2PKH address of its
node's signing key, and signatures on entries are checked against it.
"""

from __future__ import annotations

from wallet_metadata.keys.bip32 import base58check_decode, base58check_encode
from wallet_metadata.utils.crypto import hash160

# Network version bytes
_MAINNET_PUBKEY_HASH = b"\x00"  # 1...
_TESTNET_PUBKEY_HASH = b"\x6f"  # m... or n...


def pubkey_to_address(pubkey: bytes, *, testnet: bool = False) -> str:
    """Generate a P2PKH address from a compressed/uncompressed public key.

    Args:
        pubkey: 33-byte compressed or 65-byte uncompressed public key.
        testnet: If True, use testnet version byte.

    Returns:
        Base58Check-encoded P2PKH address.
    """
    version = _TESTNET_PUBKEY_HASH if testnet else _MAINNET_PUBKEY_HASH
    return base58check_encode(version + hash160(pubkey))


def address_to_pubkey_hash(address: str) -> bytes:
    """Extract the 20-byte public key hash from a P2PKH address.

    Raises:
        ValueError: If the address is invalid or not P2PKH.
    """
    payload = base58check_decode(address)
    if len(payload) != 21:
        msg = f"Invalid address payload length: {len(payload)}"
        raise ValueError(msg)
    return payload[1:]


def validate_address(address: str) -> bool:
    """Check if an address is a valid Base58Check-encoded P2PKH address."""
    try:
        payload = base58check_decode(address)
    except ValueError:
        return False
    return len(payload) == 21 and payload[:1] in (_MAINNET_PUBKEY_HASH, _TESTNET_PUBKEY_HASH)
