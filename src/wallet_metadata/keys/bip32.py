"""BIP32 HD key derivation for metadata nodes.

Only the private side of BIP32 is needed here: every metadata node is
derived through hardened indices from the wallet's master seed.

- Base58Check encoding / decoding
- Master key from seed, hardened & normal child derivation
- Extended private key serialization (xprv/tprv) for persisting purpose nodes
- secp256k1 public key encoding
"""

from __future__ import annotations

import hashlib
import hmac
import struct
from dataclasses import dataclass
from typing import Self

from ecdsa import SECP256k1, SigningKey

from wallet_metadata.utils.crypto import hash160, sha256d

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

CURVE = SECP256k1
CURVE_ORDER = CURVE.order

HARDENED_OFFSET = 0x80000000

_XPRV_VERSION = b"\x04\x88\xad\xe4"  # xprv
_TPRV_VERSION = b"\x04\x35\x83\x94"  # tprv

_MASTER_HMAC_KEY = b"Bitcoin seed"


# ---------------------------------------------------------------------------
# Base58Check encoding / decoding
# ---------------------------------------------------------------------------

_B58_ALPHABET = b"123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


def base58_encode(payload: bytes) -> str:
    """Encode raw bytes to Base58 (no checksum)."""
    n = int.from_bytes(payload, "big")
    result: list[int] = []
    while n > 0:
        n, remainder = divmod(n, 58)
        result.append(_B58_ALPHABET[remainder])
    # Leading zero bytes become '1'
    for byte in payload:
        if byte != 0:
            break
        result.append(_B58_ALPHABET[0])
    return bytes(reversed(result)).decode("ascii")


def base58_decode(s: str) -> bytes:
    """Decode a Base58 string to raw bytes (no checksum).

    Raises:
        ValueError: If the string contains a non-Base58 character.
    """
    n = 0
    for char in s:
        index = _B58_ALPHABET.find(char.encode("ascii", errors="replace"))
        if index < 0:
            msg = f"Invalid Base58 character: {char!r}"
            raise ValueError(msg)
        n = n * 58 + index
    body = n.to_bytes((n.bit_length() + 7) // 8, "big") if n > 0 else b""
    pad = len(s) - len(s.lstrip("1"))
    return b"\x00" * pad + body


def base58check_encode(payload: bytes) -> str:
    """Encode bytes with a 4-byte SHA256d checksum (Base58Check)."""
    return base58_encode(payload + sha256d(payload)[:4])


def base58check_decode(s: str) -> bytes:
    """Decode a Base58Check string, verifying the checksum.

    Raises:
        ValueError: If the string is too short or the checksum is invalid.
    """
    raw = base58_decode(s)
    if len(raw) < 4:
        msg = "Base58Check string too short"
        raise ValueError(msg)
    payload, checksum = raw[:-4], raw[-4:]
    if sha256d(payload)[:4] != checksum:
        msg = "Base58Check checksum mismatch"
        raise ValueError(msg)
    return payload


# ---------------------------------------------------------------------------
# Public key helpers
# ---------------------------------------------------------------------------


def private_key_to_public_key(privkey_bytes: bytes, *, compressed: bool = True) -> bytes:
    """Derive the SEC-encoded public key for a 32-byte private key."""
    vk = SigningKey.from_string(privkey_bytes, curve=CURVE).get_verifying_key()
    return vk.to_string("compressed" if compressed else "uncompressed")


# ---------------------------------------------------------------------------
# BIP32 Extended private key
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExtendedKey:
    """A BIP32 extended private key.

    Attributes:
        key: 32-byte private key scalar.
        chain_code: 32-byte chain code.
        depth: Derivation depth (0 for master).
        parent_fingerprint: First 4 bytes of parent's Hash160(pubkey).
        child_index: Index used in derivation.
        testnet: True for a tprv-serialized key.
    """

    key: bytes
    chain_code: bytes
    depth: int = 0
    parent_fingerprint: bytes = b"\x00\x00\x00\x00"
    child_index: int = 0
    testnet: bool = False

    def __repr__(self) -> str:
        # Never leak the scalar into logs or tracebacks
        return f"ExtendedKey(depth={self.depth}, child_index={self.child_index:#x})"

    # -- Serialization -----------------------------------------------------

    def serialize(self) -> bytes:
        """Serialize to the 78-byte BIP32 format."""
        version = _TPRV_VERSION if self.testnet else _XPRV_VERSION
        return (
            version
            + struct.pack("B", self.depth)
            + self.parent_fingerprint
            + struct.pack(">I", self.child_index)
            + self.chain_code
            + b"\x00"
            + self.key
        )

    def to_string(self) -> str:
        """Encode as a Base58Check xprv/tprv string."""
        return base58check_encode(self.serialize())

    @classmethod
    def from_string(cls, s: str) -> Self:
        """Decode a Base58Check xprv/tprv string.

        Raises:
            ValueError: If the string is not a valid extended private key.
        """
        data = base58check_decode(s)
        if len(data) != 78:
            msg = f"Invalid extended key length: {len(data)}"
            raise ValueError(msg)
        version = data[:4]
        if version not in (_XPRV_VERSION, _TPRV_VERSION):
            msg = f"Not an extended private key: {version.hex()}"
            raise ValueError(msg)
        if data[45] != 0:
            msg = "Invalid private key padding"
            raise ValueError(msg)
        return cls(
            key=data[46:78],
            chain_code=data[13:45],
            depth=data[4],
            parent_fingerprint=data[5:9],
            child_index=struct.unpack(">I", data[9:13])[0],
            testnet=version == _TPRV_VERSION,
        )

    # -- Derivation --------------------------------------------------------

    def public_key(self) -> bytes:
        """Return the 33-byte compressed public key."""
        return private_key_to_public_key(self.key, compressed=True)

    def fingerprint(self) -> bytes:
        """First 4 bytes of Hash160(compressed pubkey)."""
        return hash160(self.public_key())[:4]

    def derive_child(self, index: int) -> ExtendedKey:
        """Derive a child key at the given index.

        Use ``index >= HARDENED_OFFSET`` for hardened derivation.

        Raises:
            ValueError: If the index is out of range or the derived key is invalid.
        """
        if not 0 <= index <= 0xFFFFFFFF:
            msg = f"Child index out of range: {index}"
            raise ValueError(msg)

        if index >= HARDENED_OFFSET:
            data = b"\x00" + self.key + struct.pack(">I", index)
        else:
            data = self.public_key() + struct.pack(">I", index)

        digest = hmac.new(self.chain_code, data, hashlib.sha512).digest()
        il, ir = digest[:32], digest[32:]

        il_int = int.from_bytes(il, "big")
        if il_int >= CURVE_ORDER:
            msg = "Derived key is invalid (il >= curve order)"
            raise ValueError(msg)
        key_int = (il_int + int.from_bytes(self.key, "big")) % CURVE_ORDER
        if key_int == 0:
            msg = "Derived key is invalid (key == 0)"
            raise ValueError(msg)

        return ExtendedKey(
            key=key_int.to_bytes(32, "big"),
            chain_code=ir,
            depth=self.depth + 1,
            parent_fingerprint=self.fingerprint(),
            child_index=index,
            testnet=self.testnet,
        )

    def derive_hardened(self, index: int) -> ExtendedKey:
        """Derive the hardened child ``index'``.

        Raises:
            ValueError: If ``index`` is negative or already includes the hardened offset.
        """
        if not 0 <= index < HARDENED_OFFSET:
            msg = f"Hardened index must be in [0, 2^31): {index}"
            raise ValueError(msg)
        return self.derive_child(index + HARDENED_OFFSET)

    @classmethod
    def from_seed(cls, seed: bytes, *, testnet: bool = False) -> ExtendedKey:
        """Create a master private extended key from a BIP32 seed.

        Raises:
            ValueError: If seed length is out of range (16-64 bytes).
        """
        if not 16 <= len(seed) <= 64:
            msg = f"Seed must be 16-64 bytes, got {len(seed)}"
            raise ValueError(msg)
        digest = hmac.new(_MASTER_HMAC_KEY, seed, hashlib.sha512).digest()
        il, ir = digest[:32], digest[32:]
        il_int = int.from_bytes(il, "big")
        if il_int == 0 or il_int >= CURVE_ORDER:
            msg = "Invalid seed (derived key out of range)"
            raise ValueError(msg)
        return cls(key=il, chain_code=ir, testnet=testnet)
