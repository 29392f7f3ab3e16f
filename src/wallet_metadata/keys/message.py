"""Bitcoin signed-message scheme — magic hashing and compact signatures.

Signatures are the 65-byte "compact" form used by ``signmessage``:
one header byte carrying the recovery id and compression flag, followed by
32-byte ``r`` and ``s``. The signer's public key can be recovered from the
signature, so entries are verified against an address rather than a key.
"""

from __future__ import annotations

import base64
import binascii
import hashlib

from ecdsa import SigningKey, VerifyingKey
from ecdsa.ecdsa import InvalidPointError
from ecdsa.errors import MalformedPointError
from ecdsa.numbertheory import SquareRootError
from ecdsa.util import sigdecode_string, sigencode_string_canonize

from wallet_metadata.keys.address import address_to_pubkey_hash, validate_address
from wallet_metadata.keys.bip32 import CURVE, CURVE_ORDER, private_key_to_public_key
from wallet_metadata.utils.crypto import encode_varint, hash160, sha256d

MESSAGE_PREFIX = b"Bitcoin Signed Message:\n"

_COMPACT_SIG_LEN = 65
_HEADER_BASE = 27
_HEADER_COMPRESSED = 4


def message_hash(message: bytes | str) -> bytes:
    """Return the double-SHA256 digest of a prefixed Bitcoin message."""
    if isinstance(message, str):
        message = message.encode("utf-8")
    return sha256d(
        encode_varint(len(MESSAGE_PREFIX))
        + MESSAGE_PREFIX
        + encode_varint(len(message))
        + message
    )


# ---------------------------------------------------------------------------
# Compact signatures
# ---------------------------------------------------------------------------


def sign_compact(privkey_bytes: bytes, digest: bytes, *, compressed: bool = True) -> bytes:
    """Sign a 32-byte digest, returning a 65-byte recoverable signature.

    Uses RFC6979 deterministic nonces and low-S normalisation.

    Raises:
        ValueError: If the private key is invalid or no recovery id matches.
    """
    if len(privkey_bytes) != 32:
        msg = f"Private key must be 32 bytes, got {len(privkey_bytes)}"
        raise ValueError(msg)
    if not 0 < int.from_bytes(privkey_bytes, "big") < CURVE_ORDER:
        msg = "Private key out of range"
        raise ValueError(msg)
    sk = SigningKey.from_string(privkey_bytes, curve=CURVE)
    raw = sk.sign_digest_deterministic(
        digest,
        hashfunc=hashlib.sha256,
        sigencode=sigencode_string_canonize,
    )
    pubkey = private_key_to_public_key(privkey_bytes, compressed=compressed)

    for recid, candidate in enumerate(_recovery_candidates(raw, digest)):
        if _encode_point(candidate, compressed=compressed) == pubkey:
            header = _HEADER_BASE + recid + (_HEADER_COMPRESSED if compressed else 0)
            return bytes([header]) + raw
    msg = "Unable to determine recovery id for signature"
    raise ValueError(msg)


def recover_public_key(signature: bytes, digest: bytes) -> bytes:
    """Recover the SEC-encoded public key from a compact signature.

    Raises:
        ValueError: If the signature is malformed or does not recover a key.
    """
    if len(signature) != _COMPACT_SIG_LEN:
        msg = f"Compact signature must be 65 bytes, got {len(signature)}"
        raise ValueError(msg)
    header = signature[0]
    if not _HEADER_BASE <= header < _HEADER_BASE + 8:
        msg = f"Invalid compact signature header: {header}"
        raise ValueError(msg)
    compressed = header >= _HEADER_BASE + _HEADER_COMPRESSED
    recid = (header - _HEADER_BASE) & 3
    r = int.from_bytes(signature[1:33], "big")
    s = int.from_bytes(signature[33:65], "big")
    if not (0 < r < CURVE_ORDER and 0 < s < CURVE_ORDER):
        msg = "Signature values out of range"
        raise ValueError(msg)
    # Recovery ids 2 and 3 need R.x = r + n, which ecdsa does not search.
    if recid > 1:
        msg = f"Unsupported recovery id: {recid}"
        raise ValueError(msg)
    candidates = _recovery_candidates(signature[1:], digest)
    return _encode_point(candidates[recid], compressed=compressed)


# ---------------------------------------------------------------------------
# Message API
# ---------------------------------------------------------------------------


def sign_message(privkey_bytes: bytes, message: bytes | str) -> str:
    """Sign a message, returning the base64 compact signature."""
    signature = sign_compact(privkey_bytes, message_hash(message))
    return base64.b64encode(signature).decode("ascii")


def verify_message(address: str, signature: str, message: bytes | str) -> bool:
    """Check that ``signature`` over ``message`` was made by ``address``'s key."""
    if not validate_address(address):
        return False
    try:
        raw = base64.b64decode(signature, validate=True)
        pubkey = recover_public_key(raw, message_hash(message))
    except (ValueError, binascii.Error):
        return False
    return hash160(pubkey) == address_to_pubkey_hash(address)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _recovery_candidates(rs: bytes, digest: bytes) -> list[VerifyingKey]:
    """Public keys for R with even and odd y, in recovery id order."""
    try:
        return VerifyingKey.from_public_key_recovery_with_digest(
            rs,
            digest,
            curve=CURVE,
            hashfunc=hashlib.sha256,
            sigdecode=sigdecode_string,
        )
    except (SquareRootError, MalformedPointError, InvalidPointError) as exc:
        msg = "Signature does not recover a public key"
        raise ValueError(msg) from exc


def _encode_point(vk: VerifyingKey, *, compressed: bool) -> bytes:
    return vk.to_string("compressed" if compressed else "uncompressed")
