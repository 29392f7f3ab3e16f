"""Payload encryption — AES-256-GCM under a node's encryption key.

Wire layout: ``nonce (12) || ciphertext || tag (16)``. A fresh random nonce
is drawn per call, so identical documents never produce identical
ciphertext; compare decrypted content, not ciphertext.
"""

from __future__ import annotations

import json
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from wallet_metadata.errors.metadata_errors import (
    MetadataDecryptionError,
    MetadataEncryptionError,
)

KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16


def encrypt(valid_json: str, key: bytes) -> bytes:
    """Encrypt a validated JSON document.

    Raises:
        MetadataEncryptionError: If the key is not 32 bytes.
    """
    if len(key) != KEY_SIZE:
        raise MetadataEncryptionError(f"encryption key must be {KEY_SIZE} bytes, got {len(key)}")
    nonce = os.urandom(NONCE_SIZE)
    return nonce + AESGCM(key).encrypt(nonce, valid_json.encode("utf-8"), None)


def decrypt(data: bytes, key: bytes) -> str:
    """Decrypt and re-validate a payload, returning the JSON text.

    Raises:
        MetadataDecryptionError: On a wrong key, truncated or tampered data,
            or a plaintext that is not a JSON object.
    """
    if len(key) != KEY_SIZE:
        raise MetadataDecryptionError(f"encryption key must be {KEY_SIZE} bytes, got {len(key)}")
    if len(data) < NONCE_SIZE + TAG_SIZE:
        raise MetadataDecryptionError("ciphertext too short")

    nonce, sealed = data[:NONCE_SIZE], data[NONCE_SIZE:]
    try:
        plaintext = AESGCM(key).decrypt(nonce, sealed, None)
    except InvalidTag as exc:
        raise MetadataDecryptionError("authentication failed (wrong key or tampered data)") from exc

    try:
        text = plaintext.decode("utf-8")
        document = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MetadataDecryptionError("decrypted payload is not valid JSON") from exc
    if not isinstance(document, dict):
        raise MetadataDecryptionError("decrypted payload is not a JSON object")
    return text
