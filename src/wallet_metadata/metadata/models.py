"""Metadata wire models — stored entries, write bodies, save receipts.

Wire shape for ``GET``/``PUT /metadata/{address}``::

    {
      "version": 1,
      "payload": "<base64 ciphertext>",
      "signature": "<base64 compact signature>",
      "prev_magic_hash": "<hex, omitted on first write>",
      "type_id": 5
    }
"""

from __future__ import annotations

import base64
import binascii
import enum
from dataclasses import dataclass
from typing import Any, Self

from wallet_metadata.errors.metadata_errors import MetadataRemotePayloadError
from wallet_metadata.metadata.entry_type import EntryType

# ---------------------------------------------------------------------------
# Save state machine
# ---------------------------------------------------------------------------


class SaveState(enum.StrEnum):
    """States of a single save attempt."""

    IDLE = "idle"
    VALIDATING = "validating"
    DERIVING = "deriving"
    FETCHING_PRIOR_STATE = "fetching_prior_state"
    ENCRYPTING = "encrypting"
    SIGNING = "signing"
    PUTTING = "putting"
    SUCCEEDED = "succeeded"
    FAILED_TRANSIENT = "failed_transient"
    FAILED_FATAL = "failed_fatal"


# ---------------------------------------------------------------------------
# Stored entry (read side)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RemoteMetadataPayload:
    """An entry as returned by the store.

    Attributes:
        version: Entry format version.
        payload: Base64 ciphertext.
        signature: Base64 compact signature over the entry's chain message.
        type_id: Entry type id.
        prev_magic_hash: Hex magic hash of the entry this one replaced.
    """

    version: int
    payload: str
    signature: str
    type_id: int
    prev_magic_hash: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Parse a store response. Accepts snake_case and camelCase keys.

        Raises:
            MetadataRemotePayloadError: If required fields are missing.
        """
        if not isinstance(data, dict):
            raise MetadataRemotePayloadError("metadata response is not a JSON object")
        payload = data.get("payload")
        if not isinstance(payload, str) or not payload:
            raise MetadataRemotePayloadError("metadata response has no payload")
        prev = data.get("prev_magic_hash", data.get("prevMagicHash"))
        try:
            return cls(
                version=int(data.get("version", 1)),
                payload=payload,
                signature=str(data.get("signature", "")),
                type_id=int(data.get("type_id", data.get("typeId", -1))),
                prev_magic_hash=prev or None,
            )
        except (TypeError, ValueError) as exc:
            raise MetadataRemotePayloadError(f"malformed metadata response: {exc}") from exc

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "version": self.version,
            "payload": self.payload,
            "signature": self.signature,
            "type_id": self.type_id,
        }
        if self.prev_magic_hash:
            result["prev_magic_hash"] = self.prev_magic_hash
        return result

    def payload_bytes(self) -> bytes:
        """Decode the base64 ciphertext.

        Raises:
            MetadataRemotePayloadError: If the payload is not valid base64.
        """
        try:
            return base64.b64decode(self.payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise MetadataRemotePayloadError("payload is not valid base64") from exc

    def prev_magic_hash_bytes(self) -> bytes | None:
        """Decode the hex previous magic hash, if any.

        Raises:
            MetadataRemotePayloadError: If the hash is not valid hex.
        """
        if not self.prev_magic_hash:
            return None
        try:
            return bytes.fromhex(self.prev_magic_hash)
        except ValueError as exc:
            raise MetadataRemotePayloadError("prev_magic_hash is not valid hex") from exc


# ---------------------------------------------------------------------------
# Write body
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MetadataBody:
    """PUT request body for a new entry."""

    version: int
    payload: str
    signature: str
    type_id: int
    prev_magic_hash: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the store's request format, omitting an empty prev hash."""
        body: dict[str, Any] = {
            "version": self.version,
            "payload": self.payload,
            "signature": self.signature,
            "type_id": self.type_id,
        }
        if self.prev_magic_hash:
            body["prev_magic_hash"] = self.prev_magic_hash
        return body


# ---------------------------------------------------------------------------
# Save receipt
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SaveReceipt:
    """Outcome of a successful save.

    Attributes:
        address: Address the entry was written to.
        type: Entry type saved.
        state: Final state (always ``SUCCEEDED``).
        attempts: Write attempts made (1, or 2 after a conflict retry).
        prev_magic_hash: Hex magic hash the write was chained to, or None.
        magic_hash: Hex magic hash of the entry just written.
    """

    address: str
    type: EntryType
    state: SaveState
    attempts: int
    prev_magic_hash: str | None
    magic_hash: str

    @property
    def retried(self) -> bool:
        return self.attempts > 1
