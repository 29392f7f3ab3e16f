"""MetadataError — closed error taxonomy for metadata save/load.

Every failure kind is its own class so callers can choose policy per kind
(retry later, surface "wallet data may be out of sync", etc).
"""

from __future__ import annotations


class MetadataError(Exception):
    """Base error for all metadata operations.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code string.
        transient: True when retrying the whole operation later may succeed.
    """

    code = "metadata-error"
    transient = False

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


# -- Local (fatal) failures --------------------------------------------------


class MetadataDerivationError(MetadataError):
    """Invalid seed or entry-type derivation parameters."""

    code = "derivation-failed"


class MetadataValidationError(MetadataError):
    """Input JSON is malformed or not a JSON object."""

    code = "invalid-json"


class MetadataEncryptionError(MetadataError):
    """Cipher failure while encrypting a payload."""

    code = "encryption-failed"


class MetadataDecryptionError(MetadataError):
    """Wrong key, corrupted or tampered ciphertext."""

    code = "decryption-failed"


class MetadataChainError(MetadataError):
    """Magic-hash computation failed, or an entry does not verify against its chain."""

    code = "chain-failed"


class MetadataSigningError(MetadataError):
    """Key material or signature generation failure."""

    code = "signing-failed"


class MetadataRemotePayloadError(MetadataError):
    """A stored entry could not be parsed."""

    code = "invalid-remote-payload"


# -- Remote store failures ---------------------------------------------------


class MetadataNetworkError(MetadataError):
    """Transport-level failure from the remote store.

    Attributes:
        status_code: HTTP status of the failed request, or None when no
            response was received.
    """

    code = "network-error"
    transient = True

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message, code=code)
        self.status_code = status_code

    @property
    def is_404(self) -> bool:
        return self.status_code == 404


class MetadataNotFoundError(MetadataNetworkError):
    """No entry is stored at the address yet."""

    code = "not-found"
    transient = False

    def __init__(self, address: str) -> None:
        super().__init__(f"no metadata stored at {address}", status_code=404)
        self.address = address


class MetadataInconsistentStateError(MetadataError):
    """The store rejected a write and still reports no prior entry on retry."""

    code = "inconsistent-state"
