"""Metadata node derivation — seed → purpose nodes → per-entry-type node.

Derivation layout (all indices hardened)::

    m / 510742'                         metadata HD node
      / <type_id>'                      entry-type node
        / 0'                            signing key (address = P2PKH of its pubkey)
        / 1'                            SHA-256(private key) = encryption key

    m / purpose("info.blockchain.mdid")'  shared metadata node

Derivation is pure and deterministic: devices sharing a seed converge on
the same addresses and keys.
"""

from __future__ import annotations

import binascii
from dataclasses import dataclass, field
from typing import Any, Self

from wallet_metadata.errors.metadata_errors import MetadataDerivationError
from wallet_metadata.keys.address import pubkey_to_address
from wallet_metadata.keys.bip32 import ExtendedKey
from wallet_metadata.metadata.entry_type import (
    METADATA_PURPOSE,
    SHARED_METADATA_PURPOSE,
    EntryType,
)
from wallet_metadata.utils.crypto import sha256

_SIGNING_CHILD = 0
_ENCRYPTION_CHILD = 1


@dataclass(frozen=True)
class MasterKey:
    """Wallet master private key, the root of all metadata derivation."""

    key: ExtendedKey

    @classmethod
    def from_seed(cls, seed: bytes, *, testnet: bool = False) -> Self:
        """Build the master key from a raw BIP32 seed.

        Raises:
            MetadataDerivationError: If the seed is malformed.
        """
        try:
            return cls(key=ExtendedKey.from_seed(seed, testnet=testnet))
        except ValueError as exc:
            raise MetadataDerivationError(f"invalid master seed: {exc}") from exc

    @classmethod
    def from_seed_hex(cls, seed_hex: str, *, testnet: bool = False) -> Self:
        """Build the master key from a hex-encoded seed."""
        try:
            seed = binascii.unhexlify(seed_hex.strip())
        except (binascii.Error, ValueError) as exc:
            raise MetadataDerivationError("master seed is not valid hex") from exc
        return cls.from_seed(seed, testnet=testnet)


@dataclass(frozen=True)
class RemoteMetadataNodes:
    """The purpose-level HD nodes, serialized as extended private keys.

    Holding these lets a session derive entry nodes without retaining the
    wallet seed.
    """

    metadata_node: str = field(repr=False)
    shared_metadata_node: str = field(repr=False)

    def metadata_hd_node(self) -> ExtendedKey:
        """Parse the metadata HD node.

        Raises:
            MetadataDerivationError: If the stored key is not a valid xprv.
        """
        try:
            return ExtendedKey.from_string(self.metadata_node)
        except ValueError as exc:
            raise MetadataDerivationError(f"invalid metadata node: {exc}") from exc

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self.metadata_node,
            "mdid": self.shared_metadata_node,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Parse the dict form produced by :meth:`to_dict`.

        Raises:
            MetadataDerivationError: If either node is missing.
        """
        metadata_node = data.get("metadata")
        shared_node = data.get("mdid")
        if not isinstance(metadata_node, str) or not isinstance(shared_node, str):
            msg = "remote metadata nodes payload is missing 'metadata' or 'mdid'"
            raise MetadataDerivationError(msg)
        return cls(metadata_node=metadata_node, shared_metadata_node=shared_node)


@dataclass(frozen=True)
class MetadataNode:
    """Address and keys securing one metadata entry.

    Attributes:
        address: P2PKH address the entry is stored under.
        type: Entry type this node was derived for.
        encryption_key: 32-byte AES key.
        signing_key: 32-byte secp256k1 private key.
    """

    address: str
    type: EntryType
    encryption_key: bytes = field(repr=False)
    signing_key: bytes = field(repr=False)


# ---------------------------------------------------------------------------
# Derivation
# ---------------------------------------------------------------------------


def derive_remote_nodes(master: MasterKey) -> RemoteMetadataNodes:
    """Derive the metadata and shared-metadata purpose nodes."""
    try:
        metadata_node = master.key.derive_hardened(METADATA_PURPOSE)
        shared_node = master.key.derive_hardened(SHARED_METADATA_PURPOSE)
    except ValueError as exc:
        raise MetadataDerivationError(f"failed to derive purpose nodes: {exc}") from exc
    return RemoteMetadataNodes(
        metadata_node=metadata_node.to_string(),
        shared_metadata_node=shared_node.to_string(),
    )


def derive_metadata_node(
    metadata_hd_node: ExtendedKey | RemoteMetadataNodes,
    entry_type: EntryType | int,
) -> MetadataNode:
    """Derive the node for ``entry_type`` under the metadata HD node.

    Raises:
        MetadataDerivationError: If the entry type is unknown or cannot be
            used as a hardened index (e.g. ``EntryType.ROOT``).
    """
    if isinstance(metadata_hd_node, RemoteMetadataNodes):
        metadata_hd_node = metadata_hd_node.metadata_hd_node()

    try:
        entry_type = EntryType.from_type_id(entry_type)
    except ValueError as exc:
        raise MetadataDerivationError(f"unknown entry type: {entry_type}") from exc

    try:
        type_node = metadata_hd_node.derive_hardened(entry_type.type_id)
        signing_node = type_node.derive_hardened(_SIGNING_CHILD)
        encryption_node = type_node.derive_hardened(_ENCRYPTION_CHILD)
    except ValueError as exc:
        msg = f"cannot derive node for {entry_type.name}: {exc}"
        raise MetadataDerivationError(msg) from exc

    return MetadataNode(
        address=pubkey_to_address(signing_node.public_key()),
        type=entry_type,
        encryption_key=sha256(encryption_node.key),
        signing_key=signing_node.key,
    )


def derive(seed: bytes | str, entry_type: EntryType | int) -> MetadataNode:
    """Derive the node for ``entry_type`` straight from a master seed (raw or hex)."""
    master = MasterKey.from_seed_hex(seed) if isinstance(seed, str) else MasterKey.from_seed(seed)
    return derive_metadata_node(derive_remote_nodes(master), entry_type)
