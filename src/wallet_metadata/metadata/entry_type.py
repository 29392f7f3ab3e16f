"""Entry types — the fixed, versioned table of metadata purposes.

The integer value of each member is both the ``type_id`` sent on the wire
and the hardened child index used to derive that entry's node. Changing a
value makes the data stored under it unreachable.
"""

from __future__ import annotations

import enum

from wallet_metadata.utils.crypto import sha256


class EntryType(enum.IntEnum):
    """Metadata entry purposes."""

    ROOT = -1
    WHATS_NEW = 2
    BUY_SELL = 3
    CONTACTS = 4
    ETHEREUM = 5
    SHAPESHIFT = 6
    BITCOIN_CASH = 7
    BITCOIN = 8
    WALLET_CREDENTIALS = 9
    USER_CREDENTIALS = 10
    STELLAR = 11
    WALLET_CONNECT = 12
    ACCOUNT_CREDENTIALS = 13

    @property
    def type_id(self) -> int:
        return int(self)

    @classmethod
    def from_type_id(cls, type_id: int) -> EntryType:
        """Look up an entry type by wire id.

        Raises:
            ValueError: If the id is not in the table.
        """
        return cls(type_id)


def derivation_purpose(domain: str) -> int:
    """BIP43 purpose for a reverse-domain name: first 31 bits of SHA-256(domain)."""
    return int.from_bytes(sha256(domain.encode("utf-8"))[:4], "big") & 0x7FFFFFFF


METADATA_PURPOSE_DOMAIN = "info.blockchain.metadata"
SHARED_METADATA_PURPOSE_DOMAIN = "info.blockchain.mdid"

METADATA_PURPOSE = derivation_purpose(METADATA_PURPOSE_DOMAIN)  # 510742
SHARED_METADATA_PURPOSE = derivation_purpose(SHARED_METADATA_PURPOSE_DOMAIN)
