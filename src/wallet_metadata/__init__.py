"""wallet-metadata — encrypted metadata synchronization for HD wallets."""

from wallet_metadata.metadata import (
    EntryType,
    MetadataClient,
    MetadataService,
    RemoteMetadataNodes,
    SaveReceipt,
    SaveState,
)

__version__ = "0.1.0"

__all__ = [
    "EntryType",
    "MetadataClient",
    "MetadataService",
    "RemoteMetadataNodes",
    "SaveReceipt",
    "SaveState",
    "__version__",
]
