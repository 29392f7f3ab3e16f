"""Metadata — encrypted, hash-chained entries stored per derived node."""

from wallet_metadata.metadata.client import MetadataClient, MetadataStore
from wallet_metadata.metadata.entry_type import EntryType
from wallet_metadata.metadata.models import (
    MetadataBody,
    RemoteMetadataPayload,
    SaveReceipt,
    SaveState,
)
from wallet_metadata.metadata.node import (
    MasterKey,
    MetadataNode,
    RemoteMetadataNodes,
    derive,
    derive_metadata_node,
    derive_remote_nodes,
)
from wallet_metadata.metadata.service import MetadataService

__all__ = [
    "EntryType",
    "MasterKey",
    "MetadataBody",
    "MetadataClient",
    "MetadataNode",
    "MetadataService",
    "MetadataStore",
    "RemoteMetadataNodes",
    "RemoteMetadataPayload",
    "SaveReceipt",
    "SaveState",
    "derive",
    "derive_metadata_node",
    "derive_remote_nodes",
]
