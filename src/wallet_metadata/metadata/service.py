"""MetadataService — save and load encrypted metadata entries.

Save pipeline for one attempt::

    validate → derive node → fetch prior entry → encrypt → chain → sign → PUT

A PUT rejected with 404 means the address changed under the writer; the
attempt is repeated once, from the fetch, after a fixed delay. Anything
else, including a failure of the repeated attempt, is raised to the caller.

Concurrent writers are not merged. Beyond the single retry, the last
writer wins. Callers must serialize saves per entry type in-process.
"""

from __future__ import annotations

import asyncio
import base64
import json
import logging
from typing import TYPE_CHECKING, Any, Self

from wallet_metadata.config.settings import MetadataConfig
from wallet_metadata.errors.metadata_errors import (
    MetadataChainError,
    MetadataDerivationError,
    MetadataError,
    MetadataInconsistentStateError,
    MetadataNetworkError,
)
from wallet_metadata.metadata.chain import chain_message, magic_hash, magic_hash_of
from wallet_metadata.metadata.encryption import decrypt, encrypt
from wallet_metadata.metadata.entry_type import EntryType
from wallet_metadata.metadata.models import MetadataBody, SaveReceipt, SaveState
from wallet_metadata.metadata.node import (
    MasterKey,
    MetadataNode,
    RemoteMetadataNodes,
    derive_metadata_node,
    derive_remote_nodes,
)
from wallet_metadata.metadata.signing import sign, verify
from wallet_metadata.metadata.validation import validate_json

if TYPE_CHECKING:
    from wallet_metadata.metadata.client import MetadataStore

logger = logging.getLogger(__name__)


class MetadataService:
    """Orchestrates metadata saves and loads against a remote store.

    Usage::

        service = MetadataService.from_seed(client, seed)
        await service.save(EntryType.ETHEREUM, {"ethereum": {...}})
        doc = await service.load(EntryType.ETHEREUM)
    """

    def __init__(
        self,
        store: MetadataStore,
        nodes: RemoteMetadataNodes,
        config: MetadataConfig | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            store: Remote store used for fetch / put.
            nodes: Purpose-level HD nodes entry nodes are derived from.
            config: Retry, version and verification settings.
        """
        self._store = store
        self._nodes = nodes
        self._config = config or MetadataConfig()
        self._states: dict[EntryType, SaveState] = {}

    @classmethod
    def from_seed(
        cls,
        store: MetadataStore,
        seed: bytes | str,
        config: MetadataConfig | None = None,
    ) -> Self:
        """Build a service from a raw or hex master seed.

        Raises:
            MetadataDerivationError: If the seed is malformed.
        """
        master = MasterKey.from_seed_hex(seed) if isinstance(seed, str) else MasterKey.from_seed(seed)
        return cls(store, derive_remote_nodes(master), config)

    @property
    def remote_nodes(self) -> RemoteMetadataNodes:
        return self._nodes

    def state_of(self, entry_type: EntryType) -> SaveState:
        """Last save state reached for ``entry_type`` (``IDLE`` if never saved)."""
        return self._states.get(_coerce_entry_type(entry_type), SaveState.IDLE)

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    async def save(self, entry_type: EntryType, document: str | dict[str, Any]) -> SaveReceipt:
        """Encrypt, sign and store ``document`` as the entry for ``entry_type``.

        Raises:
            MetadataValidationError: Before any network activity.
            MetadataDerivationError: If no node can be derived for the type.
            MetadataNetworkError: If the store fails (including a second 404 on PUT).
            MetadataInconsistentStateError: If the retry again finds no prior entry.
            MetadataError: Any other encryption, chain or signing failure.
        """
        entry_type = _coerce_entry_type(entry_type)
        retries_left = self._config.max_retries
        attempts = 0
        self._set_state(entry_type, SaveState.IDLE)
        try:
            self._set_state(entry_type, SaveState.VALIDATING)
            valid_json = validate_json(document)

            self._set_state(entry_type, SaveState.DERIVING)
            node = derive_metadata_node(self._nodes, entry_type)

            first_prev: bytes | None = None
            while True:
                attempts += 1
                prev = await self._fetch_prior_magic(node)
                if attempts == 1:
                    first_prev = prev
                elif prev is None and first_prev is None:
                    msg = f"store rejected write to {node.address} but still reports no entry"
                    raise MetadataInconsistentStateError(msg)

                try:
                    receipt = await self._write(node, valid_json, prev, attempts)
                except MetadataNetworkError as exc:
                    if not exc.is_404 or retries_left <= 0:
                        raise
                    retries_left -= 1
                    logger.warning(
                        "Metadata write conflict for %s at %s, retrying in %.1fs",
                        entry_type.name,
                        node.address,
                        self._config.retry_delay,
                    )
                    await asyncio.sleep(self._config.retry_delay)
                    continue
                break
        except MetadataError as exc:
            # Only a failed first fetch is transient; every PUT failure is fatal.
            transient = (
                exc.transient
                and attempts == 1
                and self._states[entry_type] is SaveState.FETCHING_PRIOR_STATE
            )
            self._set_state(
                entry_type,
                SaveState.FAILED_TRANSIENT if transient else SaveState.FAILED_FATAL,
            )
            raise

        self._set_state(entry_type, SaveState.SUCCEEDED)
        logger.info(
            "Saved metadata %s to %s (attempts=%d)", entry_type.name, node.address, attempts
        )
        return receipt

    async def _write(
        self,
        node: MetadataNode,
        valid_json: str,
        prev: bytes | None,
        attempts: int,
    ) -> SaveReceipt:
        self._set_state(node.type, SaveState.ENCRYPTING)
        encrypted = encrypt(valid_json, node.encryption_key)
        message = chain_message(encrypted, prev)

        self._set_state(node.type, SaveState.SIGNING)
        signature = sign(message, node)

        body = MetadataBody(
            version=self._config.version,
            payload=base64.b64encode(encrypted).decode("ascii"),
            signature=signature,
            type_id=node.type.type_id,
            prev_magic_hash=prev.hex() if prev else None,
        )

        self._set_state(node.type, SaveState.PUTTING)
        await self._store.put(node.address, body)

        return SaveReceipt(
            address=node.address,
            type=node.type,
            state=SaveState.SUCCEEDED,
            attempts=attempts,
            prev_magic_hash=body.prev_magic_hash,
            magic_hash=magic_hash(encrypted, prev).hex(),
        )

    async def _fetch_prior_magic(self, node: MetadataNode) -> bytes | None:
        """Magic hash of the entry currently at the node's address, or None."""
        self._set_state(node.type, SaveState.FETCHING_PRIOR_STATE)
        try:
            entry = await self._store.fetch(node.address)
        except MetadataNetworkError as exc:
            if exc.is_404:
                return None
            raise
        return magic_hash_of(entry)

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    async def load_raw(self, entry_type: EntryType) -> str | None:
        """Fetch and decrypt the entry for ``entry_type`` as JSON text.

        Returns:
            The decrypted JSON, or None if nothing has been stored yet.

        Raises:
            MetadataChainError: If the signature does not verify for the node.
            MetadataDecryptionError: Wrong key, corruption or tampering.
            MetadataNetworkError: On any store failure other than 404.
        """
        node = derive_metadata_node(self._nodes, entry_type)
        try:
            entry = await self._store.fetch(node.address)
        except MetadataNetworkError as exc:
            if exc.is_404:
                logger.debug("No metadata stored for %s at %s", node.type.name, node.address)
                return None
            raise

        encrypted = entry.payload_bytes()
        if self._config.verify_signatures:
            message = chain_message(encrypted, entry.prev_magic_hash_bytes())
            if not verify(message, entry.signature, node.address):
                msg = f"signature on {node.type.name} entry does not match {node.address}"
                raise MetadataChainError(msg)
        return decrypt(encrypted, node.encryption_key)

    async def load(self, entry_type: EntryType) -> dict[str, Any] | None:
        """Fetch and decrypt the entry for ``entry_type`` as a dict."""
        text = await self.load_raw(entry_type)
        if text is None:
            return None
        return json.loads(text)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _set_state(self, entry_type: EntryType, state: SaveState) -> None:
        self._states[entry_type] = state
        logger.debug("Metadata save %s -> %s", entry_type.name, state)


def _coerce_entry_type(value: EntryType | int) -> EntryType:
    try:
        return EntryType.from_type_id(value)
    except ValueError as exc:
        raise MetadataDerivationError(f"unknown entry type: {value}") from exc
