"""Tests for the entry-type table and derivation purposes."""

from __future__ import annotations

import pytest

from wallet_metadata.metadata.entry_type import (
    METADATA_PURPOSE,
    SHARED_METADATA_PURPOSE,
    EntryType,
    derivation_purpose,
)


def test_metadata_purpose_is_fixed():
    assert METADATA_PURPOSE == 510742


def test_purposes_fit_in_31_bits():
    assert 0 <= SHARED_METADATA_PURPOSE < 2**31
    assert SHARED_METADATA_PURPOSE != METADATA_PURPOSE
    assert derivation_purpose("info.blockchain.mdid") == SHARED_METADATA_PURPOSE


@pytest.mark.parametrize(
    ("entry_type", "type_id"),
    [
        (EntryType.ROOT, -1),
        (EntryType.WHATS_NEW, 2),
        (EntryType.CONTACTS, 4),
        (EntryType.ETHEREUM, 5),
        (EntryType.BITCOIN_CASH, 7),
        (EntryType.BITCOIN, 8),
        (EntryType.WALLET_CREDENTIALS, 9),
        (EntryType.STELLAR, 11),
        (EntryType.ACCOUNT_CREDENTIALS, 13),
    ],
)
def test_type_ids_are_stable(entry_type, type_id):
    assert entry_type.type_id == type_id
    assert EntryType.from_type_id(type_id) is entry_type


def test_unknown_type_id():
    with pytest.raises(ValueError):
        EntryType.from_type_id(1)
