"""
Tests for the data models.
"""
import pytest
from pydantic import TypeAdapter, ValidationError

from giftbox_sdk.exceptions import BatchLimitExceeded, InvalidTransitionError, ResolutionError
from giftbox_sdk.models import (
    ENTRY_TRANSITIONS,
    AssetSelection,
    BulkEntry,
    EntryStatus,
    FungibleAsset,
    NativeAsset,
    NonFungibleMulti,
    RecipientKind,
    ResolutionResult,
    ResolutionSource,
    TxReceipt,
    classify_recipient,
)

from conftest import TEST_NOW, TEST_RECIPIENT, TEST_TOKEN


def make_entry(status=EntryStatus.PENDING):
    entry = BulkEntry(
        id="entry-1",
        row=2,
        recipient=classify_recipient(TEST_RECIPIENT),
        asset=NativeAsset(amount="0.01"),
        unlock_timestamp=TEST_NOW,
    )
    entry.status = status
    return entry


class TestClassification:

    @pytest.mark.parametrize("raw,kind", [
        (TEST_RECIPIENT, RecipientKind.ADDRESS),
        (TEST_RECIPIENT.lower(), RecipientKind.ADDRESS),
        ("alice.eth", RecipientKind.ALIAS),
        ("sub.alice.eth", RecipientKind.ALIAS),
        ("my-name.eth", RecipientKind.ALIAS),
        (" alice.eth ", RecipientKind.ALIAS),
        (".eth", RecipientKind.INVALID),
        ("alice.com", RecipientKind.INVALID),
        ("ali ce.eth", RecipientKind.INVALID),
        ("0x12345", RecipientKind.INVALID),
        ("", RecipientKind.INVALID),
    ])
    def test_classify(self, raw, kind):
        assert classify_recipient(raw).kind == kind

    def test_classify_trims(self):
        assert classify_recipient("  alice.eth ").value == "alice.eth"


class TestResolutionResult:

    def test_address_xor_error(self):
        with pytest.raises(ValidationError):
            ResolutionResult(source=ResolutionSource.ALIAS)
        with pytest.raises(ValidationError):
            ResolutionResult(
                address=TEST_RECIPIENT,
                source=ResolutionSource.ALIAS,
                error=ResolutionError.LOOKUP_FAILED,
            )

    def test_ok(self):
        assert ResolutionResult(address=TEST_RECIPIENT, source=ResolutionSource.DIRECT).ok
        assert not ResolutionResult(source=ResolutionSource.ALIAS, error=ResolutionError.LOOKUP_FAILED).ok


class TestAssetSelection:

    def test_discriminated_union(self):
        adapter = TypeAdapter(AssetSelection)
        assert isinstance(adapter.validate_python({"kind": "native", "amount": "1"}), NativeAsset)
        fungible = adapter.validate_python({"kind": "fungible", "token_address": TEST_TOKEN, "amount": "1"})
        assert isinstance(fungible, FungibleAsset)
        assert fungible.decimals == 18
        multi = adapter.validate_python(
            {"kind": "multi_nft", "token_address": TEST_TOKEN, "token_id": "1", "amount": "2"}
        )
        assert isinstance(multi, NonFungibleMulti)

    def test_unknown_kind(self):
        with pytest.raises(ValidationError):
            TypeAdapter(AssetSelection).validate_python({"kind": "bond", "amount": "1"})


class TestEntryTransitions:

    @pytest.mark.parametrize("path", [
        [EntryStatus.VALIDATING, EntryStatus.VALID, EntryStatus.SENDING, EntryStatus.SENT],
        [EntryStatus.VALIDATING, EntryStatus.VALID, EntryStatus.SENDING, EntryStatus.FAILED],
        [EntryStatus.VALIDATING, EntryStatus.INVALID],
    ])
    def test_legal_paths(self, path):
        entry = make_entry()
        for target in path:
            entry.transition(target)
        assert entry.status == path[-1]

    @pytest.mark.parametrize("start,target", [
        (EntryStatus.PENDING, EntryStatus.SENDING),
        (EntryStatus.INVALID, EntryStatus.SENDING),
        (EntryStatus.INVALID, EntryStatus.VALID),
        (EntryStatus.VALID, EntryStatus.SENT),
        (EntryStatus.SENT, EntryStatus.SENDING),
        (EntryStatus.FAILED, EntryStatus.SENDING),
    ])
    def test_illegal_transitions(self, start, target):
        entry = make_entry(start)
        with pytest.raises(InvalidTransitionError):
            entry.transition(target)
        assert entry.status == start

    def test_terminal_states(self):
        for status in (EntryStatus.INVALID, EntryStatus.SENT, EntryStatus.FAILED):
            assert ENTRY_TRANSITIONS[status] == frozenset()

    def test_error_recorded(self):
        entry = make_entry(EntryStatus.VALIDATING)
        entry.transition(EntryStatus.INVALID, "bad recipient")
        assert entry.error == "bad recipient"


def test_tx_receipt_aliases():
    receipt = TxReceipt.model_validate({
        "transactionHash": "0xabc",
        "blockNumber": 7,
        "blockHash": "0xdef",
        "status": 1,
        "gasUsed": 21000,
        "from": TEST_RECIPIENT,
    })
    assert receipt.tx_hash == "0xabc"
    assert receipt.from_address == TEST_RECIPIENT
    assert receipt.logs == []
    assert receipt.succeeded


def test_batch_limit_message():
    err = BatchLimitExceeded(150, 100)
    assert str(err) == "Too many recipients: 150. Maximum allowed: 100"
    assert err.count == 150
