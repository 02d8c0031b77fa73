"""
Tests for gift status derivation and the helpers built on it.
"""
import pytest
from hypothesis import given, settings, strategies as st

from giftbox_sdk.models import GiftRecord, NativeAsset
from giftbox_sdk.status import (
    GiftStatus,
    derive_status,
    filter_by_status,
    gift_statistics,
    sort_by_priority,
    time_until_unlock,
)

from conftest import TEST_NOW, TEST_RECIPIENT, TEST_SENDER

timestamps = st.integers(min_value=0, max_value=2 ** 40)


@settings(max_examples=200)
@given(unlock=timestamps, now=timestamps)
def test_claimed_always_wins(unlock, now):
    assert derive_status(unlock, True, now) == GiftStatus.CLAIMED


@settings(max_examples=200)
@given(unlock=timestamps, now=timestamps)
def test_unclaimed_is_pending_or_claimable(unlock, now):
    status = derive_status(unlock, False, now)
    if now < unlock:
        assert status == GiftStatus.PENDING
    else:
        assert status == GiftStatus.CLAIMABLE


def test_unlock_boundary():
    assert derive_status(100, False, 99) == GiftStatus.PENDING
    assert derive_status(100, False, 100) == GiftStatus.CLAIMABLE


def make_gift(gift_id, unlock, claimed=False):
    return GiftRecord(
        id=gift_id,
        sender=TEST_SENDER,
        recipient=TEST_RECIPIENT,
        asset=NativeAsset(amount="0.1"),
        unlock_timestamp=unlock,
        claimed=claimed,
    )


class TestGiftRecord:

    def test_status_goes_through_derive_status(self):
        gift = make_gift(1, TEST_NOW + 10)
        assert gift.status(TEST_NOW) == GiftStatus.PENDING
        assert gift.status(TEST_NOW + 10) == GiftStatus.CLAIMABLE
        gift.mark_claimed()
        assert gift.status(TEST_NOW) == GiftStatus.CLAIMED

    def test_claimed_cannot_be_undone(self):
        gift = make_gift(1, TEST_NOW, claimed=True)
        with pytest.raises(ValueError):
            gift.claimed = False

    def test_other_fields_are_read_only(self):
        gift = make_gift(1, TEST_NOW)
        with pytest.raises(AttributeError):
            gift.unlock_timestamp = 0
        with pytest.raises(AttributeError):
            gift.recipient = TEST_SENDER


class TestHelpers:

    def test_time_until_unlock(self):
        assert time_until_unlock(TEST_NOW + 2 * 86400 + 3 * 3600, TEST_NOW) == "2d 3h"
        assert time_until_unlock(TEST_NOW + 3600 + 120, TEST_NOW) == "1h 2m"
        assert time_until_unlock(TEST_NOW + 300, TEST_NOW) == "5m"
        assert time_until_unlock(TEST_NOW, TEST_NOW) is None

    def test_sort_by_priority(self):
        gifts = [
            make_gift(1, TEST_NOW + 500),
            make_gift(2, TEST_NOW - 10),
            make_gift(3, TEST_NOW + 100),
            make_gift(4, TEST_NOW - 50, claimed=True),
        ]
        ordered = [g.id for g in sort_by_priority(gifts, TEST_NOW)]
        assert ordered[0] == 2
        assert ordered.index(3) < ordered.index(1)

    def test_filter_and_statistics(self):
        gifts = [
            make_gift(1, TEST_NOW + 500),
            make_gift(2, TEST_NOW - 10),
            make_gift(3, TEST_NOW - 10, claimed=True),
        ]
        assert [g.id for g in filter_by_status(gifts, GiftStatus.CLAIMABLE, TEST_NOW)] == [2]
        assert gift_statistics(gifts, TEST_NOW) == {"total": 3, "pending": 1, "claimable": 1, "claimed": 1}
