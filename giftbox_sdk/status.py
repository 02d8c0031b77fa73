"""
Gift lifecycle status.

``derive_status`` is the only place status is computed; the helpers below
all go through it.
"""
import time
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .models import GiftRecord


class GiftStatus(str, Enum):
    PENDING = "pending"
    CLAIMABLE = "claimable"
    CLAIMED = "claimed"


STATUS_TEXT = {
    GiftStatus.PENDING: "Pending",
    GiftStatus.CLAIMABLE: "Ready to Claim",
    GiftStatus.CLAIMED: "Claimed",
}


def derive_status(unlock_timestamp: int, claimed: bool, now: Optional[int] = None) -> GiftStatus:
    """
    Derive a gift's status from its unlock time and claimed flag.

    Claimed wins over the timestamp check.

    Args:
        unlock_timestamp: Unix seconds after which the gift can be claimed
        claimed: Whether the gift has been claimed on chain
        now: Current Unix seconds (defaults to the wall clock)
    """
    if claimed:
        return GiftStatus.CLAIMED
    if now is None:
        now = int(time.time())
    if now >= unlock_timestamp:
        return GiftStatus.CLAIMABLE
    return GiftStatus.PENDING


def time_until_unlock(unlock_timestamp: int, now: Optional[int] = None) -> Optional[str]:
    """Compact countdown like ``2d 3h``; None once unlocked."""
    if now is None:
        now = int(time.time())
    remaining = unlock_timestamp - now
    if remaining <= 0:
        return None
    days, rest = divmod(remaining, 86400)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60
    if days > 0:
        return f"{days}d {hours}h"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def sort_by_priority(gifts: Iterable[GiftRecord], now: Optional[int] = None) -> List[GiftRecord]:
    """Claimable gifts first, then soonest unlock."""
    if now is None:
        now = int(time.time())

    def key(gift: GiftRecord):
        claimable = derive_status(gift.unlock_timestamp, gift.claimed, now) == GiftStatus.CLAIMABLE
        return (0 if claimable else 1, gift.unlock_timestamp)

    return sorted(gifts, key=key)


def filter_by_status(gifts: Iterable[GiftRecord], status: GiftStatus, now: Optional[int] = None) -> List[GiftRecord]:
    if now is None:
        now = int(time.time())
    return [g for g in gifts if derive_status(g.unlock_timestamp, g.claimed, now) == status]


def gift_statistics(gifts: Iterable[GiftRecord], now: Optional[int] = None) -> Dict[str, int]:
    if now is None:
        now = int(time.time())
    counts = {"total": 0, GiftStatus.PENDING.value: 0, GiftStatus.CLAIMABLE.value: 0, GiftStatus.CLAIMED.value: 0}
    for gift in gifts:
        counts["total"] += 1
        counts[derive_status(gift.unlock_timestamp, gift.claimed, now).value] += 1
    return counts
