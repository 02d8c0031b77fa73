"""
Pytest fixtures for the GiftBox SDK tests.
"""
import asyncio
from typing import Any, Dict, List, Optional

import pytest

from giftbox_sdk.config import NetworkConfig
from giftbox_sdk.models import CallPlan, TxReceipt
from giftbox_sdk.resolver import RecipientResolver, ResolutionCache
from giftbox_sdk.resolver._rate_limited_log import reset_rate_limits

# Test constants used throughout tests
TEST_RPC_URL = "https://rpc.example.com"
TEST_PRIV_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
TEST_SENDER = "0x1234567890123456789012345678901234567890"
TEST_CONTRACT = "0x6802ec0997148cd10257c449702E900405c64cbC"
TEST_RECIPIENT = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
TEST_TOKEN = "0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238"
TEST_NFT = "0x2345678901234567890123456789012345678901"
TEST_NOW = 1_700_000_000


class FakeClock:
    """Manually advanced clock, usable wherever a ``timer`` is accepted"""

    def __init__(self, start: float = TEST_NOW):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeLookup:
    """Alias lookup backed by a dict, recording every query"""

    def __init__(self, names: Optional[Dict[str, str]] = None, error: Optional[Exception] = None):
        self.names = dict(names or {})
        self.error = error
        self.lookups: List[str] = []
        self.reverse_lookups: List[str] = []

    async def lookup(self, name: str) -> Optional[str]:
        self.lookups.append(name)
        if self.error is not None:
            raise self.error
        return self.names.get(name)

    async def reverse(self, address: str) -> Optional[str]:
        self.reverse_lookups.append(address)
        if self.error is not None:
            raise self.error
        for name, value in self.names.items():
            if value.lower() == address.lower():
                return name
        return None


class FakeSession:
    """
    In-memory session.

    ``reads`` maps a function name to a return value, an exception to raise,
    or a callable ``(to, args) -> value``.
    """

    def __init__(self, address: str = TEST_SENDER):
        self.address = address
        self.reads: Dict[str, Any] = {}
        self.calls: List[tuple] = []
        self.submitted: List[tuple] = []
        self.submit_error: Optional[Exception] = None
        self.receipt_status = 1
        self.confirm_delay = 0.0
        self._nonce = 0

    async def call(self, to, abi, function_name, args):
        self.calls.append((to, function_name, list(args)))
        value = self.reads.get(function_name)
        if isinstance(value, Exception):
            raise value
        if callable(value):
            return value(to, list(args))
        return value

    async def submit_transaction(self, to: str, abi, plan: CallPlan) -> str:
        if self.submit_error is not None:
            raise self.submit_error
        self._nonce += 1
        self.submitted.append((to, plan))
        return "0x" + f"{self._nonce:064x}"

    async def wait_for_confirmation(self, tx_hash: str, timeout: Optional[float] = None) -> TxReceipt:
        if self.confirm_delay:
            await asyncio.sleep(self.confirm_delay)
        return TxReceipt(
            transactionHash=tx_hash,
            blockNumber=1,
            blockHash="0x" + "00" * 32,
            status=self.receipt_status,
            gasUsed=21000,
        )


@pytest.fixture(autouse=True)
def _reset_shared_state():
    """Module-level caches must not leak between tests."""
    reset_rate_limits()
    NetworkConfig._networks_cache = None
    yield
    reset_rate_limits()
    NetworkConfig._networks_cache = None


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def lookup():
    return FakeLookup({"alice.eth": TEST_RECIPIENT})


@pytest.fixture
def cache(clock):
    return ResolutionCache(timer=clock)


@pytest.fixture
def resolver(lookup, cache):
    return RecipientResolver(lookup=lookup, cache=cache, fallback={})


@pytest.fixture
def session():
    return FakeSession()
