"""
Data models for the GiftBox SDK.
"""
import re
from enum import Enum
from typing import Annotated, Any, ClassVar, Dict, FrozenSet, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .exceptions import InvalidTransitionError, ResolutionError

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
ALIAS_SUFFIX = ".eth"
# Dot-separated labels, each alphanumeric at both ends with inner hyphens allowed
_ALIAS_LABELS = re.compile(
    r"^[a-zA-Z0-9]([a-zA-Z0-9-]*[a-zA-Z0-9])?(\.[a-zA-Z0-9]([a-zA-Z0-9-]*[a-zA-Z0-9])?)*$"
)


def is_valid_address(value: str) -> bool:
    """Check a string against the canonical 20-byte hex address pattern."""
    return isinstance(value, str) and bool(ADDRESS_PATTERN.match(value))


def is_valid_alias(value: str) -> bool:
    """Check a string is a syntactically valid name-service alias."""
    if not isinstance(value, str) or not value.endswith(ALIAS_SUFFIX):
        return False
    label = value[: -len(ALIAS_SUFFIX)]
    return bool(label) and bool(_ALIAS_LABELS.match(label))


class RecipientKind(str, Enum):
    ADDRESS = "address"
    ALIAS = "alias"
    INVALID = "invalid"


class RecipientIdentifier(BaseModel):
    """User-supplied recipient after syntactic classification"""
    kind: RecipientKind
    value: str


def classify_recipient(raw: str) -> RecipientIdentifier:
    """
    Classify raw recipient input as an address, an alias, or invalid.

    Classification is purely syntactic; no lookups happen here.
    """
    value = (raw or "").strip()
    if is_valid_address(value):
        kind = RecipientKind.ADDRESS
    elif is_valid_alias(value):
        kind = RecipientKind.ALIAS
    else:
        kind = RecipientKind.INVALID
    return RecipientIdentifier(kind=kind, value=value)


class ResolutionSource(str, Enum):
    DIRECT = "direct"
    ALIAS = "alias"
    FALLBACK = "fallback"


class ResolutionResult(BaseModel):
    """Outcome of resolving a recipient identifier"""
    address: Optional[str] = None
    source: ResolutionSource
    error: Optional[ResolutionError] = None

    @model_validator(mode="after")
    def _address_xor_error(self) -> "ResolutionResult":
        if (self.address is None) == (self.error is None):
            raise ValueError("ResolutionResult needs exactly one of address or error")
        return self

    @property
    def ok(self) -> bool:
        return self.error is None


class ResolutionCacheEntry(BaseModel):
    """Cached outcome of an alias lookup, successful or not"""
    key: str
    address: Optional[str] = None
    source: ResolutionSource = ResolutionSource.ALIAS
    error: Optional[ResolutionError] = None
    resolved_at: float

    def to_result(self) -> ResolutionResult:
        return ResolutionResult(address=self.address, source=self.source, error=self.error)


# ---------------------------------------------------------------------------
# Asset selection
# ---------------------------------------------------------------------------

class NativeAsset(BaseModel):
    """Native coin, attached to the gift call as value"""
    kind: Literal["native"] = "native"
    amount: str

    DECIMALS: ClassVar[int] = 18
    SYMBOL: ClassVar[str] = "ETH"


class FungibleAsset(BaseModel):
    """ERC-20 style token"""
    kind: Literal["fungible"] = "fungible"
    token_address: str
    decimals: int = 18
    amount: str
    symbol: Optional[str] = None


class NonFungibleSingle(BaseModel):
    """Single-edition NFT (ERC-721 style)"""
    kind: Literal["nft"] = "nft"
    token_address: str
    token_id: str


class NonFungibleMulti(BaseModel):
    """Multi-edition NFT (ERC-1155 style)"""
    kind: Literal["multi_nft"] = "multi_nft"
    token_address: str
    token_id: str
    amount: str


AssetSelection = Annotated[
    Union[NativeAsset, FungibleAsset, NonFungibleSingle, NonFungibleMulti],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Gift intents and bulk entries
# ---------------------------------------------------------------------------

class GiftIntent(BaseModel):
    """A single time-locked transfer that has not been submitted yet"""
    recipient: RecipientIdentifier
    resolved_address: Optional[str] = None
    alias: Optional[str] = None
    asset: AssetSelection
    unlock_timestamp: int
    message: str = ""


class EntryStatus(str, Enum):
    PENDING = "pending"
    VALIDATING = "validating"
    VALID = "valid"
    INVALID = "invalid"
    SENDING = "sending"
    SENT = "sent"
    FAILED = "failed"


ENTRY_TRANSITIONS: Dict[EntryStatus, FrozenSet[EntryStatus]] = {
    EntryStatus.PENDING: frozenset({EntryStatus.VALIDATING}),
    EntryStatus.VALIDATING: frozenset({EntryStatus.VALID, EntryStatus.INVALID}),
    EntryStatus.VALID: frozenset({EntryStatus.SENDING}),
    EntryStatus.INVALID: frozenset(),
    EntryStatus.SENDING: frozenset({EntryStatus.SENT, EntryStatus.FAILED}),
    EntryStatus.SENT: frozenset(),
    EntryStatus.FAILED: frozenset(),
}


class BulkEntry(GiftIntent):
    """A gift intent plus the bookkeeping a batch needs"""
    id: str
    row: int
    status: EntryStatus = EntryStatus.PENDING
    error: Optional[str] = None
    tx_ref: Optional[str] = None

    def transition(self, target: EntryStatus, error: Optional[str] = None) -> None:
        """
        Move the entry to a new state.

        Args:
            target: State to move to
            error: Reason recorded with INVALID or FAILED

        Raises:
            InvalidTransitionError: If the current state cannot reach target
        """
        if target not in ENTRY_TRANSITIONS[self.status]:
            raise InvalidTransitionError(self.id, self.status.value, target.value)
        self.status = target
        if error is not None:
            self.error = error


class BatchSummary(BaseModel):
    """Aggregate view of a batch, always derived from its entries"""
    total_recipients: int = 0
    valid_entries: int = 0
    invalid_entries: int = 0
    sent_entries: int = 0
    failed_entries: int = 0
    total_amount: str = "0"
    estimated_fee: str = "0"


# ---------------------------------------------------------------------------
# Chain-facing models
# ---------------------------------------------------------------------------

class CallPlan(BaseModel):
    """A contract call ready to be encoded and submitted"""
    function_name: str
    args: List[Any]
    attached_value: int = 0


class GiftRecord(BaseModel):
    """
    A gift as read back from the contract.

    Every field is read-only except ``claimed``, which may only go from
    False to True.
    """
    id: int
    sender: str
    recipient: str
    alias: str = ""
    asset: AssetSelection
    unlock_timestamp: int
    claimed: bool = False
    message: str = ""

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "claimed":
            if self.claimed and not value:
                raise ValueError(f"Gift {self.id} is already claimed")
        elif name in type(self).model_fields:
            raise AttributeError(f"GiftRecord.{name} is read-only")
        super().__setattr__(name, value)

    def mark_claimed(self) -> None:
        self.claimed = True

    def status(self, now: Optional[int] = None):
        from .status import derive_status
        return derive_status(self.unlock_timestamp, self.claimed, now)


class TxReceipt(BaseModel):
    """Transaction receipt from the blockchain"""
    tx_hash: str = Field(..., alias="transactionHash")
    block_number: int = Field(..., alias="blockNumber")
    block_hash: str = Field(..., alias="blockHash")
    status: int
    gas_used: int = Field(..., alias="gasUsed")
    from_address: Optional[str] = Field(None, alias="from")
    to_address: Optional[str] = Field(None, alias="to")
    logs: List[Dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @property
    def succeeded(self) -> bool:
        return self.status == 1
