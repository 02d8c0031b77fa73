"""
GiftBox SDK - time-locked gifts and bulk distribution on the GiftBox contract.
"""
from .batch import BatchOrchestrator, BatchReport, CancellationToken, ParseResult, entries_to_table, parse
from .client import GiftBoxClient
from .config import BulkConfig, NetworkConfig
from .exceptions import (
    BatchLimitExceeded,
    BuildError,
    ConfirmationTimeout,
    GiftBoxError,
    InvalidFormatError,
    InvalidTransitionError,
    LookupFailedError,
    PreconditionError,
    ResolutionError,
    SubmissionError,
)
from .models import (
    AssetSelection,
    BatchSummary,
    BulkEntry,
    CallPlan,
    EntryStatus,
    FungibleAsset,
    GiftIntent,
    GiftRecord,
    NativeAsset,
    NonFungibleMulti,
    NonFungibleSingle,
    RecipientIdentifier,
    RecipientKind,
    ResolutionResult,
    ResolutionSource,
    TxReceipt,
    classify_recipient,
)
from .preconditions import PreconditionChecker
from .resolver import RecipientResolver, ResolutionCache, Web3AliasLookup
from .session import Session, Web3Session
from .status import GiftStatus, derive_status
from .version import __version__

__all__ = [
    "AssetSelection",
    "BatchLimitExceeded",
    "BatchOrchestrator",
    "BatchReport",
    "BatchSummary",
    "BuildError",
    "BulkConfig",
    "BulkEntry",
    "CallPlan",
    "CancellationToken",
    "ConfirmationTimeout",
    "EntryStatus",
    "FungibleAsset",
    "GiftBoxClient",
    "GiftBoxError",
    "GiftIntent",
    "GiftRecord",
    "GiftStatus",
    "InvalidFormatError",
    "InvalidTransitionError",
    "LookupFailedError",
    "NativeAsset",
    "NetworkConfig",
    "NonFungibleMulti",
    "NonFungibleSingle",
    "ParseResult",
    "PreconditionChecker",
    "PreconditionError",
    "RecipientIdentifier",
    "RecipientKind",
    "RecipientResolver",
    "ResolutionCache",
    "ResolutionError",
    "ResolutionResult",
    "ResolutionSource",
    "Session",
    "SubmissionError",
    "TxReceipt",
    "Web3AliasLookup",
    "Web3Session",
    "classify_recipient",
    "derive_status",
    "entries_to_table",
    "parse",
    "__version__",
]
