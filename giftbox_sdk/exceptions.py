"""
Exceptions for the GiftBox SDK.
"""
from enum import Enum
from typing import Any, Optional


class ResolutionError(str, Enum):
    """
    Error codes attached to a failed recipient resolution.

    These travel inside ResolutionResult rather than being raised, so a batch
    can keep going when one recipient cannot be resolved.
    """
    INVALID_FORMAT = "INVALID_FORMAT"
    LOOKUP_FAILED = "LOOKUP_FAILED"


class GiftBoxError(Exception):
    """Base exception for all GiftBox SDK errors."""
    pass


class InvalidFormatError(GiftBoxError):
    """Raised when a recipient, amount or date string is malformed."""
    pass


class LookupFailedError(GiftBoxError):
    """Raised when alias resolution is unreachable or returns no address."""
    pass


class PreconditionError(GiftBoxError):
    """Raised when an allowance or approval cannot be read or granted."""

    def __init__(self, message: str, variant: str, cause: Optional[BaseException] = None):
        self.variant = variant
        self.cause = cause
        super().__init__(message)


class BuildError(GiftBoxError):
    """Raised when a gift intent cannot be represented as a contract call."""
    pass


class SubmissionError(GiftBoxError):
    """Raised when a transaction is rejected by the node or reverts on chain."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)


class ConfirmationTimeout(GiftBoxError):
    """Raised when a transaction is not confirmed within the allowed time."""

    def __init__(self, message: str, tx_hash: Optional[str] = None, timeout: Optional[float] = None):
        self.tx_hash = tx_hash
        self.timeout = timeout
        super().__init__(message)


class BatchLimitExceeded(GiftBoxError):
    """Raised when a batch holds more entries than allowed."""

    def __init__(self, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(f"Too many recipients: {count}. Maximum allowed: {limit}")


class InvalidTransitionError(GiftBoxError):
    """Raised when a bulk entry is moved to a state its current state cannot reach."""

    def __init__(self, entry_id: str, current: Any, target: Any):
        self.entry_id = entry_id
        self.current = current
        self.target = target
        super().__init__(f"Entry {entry_id}: illegal transition {current} -> {target}")
