"""
Validation and unit conversion for asset selections.

Nothing in here touches the chain: whether the owner actually holds or has
approved the asset is the precondition checker's job.
"""
import re
from decimal import Decimal
from typing import List, Optional

from .exceptions import InvalidFormatError
from .models import (
    AssetSelection,
    FungibleAsset,
    NativeAsset,
    NonFungibleMulti,
    NonFungibleSingle,
    is_valid_address,
)

_DECIMAL = re.compile(r"^(?P<whole>\d*)(?:\.(?P<frac>\d*))?$")
_UINT = re.compile(r"^\d+$")
UINT256_MAX = 2 ** 256 - 1


def _split_decimal(amount: str):
    if not isinstance(amount, str):
        raise InvalidFormatError(f"Amount must be a string, got {type(amount).__name__}")
    match = _DECIMAL.match(amount.strip())
    if not match:
        raise InvalidFormatError(f"Invalid amount: {amount!r}")
    whole, frac = match.group("whole"), match.group("frac") or ""
    if not whole and not frac:
        raise InvalidFormatError(f"Invalid amount: {amount!r}")
    return whole or "0", frac


def parse_decimal(amount: str) -> Decimal:
    """
    Parse a plain non-negative decimal string.

    Exponents, signs and thousands separators are rejected.

    Raises:
        InvalidFormatError: If the string is not a plain decimal
    """
    whole, frac = _split_decimal(amount)
    return Decimal(f"{whole}.{frac or '0'}")


def is_positive_decimal(amount: str) -> bool:
    try:
        return parse_decimal(amount) > 0
    except InvalidFormatError:
        return False


def to_base_units(amount: str, decimals: int, max_fraction_digits: Optional[int] = None) -> int:
    """
    Convert a decimal amount into integer base units.

    Args:
        amount: Decimal string such as "1.5"
        decimals: Number of decimals the asset uses
        max_fraction_digits: Most fractional digits accepted. Defaults to
            ``decimals``; a larger guard lets extra digits through and they
            are rounded toward zero.

    Returns:
        The amount scaled by 10**decimals

    Raises:
        InvalidFormatError: If the amount is malformed or too precise
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")
    whole, frac = _split_decimal(amount)
    significant = frac.rstrip("0")
    guard = decimals if max_fraction_digits is None else max_fraction_digits
    if len(significant) > guard:
        raise InvalidFormatError(
            f"Amount {amount!r} has {len(significant)} fractional digits, "
            f"at most {guard} allowed"
        )
    scaled = significant[:decimals].ljust(decimals, "0")
    return int(whole) * 10 ** decimals + int(scaled or "0")


def from_base_units(value: int, decimals: int) -> str:
    """Render integer base units as a normalized decimal string."""
    quantity = Decimal(value).scaleb(-decimals)
    text = format(quantity, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def _check_token(selection, errors: List[str]) -> None:
    if not is_valid_address(selection.token_address):
        errors.append(f"Invalid token address: {selection.token_address!r}")


def _check_token_id(token_id: str, errors: List[str]) -> None:
    if not isinstance(token_id, str) or not _UINT.match(token_id) or int(token_id) > UINT256_MAX:
        errors.append(f"Invalid token ID: {token_id!r}")


def validate(selection: AssetSelection) -> List[str]:
    """
    Validate an asset selection.

    Returns:
        A list of error messages; empty when the selection is valid
    """
    errors: List[str] = []
    if isinstance(selection, NativeAsset):
        if not is_positive_decimal(selection.amount):
            errors.append(f"Amount must be a number greater than 0, got {selection.amount!r}")
    elif isinstance(selection, FungibleAsset):
        _check_token(selection, errors)
        if not 0 <= selection.decimals <= 255:
            errors.append(f"Token decimals must be between 0 and 255, got {selection.decimals}")
        if not is_positive_decimal(selection.amount):
            errors.append(f"Amount must be a number greater than 0, got {selection.amount!r}")
    elif isinstance(selection, NonFungibleSingle):
        _check_token(selection, errors)
        _check_token_id(selection.token_id, errors)
    elif isinstance(selection, NonFungibleMulti):
        _check_token(selection, errors)
        _check_token_id(selection.token_id, errors)
        if not _UINT.match(selection.amount or "") or int(selection.amount) < 1:
            errors.append(f"Quantity must be a whole number of at least 1, got {selection.amount!r}")
    else:
        raise TypeError(f"Unknown asset selection: {type(selection).__name__}")
    return errors


def asset_units(selection: AssetSelection) -> int:
    """The integer quantity the gift contract will move for this selection."""
    if isinstance(selection, NativeAsset):
        return to_base_units(selection.amount, NativeAsset.DECIMALS)
    if isinstance(selection, FungibleAsset):
        return to_base_units(selection.amount, selection.decimals)
    if isinstance(selection, NonFungibleSingle):
        return 1
    if isinstance(selection, NonFungibleMulti):
        return int(selection.amount)
    raise TypeError(f"Unknown asset selection: {type(selection).__name__}")


def display_amount(selection: AssetSelection) -> Decimal:
    """Human-scale quantity, used for batch totals."""
    if isinstance(selection, (NativeAsset, FungibleAsset)):
        return parse_decimal(selection.amount)
    if isinstance(selection, NonFungibleSingle):
        return Decimal(1)
    if isinstance(selection, NonFungibleMulti):
        return Decimal(int(selection.amount))
    raise TypeError(f"Unknown asset selection: {type(selection).__name__}")


def describe(selection: AssetSelection) -> str:
    """Short human-readable description, e.g. ``0.01 ETH`` or ``NFT #7``."""
    if isinstance(selection, NativeAsset):
        return f"{selection.amount} {NativeAsset.SYMBOL}"
    if isinstance(selection, FungibleAsset):
        return f"{selection.amount} {selection.symbol or 'Tokens'}"
    if isinstance(selection, NonFungibleSingle):
        return f"NFT #{selection.token_id}"
    if isinstance(selection, NonFungibleMulti):
        return f"{selection.amount}x Token #{selection.token_id}"
    raise TypeError(f"Unknown asset selection: {type(selection).__name__}")
