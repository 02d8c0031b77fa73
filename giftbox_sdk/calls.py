"""
Maps gift intents onto GiftBox contract calls.
"""
from decimal import Decimal
from typing import Dict, Optional

from web3 import Web3

from . import assets
from .exceptions import BuildError, InvalidFormatError
from .models import (
    AssetSelection,
    CallPlan,
    FungibleAsset,
    GiftIntent,
    NativeAsset,
    NonFungibleMulti,
    NonFungibleSingle,
    RecipientKind,
    is_valid_address,
)

CREATE_NATIVE_GIFT = "createGiftETH"
CREATE_FUNGIBLE_GIFT = "createGiftERC20"
CREATE_NFT_GIFT = "createGiftERC721"
CREATE_MULTI_NFT_GIFT = "createGiftERC1155"
CLAIM_GIFT = "claimGift"

# Gas limits per asset kind, used for fee estimates only
GAS_LIMITS: Dict[str, int] = {
    "native": 150_000,
    "fungible": 200_000,
    "nft": 250_000,
    "multi_nft": 250_000,
}
DEFAULT_GAS_PRICE_WEI = 20_000_000_000  # 20 gwei


def build(intent: GiftIntent, max_fraction_digits: Optional[int] = None) -> CallPlan:
    """
    Build the contract call that creates a gift.

    Args:
        intent: The gift to create; its recipient must already be resolved
        max_fraction_digits: Precision guard for decimal amounts, see
            ``assets.to_base_units``

    Returns:
        CallPlan with the function name, ordered arguments and attached value

    Raises:
        BuildError: If the intent is not representable as a contract call
    """
    if not intent.resolved_address:
        raise BuildError(f"Recipient {intent.recipient.value!r} has not been resolved")
    if not is_valid_address(intent.resolved_address):
        raise BuildError(f"Resolved address {intent.resolved_address!r} is malformed")

    problems = assets.validate(intent.asset)
    if problems:
        raise BuildError("; ".join(problems))

    recipient = Web3.to_checksum_address(intent.resolved_address)
    unlock = int(intent.unlock_timestamp)
    alias = intent.alias or ""
    if intent.recipient.kind == RecipientKind.ADDRESS:
        alias = ""
    message = intent.message or ""
    asset = intent.asset

    try:
        if isinstance(asset, NativeAsset):
            value = assets.to_base_units(asset.amount, NativeAsset.DECIMALS, max_fraction_digits)
            return CallPlan(
                function_name=CREATE_NATIVE_GIFT,
                args=[recipient, unlock, alias, message],
                attached_value=value,
            )
        if isinstance(asset, FungibleAsset):
            amount = assets.to_base_units(asset.amount, asset.decimals, max_fraction_digits)
            return CallPlan(
                function_name=CREATE_FUNGIBLE_GIFT,
                args=[recipient, unlock, Web3.to_checksum_address(asset.token_address), amount, alias, message],
                attached_value=0,
            )
        if isinstance(asset, NonFungibleSingle):
            return CallPlan(
                function_name=CREATE_NFT_GIFT,
                args=[recipient, unlock, Web3.to_checksum_address(asset.token_address), int(asset.token_id), alias, message],
                attached_value=0,
            )
        if isinstance(asset, NonFungibleMulti):
            return CallPlan(
                function_name=CREATE_MULTI_NFT_GIFT,
                args=[
                    recipient,
                    unlock,
                    Web3.to_checksum_address(asset.token_address),
                    int(asset.token_id),
                    int(asset.amount),
                    alias,
                    message,
                ],
                attached_value=0,
            )
    except InvalidFormatError as e:
        raise BuildError(str(e)) from e

    raise BuildError(f"Unsupported asset selection: {type(asset).__name__}")


def build_claim(gift_id: int) -> CallPlan:
    if int(gift_id) < 0:
        raise BuildError(f"Invalid gift id: {gift_id}")
    return CallPlan(function_name=CLAIM_GIFT, args=[int(gift_id)], attached_value=0)


def estimate_fee(selection: AssetSelection, gas_price_wei: int = DEFAULT_GAS_PRICE_WEI) -> Decimal:
    """
    Rough network fee for creating one gift, in native coin units.

    Approval transactions are not included.
    """
    gas_limit = GAS_LIMITS.get(selection.kind, GAS_LIMITS["native"])
    return Decimal(gas_limit * gas_price_wei).scaleb(-NativeAsset.DECIMALS)
