"""
Transfer preconditions: make sure the gift contract may move the asset.
"""
import logging
from typing import Any, Dict, Optional, Sequence

from web3 import Web3

from . import assets
from .abi import APPROVAL_FOR_ALL_ABI, ERC20_ABI
from .exceptions import PreconditionError
from .models import (
    AssetSelection,
    CallPlan,
    FungibleAsset,
    NativeAsset,
    NonFungibleMulti,
    NonFungibleSingle,
)
from .session import Session, confirm

logger = logging.getLogger(__name__)


class PreconditionChecker:
    """
    Grants the allowance or operator approval a gift needs, if missing.

    Fungible tokens get an approval for exactly the gift amount. NFT
    collections get a collection-wide operator approval. Native coin needs
    nothing. A second call with the grant already in place sends nothing.
    """

    def __init__(
        self,
        session: Session,
        confirmation_timeout: float = 120.0,
        logger: Optional[logging.Logger] = None
    ):
        self.session = session
        self.confirmation_timeout = confirmation_timeout
        self.logger = logger or logging.getLogger(__name__)

    async def ensure_transferable(self, selection: AssetSelection, owner: str, spender: str) -> None:
        """
        Establish that ``spender`` may move ``selection`` out of ``owner``.

        Raises:
            PreconditionError: If a read or write fails; carries the asset
                variant and the underlying cause
        """
        if isinstance(selection, NativeAsset):
            return
        if isinstance(selection, FungibleAsset):
            await self._ensure_allowance(selection, owner, spender)
        elif isinstance(selection, (NonFungibleSingle, NonFungibleMulti)):
            await self._ensure_operator_approval(selection, owner, spender)
        else:
            raise TypeError(f"Unknown asset selection: {type(selection).__name__}")

    async def _ensure_allowance(self, selection: FungibleAsset, owner: str, spender: str) -> None:
        variant = selection.kind
        try:
            token = Web3.to_checksum_address(selection.token_address)
            owner = Web3.to_checksum_address(owner)
            spender = Web3.to_checksum_address(spender)
            required = assets.to_base_units(selection.amount, selection.decimals)
            current = int(await self.session.call(token, ERC20_ABI, "allowance", [owner, spender]))
        except Exception as e:
            raise PreconditionError(f"Could not read allowance for {selection.token_address}: {e}", variant, e) from e

        if current >= required:
            self.logger.debug(f"Allowance {current} covers {required} on {token}")
            return

        self.logger.info(f"Approving {required} units of {token} for {spender}")
        plan = CallPlan(function_name="approve", args=[spender, required], attached_value=0)
        await self._submit(token, ERC20_ABI, plan, variant)

    async def _ensure_operator_approval(self, selection: AssetSelection, owner: str, spender: str) -> None:
        variant = selection.kind
        try:
            token = Web3.to_checksum_address(selection.token_address)
            owner = Web3.to_checksum_address(owner)
            spender = Web3.to_checksum_address(spender)
            approved = bool(await self.session.call(token, APPROVAL_FOR_ALL_ABI, "isApprovedForAll", [owner, spender]))
        except Exception as e:
            raise PreconditionError(f"Could not read approval for {selection.token_address}: {e}", variant, e) from e

        if approved:
            self.logger.debug(f"Operator {spender} already approved on {token}")
            return

        self.logger.info(f"Setting approval for all on {token} to {spender}")
        plan = CallPlan(function_name="setApprovalForAll", args=[spender, True], attached_value=0)
        await self._submit(token, APPROVAL_FOR_ALL_ABI, plan, variant)

    async def _submit(self, token: str, abi: Sequence[Dict[str, Any]], plan: CallPlan, variant: str) -> None:
        try:
            tx_hash = await self.session.submit_transaction(token, abi, plan)
            await confirm(self.session, tx_hash, self.confirmation_timeout)
        except Exception as e:
            self.logger.error(f"{plan.function_name} on {token} failed: {e}")
            raise PreconditionError(f"{plan.function_name} on {token} failed: {e}", variant, e) from e
        self.logger.info(f"{plan.function_name} on {token} confirmed ({tx_hash})")
