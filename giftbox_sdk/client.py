"""
GiftBoxClient - read access to the GiftBox contract and gift claiming.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from web3 import Web3

from . import assets, calls
from .abi import (
    ASSET_TYPE_FUNGIBLE,
    ASSET_TYPE_MULTI_NFT,
    ASSET_TYPE_NATIVE,
    ASSET_TYPE_NFT,
    ERC20_ABI,
    GIFTBOX_ABI,
)
from .config import DEFAULT_NETWORK, NetworkConfig
from .exceptions import GiftBoxError
from .models import (
    AssetSelection,
    FungibleAsset,
    GiftRecord,
    NativeAsset,
    NonFungibleMulti,
    NonFungibleSingle,
    TxReceipt,
)
from .resolver import normalize_alias
from .session import Session, check_rpc_url, confirm


def decode_gift(gift_id: int, raw: Sequence[Any], decimals: int = 18) -> GiftRecord:
    """
    Turn a ``getGiftDetails`` tuple into a GiftRecord.

    Args:
        gift_id: Contract id of the gift
        raw: (sender, recipient, unlockTimestamp, claimed, assetType, token,
            tokenId, amount, recipientENS, message)
        decimals: Decimals of the token, only used for fungible gifts

    Raises:
        GiftBoxError: If the asset type code is unknown
    """
    sender, recipient, unlock_timestamp, claimed, asset_type, token, token_id, amount, alias, message = raw

    asset: AssetSelection
    if asset_type == ASSET_TYPE_NATIVE:
        asset = NativeAsset(amount=assets.from_base_units(amount, NativeAsset.DECIMALS))
    elif asset_type == ASSET_TYPE_FUNGIBLE:
        asset = FungibleAsset(
            token_address=token,
            decimals=decimals,
            amount=assets.from_base_units(amount, decimals),
        )
    elif asset_type == ASSET_TYPE_NFT:
        asset = NonFungibleSingle(token_address=token, token_id=str(token_id))
    elif asset_type == ASSET_TYPE_MULTI_NFT:
        asset = NonFungibleMulti(token_address=token, token_id=str(token_id), amount=str(amount))
    else:
        raise GiftBoxError(f"Gift {gift_id} has unknown asset type {asset_type}")

    return GiftRecord(
        id=gift_id,
        sender=sender,
        recipient=recipient,
        alias=alias or "",
        asset=asset,
        unlock_timestamp=int(unlock_timestamp),
        claimed=bool(claimed),
        message=message or "",
    )


class GiftBoxClient:
    """
    Client for reading gifts from the GiftBox contract.

    Reads are plain synchronous web3 calls. Claiming needs a ``Session``
    since it signs a transaction.
    """

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        contract_address: Optional[str] = None,
        network: str = DEFAULT_NETWORK,
        session: Optional[Session] = None,
        confirmation_timeout: float = 120.0,
        timeout: int = 30,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the client

        Args:
            rpc_url: RPC endpoint; defaults to the network's configured URL
            contract_address: GiftBox address; defaults to the network's deployment
            network: Network name from ``networks.json``
            session: Signing session, required only for ``claim_gift``
            confirmation_timeout: Seconds to wait for a claim receipt
            timeout: HTTP request timeout in seconds
            logger: Optional logger instance

        Raises:
            ValueError: If the network has no contract and none is given
            ValueError: If the URL is not https (unless local)
        """
        self.network = network
        self.rpc_url = rpc_url or NetworkConfig.get_rpc_url(network)
        check_rpc_url(self.rpc_url)
        self.contract_address = Web3.to_checksum_address(
            contract_address or NetworkConfig.get_gift_box_address(network)
        )
        self.session = session
        self.confirmation_timeout = confirmation_timeout
        self.logger = logger or logging.getLogger(__name__)

        self.w3 = Web3(Web3.HTTPProvider(self.rpc_url, request_kwargs={"timeout": timeout}))
        self.contract = self.w3.eth.contract(address=self.contract_address, abi=GIFTBOX_ABI)
        self._decimals: Dict[str, int] = {}

    def _read(self, function_name: str, *args: Any) -> Any:
        try:
            return getattr(self.contract.functions, function_name)(*args).call()
        except Exception as e:
            self.logger.error(f"{function_name} call failed: {e}")
            raise GiftBoxError(f"{function_name} call failed: {e}") from e

    def token_decimals(self, token_address: str) -> int:
        """Decimals of an ERC-20 token, 18 if the token does not say."""
        key = token_address.lower()
        if key not in self._decimals:
            try:
                token = self.w3.eth.contract(address=Web3.to_checksum_address(token_address), abi=ERC20_ABI)
                self._decimals[key] = int(token.functions.decimals().call())
            except Exception as e:
                self.logger.warning(f"Could not read decimals of {token_address}, assuming 18: {e}")
                self._decimals[key] = 18
        return self._decimals[key]

    def _decode(self, gift_id: int, raw: Sequence[Any]) -> GiftRecord:
        decimals = 18
        if raw[4] == ASSET_TYPE_FUNGIBLE:
            decimals = self.token_decimals(raw[5])
        return decode_gift(gift_id, raw, decimals)

    def get_gift(self, gift_id: int) -> GiftRecord:
        """
        Fetch one gift.

        Raises:
            GiftBoxError: If the read fails
        """
        return self._decode(gift_id, self._read("getGiftDetails", gift_id))

    def get_gifts(self, gift_ids: Sequence[int]) -> List[GiftRecord]:
        """Fetch several gifts in one call, in the order given."""
        ids = [int(i) for i in gift_ids]
        if not ids:
            return []
        raws = self._read("getMultipleGifts", ids)
        return [self._decode(gift_id, raw) for gift_id, raw in zip(ids, raws)]

    def get_sent_gifts(self, sender: str) -> List[GiftRecord]:
        ids = self._read("getSentGifts", Web3.to_checksum_address(sender))
        self.logger.debug(f"{sender} has sent {len(ids)} gifts")
        return self.get_gifts(ids)

    def get_received_gifts(self, recipient: str) -> List[GiftRecord]:
        ids = self._read("getReceivedGifts", Web3.to_checksum_address(recipient))
        self.logger.debug(f"{recipient} has received {len(ids)} gifts")
        return self.get_gifts(ids)

    def get_gifts_by_alias(self, alias: str) -> List[GiftRecord]:
        """Gifts addressed to a name-service alias, matched on the normalized name."""
        ids = self._read("getGiftsByENS", normalize_alias(alias))
        return self.get_gifts(ids)

    def created_gift_ids(self, receipt: TxReceipt) -> List[int]:
        """Gift ids emitted by ``GiftCreated`` events in a receipt."""
        raw_receipt = self.w3.eth.get_transaction_receipt(receipt.tx_hash)
        events = self.contract.events.GiftCreated().process_receipt(raw_receipt)
        return [int(event["args"]["id"]) for event in events]

    async def claim_gift(self, gift_id: int) -> TxReceipt:
        """
        Claim an unlocked gift with the attached session's account.

        Raises:
            ValueError: If no session was provided
            GiftBoxError: If the claim is rejected or not confirmed
        """
        if self.session is None:
            raise ValueError("A session is required to claim gifts")
        plan = calls.build_claim(gift_id)
        tx_hash = await self.session.submit_transaction(self.contract_address, GIFTBOX_ABI, plan)
        receipt = await confirm(self.session, tx_hash, self.confirmation_timeout)
        self.logger.info(f"Gift {gift_id} claimed in {tx_hash}")
        return receipt
