"""
Account session: the only place transactions are signed and sent.

The batch engine talks to a ``Session``; ``Web3Session`` is the production
implementation on top of web3.py. Blocking web3 calls run in worker threads
so they never stall the event loop.
"""
import asyncio
import logging
import urllib.parse
from typing import Any, Dict, List, Optional, Protocol, Sequence

from eth_account import Account
from eth_account.signers.base import BaseAccount
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted
from web3.types import TxReceipt as Web3TxReceipt

from .exceptions import ConfirmationTimeout, GiftBoxError, SubmissionError
from .models import CallPlan, TxReceipt


class Signer(Protocol):
    """Protocol for custom signers"""
    address: str

    def sign_transaction(self, transaction_dict: Dict[str, Any]) -> Any:
        """Sign transaction and return signed tx object"""
        ...


class Session(Protocol):
    """What the gift engine needs from a connected account"""
    address: str

    async def call(self, to: str, abi: Sequence[Dict[str, Any]], function_name: str, args: Sequence[Any]) -> Any:
        ...

    async def submit_transaction(self, to: str, abi: Sequence[Dict[str, Any]], plan: CallPlan) -> str:
        ...

    async def wait_for_confirmation(self, tx_hash: str, timeout: Optional[float] = None) -> TxReceipt:
        ...


def check_rpc_url(url: str, name: str = "rpc_url") -> None:
    """
    Require https for remote endpoints.

    Raises:
        ValueError: If a non-local URL does not use https
    """
    parsed = urllib.parse.urlparse(url)
    host = parsed.hostname or ""
    is_local = host in ("localhost", "127.0.0.1", "::1")
    if parsed.scheme != "https" and not is_local:
        raise ValueError(f"{name} must use https:// for security (got: {parsed.scheme}://)")


class Web3Session:
    """
    Session backed by a web3 HTTP provider and a local key or custom signer.
    """

    DEFAULT_GAS_LIMIT = 300000

    def __init__(
        self,
        rpc_url: str,
        priv_key: Optional[str] = None,
        signer: Optional[Signer] = None,
        expected_chain_id: Optional[int] = None,
        confirmation_timeout: float = 120.0,
        poll_interval: float = 0.5,
        timeout: int = 30,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the session

        Args:
            rpc_url: Ethereum RPC endpoint URL
            priv_key: Private key (optional if signer provided)
            signer: Custom signer object (optional if priv_key provided)
            expected_chain_id: If set, the endpoint's chain id must match
            confirmation_timeout: Default seconds to wait for a receipt
            poll_interval: Seconds between receipt polls
            timeout: HTTP request timeout in seconds
            logger: Optional logger instance

        Raises:
            ValueError: If neither priv_key nor signer is provided
            ValueError: If the URL is not https (unless local)
        """
        if not priv_key and not signer:
            raise ValueError("Either priv_key or signer must be provided")
        check_rpc_url(rpc_url)

        self.rpc_url = rpc_url
        self.expected_chain_id = expected_chain_id
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval
        self.logger = logger or logging.getLogger(__name__)

        self.w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))

        self.account: Optional[BaseAccount] = None
        self.signer = signer
        if priv_key:
            self.account = Account.from_key(priv_key)

    @property
    def address(self) -> str:
        """
        Get the account address

        Raises:
            ValueError: If no account or signer is available
        """
        if self.account:
            return self.account.address
        elif self.signer:
            return self.signer.address
        else:
            raise ValueError("No account or signer available")

    def _contract(self, to: str, abi: Sequence[Dict[str, Any]]):
        return self.w3.eth.contract(address=Web3.to_checksum_address(to), abi=list(abi))

    def assert_chain_id(self) -> None:
        """
        Raises:
            GiftBoxError: If the endpoint is on a different chain than expected
        """
        if self.expected_chain_id is None:
            return
        actual = self.w3.eth.chain_id
        if actual != self.expected_chain_id:
            raise GiftBoxError(f"Connected to chain {actual}, expected {self.expected_chain_id}")

    async def call(self, to: str, abi: Sequence[Dict[str, Any]], function_name: str, args: Sequence[Any]) -> Any:
        """Run a read-only contract call from this account."""
        return await asyncio.to_thread(self._call_sync, to, abi, function_name, list(args))

    def _call_sync(self, to: str, abi: Sequence[Dict[str, Any]], function_name: str, args: List[Any]) -> Any:
        fn = getattr(self._contract(to, abi).functions, function_name)(*args)
        return fn.call({"from": self.address})

    async def submit_transaction(self, to: str, abi: Sequence[Dict[str, Any]], plan: CallPlan) -> str:
        """
        Sign and broadcast a contract call.

        Returns:
            Transaction hash as a 0x-prefixed hex string

        Raises:
            SubmissionError: If the call would revert, signing fails, or the
                node rejects the transaction
        """
        return await asyncio.to_thread(self._submit_sync, to, abi, plan)

    def _submit_sync(self, to: str, abi: Sequence[Dict[str, Any]], plan: CallPlan) -> str:
        fn = getattr(self._contract(to, abi).functions, plan.function_name)(*plan.args)
        from_address = self.address

        try:
            nonce = self.w3.eth.get_transaction_count(from_address, "pending")
            gas_price = self.w3.eth.gas_price
        except Exception as e:
            self.logger.error(f"Failed to prepare transaction: {e}")
            raise SubmissionError(f"Failed to prepare transaction: {e}") from e

        try:
            gas = fn.estimate_gas({"from": from_address, "value": plan.attached_value})
            # Add 10% buffer to gas estimate
            gas = int(gas * 1.1)
            self.logger.debug(f"Estimated gas for {plan.function_name}: {gas}")
        except ContractLogicError as e:
            self.logger.error(f"{plan.function_name} would revert: {e}")
            raise SubmissionError(f"{plan.function_name} would revert: {e}") from e
        except Exception as e:
            gas = self.DEFAULT_GAS_LIMIT
            self.logger.warning(f"Gas estimation failed, using default: {gas}. Error: {e}")

        tx = fn.build_transaction({
            "from": from_address,
            "nonce": nonce,
            "gas": gas,
            "gasPrice": gas_price,
            "value": plan.attached_value,
        })

        try:
            if self.account:
                signed_tx = self.account.sign_transaction(tx)
            else:
                signed_tx = self.signer.sign_transaction(tx)
        except Exception as e:
            self.logger.error(f"Transaction signing failed: {e}")
            raise SubmissionError(f"Failed to sign transaction: {e}") from e

        try:
            tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        except Exception as e:
            self.logger.error(f"Failed to send transaction: {e}")
            raise SubmissionError(f"Failed to send transaction: {e}") from e

        tx_hex = Web3.to_hex(tx_hash)
        self.logger.info(f"Transaction sent: {plan.function_name} {tx_hex}")
        return tx_hex

    async def wait_for_confirmation(self, tx_hash: str, timeout: Optional[float] = None) -> TxReceipt:
        """
        Wait for a transaction receipt.

        Raises:
            ConfirmationTimeout: If no receipt arrives in time
            SubmissionError: If the transaction reverted
        """
        timeout = timeout if timeout is not None else self.confirmation_timeout
        try:
            receipt = await asyncio.to_thread(
                self.w3.eth.wait_for_transaction_receipt,
                tx_hash,
                timeout=timeout,
                poll_latency=self.poll_interval,
            )
        except TimeExhausted as e:
            raise ConfirmationTimeout(
                f"Transaction {tx_hash} not confirmed within {timeout}s", tx_hash=tx_hash, timeout=timeout
            ) from e

        converted = self._convert_receipt(receipt)
        if not converted.succeeded:
            raise SubmissionError(f"Transaction {tx_hash} reverted", tx_hash=tx_hash)
        return converted

    def _convert_receipt(self, web3_receipt: Web3TxReceipt) -> TxReceipt:
        """
        Convert Web3 receipt to our TxReceipt model
        """
        receipt_dict = dict(web3_receipt)

        # Convert bytes to hex strings
        for key, value in list(receipt_dict.items()):
            if isinstance(value, bytes):
                receipt_dict[key] = Web3.to_hex(value)
        receipt_dict["logs"] = [dict(log) for log in receipt_dict.get("logs", [])]

        return TxReceipt.model_validate(receipt_dict)


async def confirm(session: Session, tx_hash: str, timeout: float) -> TxReceipt:
    """
    Wait for a receipt with a hard upper bound, whatever the session does.

    Raises:
        ConfirmationTimeout: If the receipt does not arrive within ``timeout``
        SubmissionError: If the transaction reverted
    """
    try:
        receipt = await asyncio.wait_for(session.wait_for_confirmation(tx_hash, timeout), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise ConfirmationTimeout(
            f"Transaction {tx_hash} not confirmed within {timeout}s", tx_hash=tx_hash, timeout=timeout
        ) from e
    if not receipt.succeeded:
        raise SubmissionError(f"Transaction {tx_hash} reverted", tx_hash=tx_hash)
    return receipt
