"""
Tests for the web3-backed session.
"""
from unittest.mock import MagicMock

import pytest
from eth_account import Account
from web3.exceptions import ContractLogicError, TimeExhausted

from giftbox_sdk.abi import GIFTBOX_ABI
from giftbox_sdk.exceptions import ConfirmationTimeout, GiftBoxError, SubmissionError
from giftbox_sdk.models import CallPlan
from giftbox_sdk.session import Web3Session, check_rpc_url, confirm

from conftest import TEST_CONTRACT, TEST_PRIV_KEY, TEST_RECIPIENT, TEST_RPC_URL, TEST_SENDER

TX_HASH = b"\x12" * 32
TX_HEX = "0x" + "12" * 32
PLAN = CallPlan(function_name="createGiftETH", args=[TEST_RECIPIENT, 1, "", "hi"], attached_value=10 ** 16)


def receipt(status=1):
    return {
        "transactionHash": TX_HASH,
        "blockNumber": 42,
        "blockHash": b"\x34" * 32,
        "status": status,
        "gasUsed": 90000,
        "from": TEST_SENDER,
        "to": TEST_CONTRACT,
        "logs": [],
    }


@pytest.fixture
def web3_session():
    """Session whose web3 instance and account are mocks"""
    session = Web3Session(TEST_RPC_URL, priv_key=TEST_PRIV_KEY, expected_chain_id=11155111)
    session.w3 = MagicMock()
    session.account = MagicMock()
    session.account.address = TEST_SENDER
    session.account.sign_transaction.return_value = MagicMock(raw_transaction=b"signed")

    eth = session.w3.eth
    eth.get_transaction_count.return_value = 7
    eth.gas_price = 2_000_000_000
    eth.send_raw_transaction.return_value = TX_HASH
    eth.chain_id = 11155111
    return session


def contract_fn(session, name):
    return getattr(session.w3.eth.contract.return_value.functions, name).return_value


class TestConstruction:

    def test_requires_credentials(self):
        with pytest.raises(ValueError, match="priv_key or signer"):
            Web3Session(TEST_RPC_URL)

    def test_rejects_plain_http(self):
        with pytest.raises(ValueError, match="https"):
            Web3Session("http://rpc.example.com", priv_key=TEST_PRIV_KEY)

    @pytest.mark.parametrize("url", ["http://localhost:8545", "http://127.0.0.1:8545", TEST_RPC_URL])
    def test_accepted_urls(self, url):
        check_rpc_url(url)

    def test_address_from_key(self):
        session = Web3Session(TEST_RPC_URL, priv_key=TEST_PRIV_KEY)
        assert session.address.startswith("0x")
        assert len(session.address) == 42

    def test_address_from_signer(self):
        signer = MagicMock()
        signer.address = TEST_SENDER
        session = Web3Session(TEST_RPC_URL, signer=signer)
        assert session.address == TEST_SENDER

    def test_chain_id_mismatch(self, web3_session):
        web3_session.w3.eth.chain_id = 1
        with pytest.raises(GiftBoxError, match="expected 11155111"):
            web3_session.assert_chain_id()

    def test_chain_id_match(self, web3_session):
        web3_session.assert_chain_id()


class TestSubmit:

    @pytest.mark.asyncio
    async def test_submit_success(self, web3_session):
        fn = contract_fn(web3_session, "createGiftETH")
        fn.estimate_gas.return_value = 100000
        fn.build_transaction.return_value = {"data": "0x"}

        tx_hex = await web3_session.submit_transaction(TEST_CONTRACT, GIFTBOX_ABI, PLAN)

        assert tx_hex == TX_HEX
        fn.estimate_gas.assert_called_once_with({"from": TEST_SENDER, "value": 10 ** 16})
        fn.build_transaction.assert_called_once_with({
            "from": TEST_SENDER,
            "nonce": 7,
            "gas": 110000,
            "gasPrice": 2_000_000_000,
            "value": 10 ** 16,
        })
        web3_session.w3.eth.send_raw_transaction.assert_called_once_with(b"signed")

    @pytest.mark.asyncio
    async def test_revert_on_estimate(self, web3_session):
        fn = contract_fn(web3_session, "createGiftETH")
        fn.estimate_gas.side_effect = ContractLogicError("execution reverted: unlock in past")

        with pytest.raises(SubmissionError, match="would revert"):
            await web3_session.submit_transaction(TEST_CONTRACT, GIFTBOX_ABI, PLAN)
        web3_session.w3.eth.send_raw_transaction.assert_not_called()

    @pytest.mark.asyncio
    async def test_estimate_failure_uses_default_gas(self, web3_session):
        fn = contract_fn(web3_session, "createGiftETH")
        fn.estimate_gas.side_effect = ConnectionError("timeout")
        fn.build_transaction.return_value = {}

        await web3_session.submit_transaction(TEST_CONTRACT, GIFTBOX_ABI, PLAN)

        assert fn.build_transaction.call_args[0][0]["gas"] == Web3Session.DEFAULT_GAS_LIMIT

    @pytest.mark.asyncio
    async def test_node_rejects(self, web3_session):
        fn = contract_fn(web3_session, "createGiftETH")
        fn.estimate_gas.return_value = 100000
        web3_session.w3.eth.send_raw_transaction.side_effect = ValueError("insufficient funds for gas")

        with pytest.raises(SubmissionError, match="insufficient funds"):
            await web3_session.submit_transaction(TEST_CONTRACT, GIFTBOX_ABI, PLAN)

    @pytest.mark.asyncio
    async def test_signing_failure(self, web3_session):
        contract_fn(web3_session, "createGiftETH").estimate_gas.return_value = 1
        web3_session.account.sign_transaction.side_effect = ValueError("bad key")

        with pytest.raises(SubmissionError, match="sign"):
            await web3_session.submit_transaction(TEST_CONTRACT, GIFTBOX_ABI, PLAN)

    @pytest.mark.asyncio
    async def test_custom_signer(self, web3_session):
        signer = MagicMock()
        signer.address = TEST_SENDER
        signer.sign_transaction.return_value = MagicMock(raw_transaction=b"by-signer")
        web3_session.account = None
        web3_session.signer = signer
        contract_fn(web3_session, "createGiftETH").estimate_gas.return_value = 1

        await web3_session.submit_transaction(TEST_CONTRACT, GIFTBOX_ABI, PLAN)

        web3_session.w3.eth.send_raw_transaction.assert_called_once_with(b"by-signer")

    @pytest.mark.asyncio
    async def test_signs_with_real_key(self, web3_session):
        web3_session.account = Account.from_key(TEST_PRIV_KEY)
        fn = contract_fn(web3_session, "createGiftETH")
        fn.estimate_gas.return_value = 100000
        fn.build_transaction.return_value = {
            "to": TEST_CONTRACT,
            "value": 10 ** 16,
            "gas": 110000,
            "gasPrice": 2_000_000_000,
            "nonce": 7,
            "chainId": 11155111,
            "data": "0x",
        }

        await web3_session.submit_transaction(TEST_CONTRACT, GIFTBOX_ABI, PLAN)

        raw = web3_session.w3.eth.send_raw_transaction.call_args[0][0]
        assert isinstance(raw, bytes)
        assert len(raw) > 100

    @pytest.mark.asyncio
    async def test_read_call(self, web3_session):
        fn = contract_fn(web3_session, "allowance")
        fn.call.return_value = 500

        value = await web3_session.call(TEST_CONTRACT, [], "allowance", [TEST_SENDER, TEST_CONTRACT])

        assert value == 500
        fn.call.assert_called_once_with({"from": TEST_SENDER})


class TestConfirmation:

    @pytest.mark.asyncio
    async def test_receipt_converted(self, web3_session):
        web3_session.w3.eth.wait_for_transaction_receipt.return_value = receipt()

        result = await web3_session.wait_for_confirmation(TX_HEX, timeout=5)

        assert result.tx_hash == TX_HEX
        assert result.block_hash == "0x" + "34" * 32
        assert result.block_number == 42
        assert result.succeeded

    @pytest.mark.asyncio
    async def test_reverted(self, web3_session):
        web3_session.w3.eth.wait_for_transaction_receipt.return_value = receipt(status=0)

        with pytest.raises(SubmissionError, match="reverted") as exc_info:
            await web3_session.wait_for_confirmation(TX_HEX)
        assert exc_info.value.tx_hash == TX_HEX

    @pytest.mark.asyncio
    async def test_time_exhausted(self, web3_session):
        web3_session.w3.eth.wait_for_transaction_receipt.side_effect = TimeExhausted("gave up")

        with pytest.raises(ConfirmationTimeout) as exc_info:
            await web3_session.wait_for_confirmation(TX_HEX, timeout=3)
        assert exc_info.value.tx_hash == TX_HEX
        assert exc_info.value.timeout == 3

    @pytest.mark.asyncio
    async def test_confirm_enforces_its_own_bound(self, session):
        session.confirm_delay = 1.0
        with pytest.raises(ConfirmationTimeout):
            await confirm(session, TX_HEX, 0.05)

    @pytest.mark.asyncio
    async def test_confirm_returns_receipt(self, session):
        result = await confirm(session, TX_HEX, 1.0)
        assert result.tx_hash == TX_HEX
