"""
Tests for the chain-id map and the JSON-RPC signer wallet.
"""

import json

import httpx
import pytest

from swap_engine.core.execution.tx_builder import ERC20_APPROVE_SELECTOR
from swap_engine.core.swap.errors import UnsupportedChainError, WalletError
from swap_engine.core.wallet.capability import ChainIdMap, WalletCapability
from swap_engine.core.wallet.jsonrpc import JsonRpcWallet
from tests.fixtures import SPENDER, USDC_ETH, WALLET, FakeWallet, make_token


class TestChainIdMap:

    def test_round_trip(self):
        chain_map = ChainIdMap({1: 1, 137: 137, 1151111081099710: 101})

        assert chain_map.to_wallet(1151111081099710) == 101
        assert chain_map.to_routing(101) == 1151111081099710

    def test_unmapped_chain_is_explicit_error(self):
        chain_map = ChainIdMap({1: 1})

        with pytest.raises(UnsupportedChainError):
            chain_map.to_wallet(137)

    def test_must_be_one_to_one(self):
        with pytest.raises(ValueError):
            ChainIdMap({1: 1, 5: 1})

    def test_require(self):
        chain_map = ChainIdMap({1: 1, 10: 10})
        chain_map.require([1, 10])
        with pytest.raises(ValueError):
            chain_map.require([1, 8453])

    def test_fake_wallet_satisfies_protocol(self):
        assert isinstance(FakeWallet(), WalletCapability)


class SignerStub:
    """httpx transport that answers JSON-RPC calls from a script."""

    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.calls.append(body)
        result = self.responses[body["method"]]
        if isinstance(result, dict) and "error" in result:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": result["error"]})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})


def _wallet(stub, chain_id=1):
    return JsonRpcWallet(
        signer_url="http://signer.local",
        address=WALLET,
        chain_map=ChainIdMap({1: 1, 137: 137}),
        chain_id=chain_id,
        poll_interval_s=0,
        transport=httpx.MockTransport(stub),
    )


class TestJsonRpcWallet:

    @pytest.mark.asyncio
    async def test_switch_chain(self):
        stub = SignerStub({"wallet_switchEthereumChain": None})
        wallet = _wallet(stub)

        await wallet.request_chain_switch(137)

        assert wallet.chain_id == 137
        assert stub.calls[0]["params"] == [{"chainId": "0x89"}]

    @pytest.mark.asyncio
    async def test_switch_to_unmapped_chain(self):
        wallet = _wallet(SignerStub({}))

        with pytest.raises(UnsupportedChainError):
            await wallet.request_chain_switch(10)

    @pytest.mark.asyncio
    async def test_bounded_approval(self):
        stub = SignerStub({
            "eth_sendTransaction": "0xapprove",
            "eth_getTransactionReceipt": {"status": "0x1"},
        })
        wallet = _wallet(stub)

        tx_hash = await wallet.set_token_allowance(make_token(1, USDC_ETH, "USDC", 6), SPENDER, 5_000_000)

        assert tx_hash == "0xapprove"
        sent = stub.calls[0]["params"][0]
        assert sent["to"] == USDC_ETH
        assert sent["from"] == WALLET
        assert sent["data"].startswith(ERC20_APPROVE_SELECTOR)
        assert sent["data"].endswith(format(5_000_000, "064x"))

    @pytest.mark.asyncio
    async def test_reverted_approval(self):
        stub = SignerStub({
            "eth_sendTransaction": "0xapprove",
            "eth_getTransactionReceipt": {"status": "0x0"},
        })

        with pytest.raises(WalletError) as exc_info:
            await _wallet(stub).set_token_allowance(make_token(1, USDC_ETH, "USDC", 6), SPENDER, 1)

        assert exc_info.value.tx_hash == "0xapprove"

    @pytest.mark.asyncio
    async def test_null_receipt_status_counts_as_success(self):
        stub = SignerStub({
            "eth_sendTransaction": "0xapprove",
            "eth_getTransactionReceipt": {"status": None, "transactionHash": "0xapprove"},
        })

        tx_hash = await _wallet(stub).set_token_allowance(make_token(1, USDC_ETH, "USDC", 6), SPENDER, 1)

        assert tx_hash == "0xapprove"

    @pytest.mark.asyncio
    async def test_unreadable_receipt_status_keeps_tx_hash(self):
        stub = SignerStub({
            "eth_sendTransaction": "0xapprove",
            "eth_getTransactionReceipt": {"status": "pending?"},
        })

        with pytest.raises(WalletError) as exc_info:
            await _wallet(stub).set_token_allowance(make_token(1, USDC_ETH, "USDC", 6), SPENDER, 1)

        assert exc_info.value.tx_hash == "0xapprove"

    @pytest.mark.asyncio
    async def test_user_rejection(self):
        stub = SignerStub({"eth_sendTransaction": {"error": {"code": 4001, "message": "User denied"}}})

        with pytest.raises(WalletError) as exc_info:
            await _wallet(stub).send_transaction({"to": SPENDER, "data": "0x"})

        assert "rejected" in exc_info.value.message
