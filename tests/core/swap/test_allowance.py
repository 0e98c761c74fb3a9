"""
Tests for the allowance gate.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from swap_engine.core.swap.allowance import AllowanceGate
from swap_engine.core.swap.errors import ApprovalFailed, WalletError
from tests.fixtures import EEEE, SPENDER, USDC_ETH, WALLET, FakeWallet, lifi_step, lifi_token, make_route


def _usdc_route(approval_address=SPENDER):
    usdc = lifi_token(1, USDC_ETH, "USDC", 6)
    step = lifi_step(
        from_token=usdc,
        from_amount="25500000",
        approval_address=approval_address,
    )
    return make_route(from_token=usdc, from_amount="25500000", steps=[step])


class TestAllowanceGate:

    @pytest.mark.asyncio
    async def test_native_token_never_touches_wallet(self):
        gate = AllowanceGate()
        wallet = FakeWallet(chain_id=10)

        assert await gate.ensure_allowance(make_route(), wallet) is None
        assert wallet.approvals == []
        assert wallet.switches == []

    @pytest.mark.asyncio
    async def test_eeee_sentinel_is_native(self):
        gate = AllowanceGate()
        route = make_route(from_token=lifi_token(1, EEEE))

        assert gate.requires_approval(route) is False

    @pytest.mark.asyncio
    async def test_approves_exact_step_amount(self):
        gate = AllowanceGate()
        wallet = FakeWallet(chain_id=1)

        tx_hash = await gate.ensure_allowance(_usdc_route(), wallet)

        assert tx_hash == "0xapprove"
        assert len(wallet.approvals) == 1
        approval = wallet.approvals[0]
        assert approval["spender"] == SPENDER
        assert approval["amount"] == 25500000
        assert approval["token"].address == USDC_ETH

    @pytest.mark.asyncio
    async def test_switches_chain_first(self):
        gate = AllowanceGate()
        wallet = FakeWallet(chain_id=137)

        await gate.ensure_allowance(_usdc_route(), wallet)

        assert wallet.switches == [1]

    @pytest.mark.asyncio
    async def test_wallet_rejection_becomes_approval_failed(self):
        gate = AllowanceGate()
        wallet = FakeWallet(chain_id=1)
        wallet.approval_error = WalletError("User rejected eth_sendTransaction")

        with pytest.raises(ApprovalFailed) as exc_info:
            await gate.ensure_allowance(_usdc_route(), wallet)

        assert "User rejected" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_revert_keeps_tx_hash(self):
        gate = AllowanceGate()
        wallet = FakeWallet(chain_id=1)
        wallet.approval_error = WalletError("Approval transaction reverted", tx_hash="0xdead")

        with pytest.raises(ApprovalFailed) as exc_info:
            await gate.ensure_allowance(_usdc_route(), wallet)

        assert exc_info.value.tx_hash == "0xdead"

    @pytest.mark.asyncio
    async def test_missing_spender(self):
        gate = AllowanceGate()
        wallet = FakeWallet(chain_id=1)

        with pytest.raises(ApprovalFailed):
            await gate.ensure_allowance(_usdc_route(approval_address=None), wallet)
        assert wallet.approvals == []


def _reader(allowance=None, error=None):
    reader = MagicMock()
    reader.get_allowance = AsyncMock(return_value=allowance, side_effect=error)
    return reader


class TestAllowanceRead:

    @pytest.mark.asyncio
    async def test_sufficient_allowance_skips_approval(self):
        reader = _reader(allowance=25500000)
        gate = AllowanceGate(reader)
        wallet = FakeWallet(chain_id=137)

        assert await gate.ensure_allowance(_usdc_route(), wallet) is None

        assert wallet.approvals == []
        assert wallet.switches == []
        owner, token, spender = reader.get_allowance.await_args.args
        assert owner == WALLET
        assert token.address == USDC_ETH
        assert spender == SPENDER

    @pytest.mark.asyncio
    async def test_short_allowance_is_topped_up_to_step_amount(self):
        gate = AllowanceGate(_reader(allowance=1000))
        wallet = FakeWallet(chain_id=1)

        assert await gate.ensure_allowance(_usdc_route(), wallet) == "0xapprove"

        assert wallet.approvals[0]["amount"] == 25500000

    @pytest.mark.asyncio
    async def test_unreadable_allowance_still_approves(self):
        gate = AllowanceGate(_reader(error=RuntimeError("rpc down")))
        wallet = FakeWallet(chain_id=1)

        assert await gate.ensure_allowance(_usdc_route(), wallet) == "0xapprove"
        assert len(wallet.approvals) == 1

    @pytest.mark.asyncio
    async def test_native_token_skips_read(self):
        reader = _reader(allowance=0)

        await AllowanceGate(reader).ensure_allowance(make_route(), FakeWallet())

        reader.get_allowance.assert_not_called()
