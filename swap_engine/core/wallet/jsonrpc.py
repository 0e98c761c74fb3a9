"""
Wallet capability backed by a JSON-RPC signer endpoint.

The signer holds the key (a local node, Clef, Frame, or a custodial signer)
and exposes ``eth_sendTransaction`` and ``wallet_switchEthereumChain``.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from ...providers.rpc import JsonRpcClient, RpcError
from ..execution.tx_builder import build_erc20_approve
from ..swap.constants import normalize_address
from ..swap.errors import WalletError
from ..swap.models import Token
from .capability import ChainIdMap


logger = logging.getLogger(__name__)

USER_REJECTED_CODE = 4001


def _receipt_failed(receipt: Dict[str, Any]) -> bool:
    # Pre-Byzantium receipts and some nodes omit the status or send null.
    status = receipt.get("status")
    if status is None:
        return False
    return int(str(status), 0) == 0


class JsonRpcWallet:
    """
    Signs and submits transactions through a JSON-RPC signer.

    Responsibilities:
    - Translate routing chain ids through the ChainIdMap
    - Submit transactions with eth_sendTransaction
    - Wait for approval receipts and surface reverts
    """

    def __init__(
        self,
        *,
        signer_url: str,
        address: str,
        chain_map: ChainIdMap,
        chain_id: int,
        receipt_timeout_s: int = 300,
        poll_interval_s: float = 2.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if chain_id not in chain_map:
            raise ValueError(f"initial chain {chain_id} has no wallet mapping")
        self._address = normalize_address(address)
        self._chain_map = chain_map
        self._chain_id = chain_id
        self._receipt_timeout_s = receipt_timeout_s
        self._poll_interval_s = poll_interval_s
        self._rpc = JsonRpcClient(
            {routing_id: signer_url for routing_id in chain_map.routing_ids},
            transport=transport,
        )

    @property
    def chain_id(self) -> int:
        return self._chain_id

    def address(self) -> str:
        return self._address

    async def _call(self, method: str, params: list) -> Any:
        try:
            return await self._rpc.call(self._chain_id, method, params)
        except RpcError as exc:
            if exc.code == USER_REJECTED_CODE:
                raise WalletError(f"User rejected {method}") from exc
            raise WalletError(f"{method} failed: {exc}") from exc
        except httpx.HTTPError as exc:
            raise WalletError(f"Signer unreachable during {method}: {exc}") from exc

    async def request_chain_switch(self, chain_id: int) -> None:
        wallet_chain = self._chain_map.to_wallet(chain_id)
        logger.info("Switching wallet to chain %s (wallet id %s)", chain_id, wallet_chain)
        await self._call("wallet_switchEthereumChain", [{"chainId": hex(wallet_chain)}])
        self._chain_id = chain_id

    async def send_transaction(self, tx: Dict[str, Any]) -> str:
        payload = {**tx, "from": self._address}
        payload["chainId"] = hex(self._chain_map.to_wallet(self._chain_id))
        tx_hash = await self._call("eth_sendTransaction", [payload])
        logger.info("Transaction submitted: %s", tx_hash)
        return tx_hash

    async def set_token_allowance(self, token: Token, spender: str, amount: int) -> str:
        tx = build_erc20_approve(
            chain_id=self._chain_map.to_wallet(token.chain_id),
            owner_address=self._address,
            token_address=token.address,
            spender_address=spender,
            amount=amount,
        )
        tx_hash = await self.send_transaction(tx)
        receipt = await self.wait_for_receipt(tx_hash)
        try:
            reverted = _receipt_failed(receipt)
        except ValueError:
            raise WalletError(f"Unreadable receipt status {receipt.get('status')!r}", tx_hash=tx_hash) from None
        if reverted:
            raise WalletError("Approval transaction reverted", tx_hash=tx_hash)
        return tx_hash

    async def wait_for_receipt(self, tx_hash: str) -> Dict[str, Any]:
        """Poll for a receipt until it exists or the timeout elapses."""
        start_time = datetime.utcnow()
        while True:
            elapsed = (datetime.utcnow() - start_time).total_seconds()
            if elapsed > self._receipt_timeout_s:
                raise WalletError(
                    f"Receipt timeout after {self._receipt_timeout_s}s",
                    tx_hash=tx_hash,
                )
            receipt = await self._call("eth_getTransactionReceipt", [tx_hash])
            if receipt:
                return receipt
            await asyncio.sleep(self._poll_interval_s)
