"""
Token balance reads over JSON-RPC.

Native balances use ``eth_getBalance``; ERC20 balances and allowances use
``balanceOf`` and ``allowance`` via ``eth_call``. Batched reads send one
JSON-RPC batch per chain.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List, Sequence

from ..core.execution.tx_builder import encode_allowance, encode_balance_of
from ..core.swap.constants import normalize_address
from ..core.swap.models import Token
from ..providers.rpc import JsonRpcClient, RpcCall, RpcError

logger = logging.getLogger(__name__)


def _balance_call(address: str, token: Token) -> RpcCall:
    if token.is_native:
        return "eth_getBalance", [address, "latest"]
    return "eth_call", [{"to": token.address, "data": encode_balance_of(address)}, "latest"]


def _parse_quantity(value: object) -> str:
    if not isinstance(value, str):
        raise RpcError(f"Unexpected balance result: {value!r}")
    if value in ("0x", ""):
        return "0"
    return str(int(value, 16))


class RpcBalanceService:
    """Reads raw token balances. Errors propagate; callers decide how to degrade."""

    def __init__(self, rpc: JsonRpcClient) -> None:
        self._rpc = rpc

    async def get_token_balance(self, address: str, token: Token) -> str:
        method, params = _balance_call(normalize_address(address), token)
        result = await self._rpc.call(token.chain_id, method, params)
        return _parse_quantity(result)

    async def get_allowance(self, owner: str, token: Token, spender: str) -> int:
        """ERC20 ``allowance(owner, spender)`` on the token's chain."""
        call = {"to": token.address, "data": encode_allowance(owner, spender)}
        result = await self._rpc.call(token.chain_id, "eth_call", [call, "latest"])
        return int(_parse_quantity(result))

    async def get_token_balances(self, address: str, tokens: Sequence[Token]) -> Dict[str, str]:
        """Fetch all balances, one batch per chain.

        Any transport failure raises. Individual call errors inside a batch
        leave that token out of the result.
        """
        owner = normalize_address(address)
        by_chain: Dict[int, List[Token]] = defaultdict(list)
        for token in tokens:
            by_chain[token.chain_id].append(token)

        balances: Dict[str, str] = {}
        for chain_id, chain_tokens in by_chain.items():
            results = await self._rpc.batch(chain_id, [_balance_call(owner, token) for token in chain_tokens])
            for token, result in zip(chain_tokens, results):
                if isinstance(result, RpcError):
                    logger.warning("Balance call failed for %s on chain %s: %s", token.address, chain_id, result)
                    continue
                try:
                    balances[token.key] = _parse_quantity(result)
                except (RpcError, ValueError) as exc:
                    logger.warning("Unparseable balance for %s on chain %s: %s", token.address, chain_id, exc)
        return balances
