"""
Wallet capability contract and routing/wallet chain-id mapping.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Protocol, runtime_checkable

from ..swap.errors import UnsupportedChainError
from ..swap.models import Token


@runtime_checkable
class WalletCapability(Protocol):
    """Authenticated signing handle bound to an address and an active chain.

    ``chain_id`` and ``request_chain_switch`` speak routing-service chain ids;
    adapters translate through a ``ChainIdMap``.
    """

    @property
    def chain_id(self) -> int:
        ...

    def address(self) -> str:
        ...

    async def request_chain_switch(self, chain_id: int) -> None:
        ...

    async def set_token_allowance(self, token: Token, spender: str, amount: int) -> str:
        ...

    async def send_transaction(self, tx: Dict[str, Any]) -> str:
        ...


class ChainIdMap:
    """Bidirectional routing-service <-> wallet-provider chain id mapping.

    Validated on construction: the mapping must be one-to-one. Lookups of an
    unmapped chain raise ``UnsupportedChainError``; there is no fallback.
    """

    def __init__(self, routing_to_wallet: Mapping[int, int]) -> None:
        forward = {int(k): int(v) for k, v in routing_to_wallet.items()}
        if not forward:
            raise ValueError("chain id map is empty")
        reverse: Dict[int, int] = {}
        for routing_id, wallet_id in forward.items():
            if wallet_id in reverse:
                raise ValueError(
                    f"wallet chain {wallet_id} mapped from both {reverse[wallet_id]} and {routing_id}"
                )
            reverse[wallet_id] = routing_id
        self._forward = forward
        self._reverse = reverse

    def __contains__(self, routing_id: object) -> bool:
        return routing_id in self._forward

    def __len__(self) -> int:
        return len(self._forward)

    @property
    def routing_ids(self) -> Iterable[int]:
        return tuple(self._forward)

    def to_wallet(self, routing_id: int) -> int:
        try:
            return self._forward[routing_id]
        except KeyError:
            raise UnsupportedChainError(routing_id) from None

    def to_routing(self, wallet_id: int) -> int:
        try:
            return self._reverse[wallet_id]
        except KeyError:
            raise UnsupportedChainError(wallet_id) from None

    def require(self, routing_ids: Iterable[int]) -> None:
        """Fail startup if any chain the engine must serve has no wallet counterpart."""
        missing = sorted(set(routing_ids) - set(self._forward))
        if missing:
            raise ValueError(f"chains without a wallet mapping: {missing}")


async def ensure_wallet_chain(wallet: WalletCapability, chain_id: int) -> None:
    if wallet.chain_id != chain_id:
        await wallet.request_chain_switch(chain_id)
