"""Balance snapshots that degrade per token instead of failing as a whole."""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Protocol, Sequence

from .constants import normalize_address
from .models import BalanceSnapshot, Token


class BalanceService(Protocol):
    async def get_token_balance(self, address: str, token: Token) -> str:
        ...

    async def get_token_balances(self, address: str, tokens: Sequence[Token]) -> Mapping[str, str]:
        ...


class BalanceReconciler:
    """Takes balance snapshots before quoting and after execution.

    A token missing from a snapshot means its fetch failed; it is never
    reported as a zero balance.
    """

    def __init__(self, service: BalanceService, *, logger: Optional[logging.Logger] = None) -> None:
        self._service = service
        self._logger = logger or logging.getLogger(__name__)

    async def snapshot(self, address: str, tokens: Sequence[Token]) -> BalanceSnapshot:
        owner = normalize_address(address)
        unique: Dict[str, Token] = {}
        for token in tokens:
            unique.setdefault(token.key, token)
        wanted: List[Token] = list(unique.values())
        if not wanted:
            return BalanceSnapshot(address=owner)

        balances: Dict[str, str] = {}
        try:
            batched = await self._service.get_token_balances(owner, wanted)
        except Exception as exc:
            self._logger.warning(
                "Batched balance fetch failed for %d tokens, falling back to per-token reads: %s",
                len(wanted),
                exc,
            )
        else:
            balances = {key: str(value) for key, value in batched.items() if key in unique and value is not None}

        # Tokens the batch left out, or all of them when the batch failed.
        for token in wanted:
            if token.key in balances:
                continue
            try:
                balances[token.key] = str(await self._service.get_token_balance(owner, token))
            except Exception as exc:
                self._logger.warning("Balance fetch failed for %s: %s", token.key, exc)
        return BalanceSnapshot(address=owner, balances=balances)
