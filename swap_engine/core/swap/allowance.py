"""Bounded-approval gate run before a route is executed."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from ..wallet.capability import WalletCapability, ensure_wallet_chain
from .errors import ApprovalFailed, WalletError
from .models import Route, Token


class AllowanceReader(Protocol):
    async def get_allowance(self, owner: str, token: Token, spender: str) -> int:
        ...


class AllowanceGate:
    """Approves exactly what the first step spends, and nothing for native assets.

    With an ``AllowanceReader`` the current on-chain allowance is checked first
    and an allowance that already covers the step amount is left alone.
    """

    def __init__(
        self,
        reader: Optional[AllowanceReader] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._reader = reader
        self._logger = logger or logging.getLogger(__name__)

    def requires_approval(self, route: Route) -> bool:
        return not route.spent_token.is_native

    async def _current_allowance(self, owner: str, token: Token, spender: str) -> Optional[int]:
        if self._reader is None:
            return None
        try:
            return int(await self._reader.get_allowance(owner, token, spender))
        except Exception as exc:
            # An unreadable allowance is treated as insufficient.
            self._logger.warning("Allowance read failed for %s: %s", token.key, exc)
            return None

    async def ensure_allowance(self, route: Route, wallet: WalletCapability) -> Optional[str]:
        """Request a bounded allowance for the route's spender.

        Returns the approval tx hash, or ``None`` when no approval was needed.

        Raises:
            ApprovalFailed: missing spender, rejected chain switch, wallet
                rejection or on-chain revert.
        """
        if not self.requires_approval(route):
            return None

        step = route.steps[0]
        token = route.spent_token
        if not step.approval_address:
            raise ApprovalFailed("route step has no approval address", chain_id=route.from_chain_id)

        current = await self._current_allowance(wallet.address(), token, step.approval_address)
        if current is not None and current >= step.from_amount:
            self._logger.info(
                "Allowance %s of %s for %s already covers %s",
                current,
                token.symbol or token.address,
                step.approval_address,
                step.from_amount,
            )
            return None

        try:
            await ensure_wallet_chain(wallet, route.from_chain_id)
            tx_hash = await wallet.set_token_allowance(token, step.approval_address, step.from_amount)
        except WalletError as exc:
            self._logger.warning("Approval for %s failed: %s", token.symbol or token.address, exc.message)
            raise ApprovalFailed(exc.message, tx_hash=exc.tx_hash, chain_id=route.from_chain_id) from exc
        except Exception as exc:
            self._logger.error("Wallet raised during approval: %s", exc)
            raise ApprovalFailed(str(exc), chain_id=route.from_chain_id) from exc

        self._logger.info(
            "Approved %s of %s for %s (tx %s)",
            step.from_amount,
            token.symbol or token.address,
            step.approval_address,
            tx_hash,
        )
        return tx_hash
