"""
Route executor backed by LI.FI step transactions.

Handles the lifecycle of every route step:
- Chain switching
- Fetching the step's transaction request
- Submission through the wallet
- Status monitoring until the step settles

Progress is pushed through ``on_update``; nothing is returned.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

import httpx

from ...providers.lifi import LiFiProvider
from ..swap.errors import WalletError
from ..swap.models import ProgressEvent, ProgressStatus, Route, Step
from ..wallet.capability import WalletCapability, ensure_wallet_chain
from .tx_builder import normalize_transaction_request


logger = logging.getLogger(__name__)

FINAL_FAILURE_STATUSES = {"FAILED", "INVALID"}
FAILED_SUBSTATUSES = {"REFUNDED"}


class LiFiExecutionService:
    """
    Executes routes step by step.

    The only component in the engine that polls: it watches the status
    endpoint for each submitted step until DONE/FAILED or the timeout.
    """

    def __init__(
        self,
        provider: LiFiProvider,
        *,
        poll_interval_s: float = 5.0,
        timeout_s: int = 1800,
    ) -> None:
        self._provider = provider
        self._poll_interval_s = poll_interval_s
        self._timeout_s = timeout_s

    async def execute_route(
        self,
        route: Route,
        wallet: WalletCapability,
        on_update: Callable[[ProgressEvent], None],
    ) -> None:
        for index, step in enumerate(route.steps):
            try:
                await ensure_wallet_chain(wallet, step.from_chain_id)
            except WalletError as exc:
                on_update(ProgressEvent(ProgressStatus.FAILED, step_index=index, message=exc.message))
                return

            populated = await self._provider.get_step_transaction(step.raw)
            tx_request = populated.get("transactionRequest")
            if not tx_request:
                on_update(ProgressEvent(
                    ProgressStatus.FAILED,
                    step_index=index,
                    message="Routing service returned no transaction data",
                ))
                return

            try:
                tx_hash = await wallet.send_transaction(
                    normalize_transaction_request(tx_request, chain_id=step.from_chain_id)
                )
            except WalletError as exc:
                on_update(ProgressEvent(ProgressStatus.FAILED, step_index=index, message=exc.message))
                return

            on_update(ProgressEvent(
                ProgressStatus.PENDING,
                tx_hash=tx_hash,
                chain_id=step.from_chain_id,
                step_index=index,
            ))

            status, message = await self._wait_for_step(step, tx_hash)
            if status != ProgressStatus.DONE:
                on_update(ProgressEvent(
                    ProgressStatus.FAILED,
                    tx_hash=tx_hash,
                    chain_id=step.from_chain_id,
                    step_index=index,
                    message=message,
                ))
                return

            on_update(ProgressEvent(
                ProgressStatus.DONE,
                tx_hash=tx_hash,
                chain_id=step.from_chain_id,
                step_index=index,
            ))

    async def _wait_for_step(self, step: Step, tx_hash: str) -> Tuple[ProgressStatus, Optional[str]]:
        """Poll the status endpoint until the step settles or the timeout elapses."""
        start_time = datetime.utcnow()

        while True:
            elapsed = (datetime.utcnow() - start_time).total_seconds()
            if elapsed > self._timeout_s:
                return ProgressStatus.FAILED, f"Status timeout after {self._timeout_s}s"

            try:
                status = await self._provider.get_status(
                    tx_hash,
                    bridge=step.tool,
                    from_chain=step.from_chain_id,
                    to_chain=step.to_chain_id,
                )
            except httpx.HTTPError as exc:
                logger.warning("Error checking status of %s: %s", tx_hash, exc)
                status = {}

            settled = self._interpret(status)
            if settled is not None:
                return settled

            await asyncio.sleep(self._poll_interval_s)

    @staticmethod
    def _interpret(status: Dict[str, Any]) -> Optional[Tuple[ProgressStatus, Optional[str]]]:
        value = str(status.get("status") or "").upper()
        substatus = str(status.get("substatus") or "").upper()
        message = status.get("substatusMessage")
        if value == "DONE":
            if substatus in FAILED_SUBSTATUSES:
                return ProgressStatus.FAILED, message or "Transfer refunded"
            return ProgressStatus.DONE, None
        if value in FINAL_FAILURE_STATUSES:
            return ProgressStatus.FAILED, message or f"Step {value.lower()}"
        return None
