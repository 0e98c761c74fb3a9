"""
Execution orchestrator.

Hands a route to the execution service and folds its push-channel progress
events into ``ExecutionProgress``. Submission, signing and status tracking
belong to the execution service; this module only interprets events.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Callable, Optional, Protocol, Set

from ..wallet.capability import WalletCapability
from .balances import BalanceReconciler
from .errors import ExecutionFailed
from .models import (
    BalanceSnapshot,
    ExecutionProgress,
    ExecutionResult,
    ExecutionStatus,
    ProgressEvent,
    ProgressStatus,
    Route,
    StepStatus,
)

ProgressCallback = Callable[[ExecutionProgress], None]
UpdateCallback = Callable[[ProgressEvent], None]
SnapshotCallback = Callable[[BalanceSnapshot], None]


class ExecutionService(Protocol):
    async def execute_route(self, route: Route, wallet: WalletCapability, on_update: UpdateCallback) -> None:
        ...


class ExecutionTracker:
    """Applies progress events to one execution; everything after the first terminal event is ignored."""

    def __init__(self, route: Route, *, logger: Optional[logging.Logger] = None) -> None:
        self.progress = ExecutionProgress.for_route(route)
        self.terminal: Optional[ProgressEvent] = None
        self._logger = logger or logging.getLogger(__name__)

    @property
    def last_index(self) -> int:
        return len(self.progress.steps) - 1

    def _set_step(self, index: int, status: StepStatus, event: ProgressEvent) -> None:
        steps = list(self.progress.steps)
        current = steps[index]
        steps[index] = replace(
            current,
            status=status,
            tx_hash=event.tx_hash or current.tx_hash,
            chain_id=event.chain_id if event.chain_id is not None else current.chain_id,
        )
        self.progress = replace(self.progress, steps=steps)

    def _complete_before(self, index: int) -> None:
        steps = [
            replace(step, status=StepStatus.COMPLETED) if step.index < index and step.status != StepStatus.COMPLETED
            else step
            for step in self.progress.steps
        ]
        self.progress = replace(self.progress, steps=steps)

    def apply(self, event: ProgressEvent) -> bool:
        """Fold ``event`` into progress. Returns False when the event was ignored."""
        if self.terminal is not None:
            self._logger.debug("Ignoring %s event after terminal %s", event.status.value, self.terminal.status.value)
            return False

        index = self.progress.current_step if event.step_index is None else event.step_index
        if not 0 <= index <= self.last_index:
            self._logger.warning("Ignoring event for unknown step %s", index)
            return False

        if event.status == ProgressStatus.PENDING:
            self._complete_before(index)
            self._set_step(index, StepStatus.ACTIVE, event)
            self.progress = replace(self.progress, current_step=index)
        elif event.status == ProgressStatus.DONE:
            route_done = event.step_index is None or index == self.last_index
            if route_done:
                self._complete_before(self.last_index + 1)
            self._set_step(index, StepStatus.COMPLETED, event)
            if route_done:
                self.terminal = event
                self.progress = replace(self.progress, current_step=self.last_index)
            else:
                self.progress = replace(self.progress, current_step=index + 1)
        else:
            self._set_step(index, StepStatus.FAILED, event)
            self.progress = replace(self.progress, current_step=index)
            self.terminal = event
        return True


class ExecutionOrchestrator:
    """Drives one route to a terminal status and schedules the post-swap balance refresh."""

    def __init__(
        self,
        service: ExecutionService,
        reconciler: BalanceReconciler,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._service = service
        self._reconciler = reconciler
        self._logger = logger or logging.getLogger(__name__)
        self._refresh_tasks: Set[asyncio.Task] = set()

    async def execute(
        self,
        route: Route,
        wallet: WalletCapability,
        on_progress: ProgressCallback,
        *,
        on_balances: Optional[SnapshotCallback] = None,
    ) -> ExecutionResult:
        """Execute ``route`` and return once a terminal status is known.

        Raises:
            ExecutionFailed: a step failed, the service raised, or the service
                finished without completing every step. Carries the last tx
                hash seen so already-broadcast work stays traceable.
        """
        tracker = ExecutionTracker(route, logger=self._logger)

        def on_update(event: ProgressEvent) -> None:
            if not tracker.apply(event):
                return
            on_progress(tracker.progress)
            if tracker.terminal is event and event.status == ProgressStatus.DONE:
                self._schedule_refresh(wallet, route, on_balances)

        try:
            await self._service.execute_route(route, wallet, on_update)
        except Exception as exc:
            if tracker.terminal is not None and tracker.terminal.status == ProgressStatus.DONE:
                self._logger.warning("Execution service raised after completion: %s", exc)
            else:
                reason = "execution timed out" if isinstance(exc, asyncio.TimeoutError) else str(exc) or type(exc).__name__
                raise ExecutionFailed(
                    tracker.progress.current_step,
                    reason,
                    tx_hash=tracker.progress.last_tx_hash,
                ) from exc

        if tracker.terminal is None:
            if not tracker.progress.all_completed:
                raise ExecutionFailed(
                    tracker.progress.current_step,
                    "execution ended without a terminal status",
                    tx_hash=tracker.progress.last_tx_hash,
                )
            tracker.terminal = ProgressEvent(status=ProgressStatus.DONE, tx_hash=tracker.progress.last_tx_hash)
            self._schedule_refresh(wallet, route, on_balances)

        terminal = tracker.terminal
        if terminal.status == ProgressStatus.FAILED:
            raise ExecutionFailed(
                tracker.progress.current_step,
                terminal.message or "step failed",
                tx_hash=terminal.tx_hash or tracker.progress.last_tx_hash,
            )

        tx_hash = terminal.tx_hash or tracker.progress.last_tx_hash
        self._logger.info("Route %s completed (tx %s)", route.id, tx_hash)
        return ExecutionResult(status=ExecutionStatus.DONE, progress=tracker.progress, tx_hash=tx_hash)

    def _schedule_refresh(
        self,
        wallet: WalletCapability,
        route: Route,
        on_balances: Optional[SnapshotCallback],
    ) -> None:
        task = asyncio.create_task(self._refresh(wallet.address(), route, on_balances))
        self._refresh_tasks.add(task)
        task.add_done_callback(self._refresh_tasks.discard)

    async def _refresh(self, address: str, route: Route, on_balances: Optional[SnapshotCallback]) -> None:
        snapshot = await self._reconciler.snapshot(address, [route.from_token, route.to_token])
        if on_balances is None:
            return
        try:
            on_balances(snapshot)
        except Exception:
            self._logger.exception("Balance refresh callback failed for route %s", route.id)

    async def drain(self) -> None:
        """Wait for outstanding balance refreshes (shutdown and tests)."""
        if self._refresh_tasks:
            await asyncio.gather(*list(self._refresh_tasks), return_exceptions=True)
