"""
Tests for the execution orchestrator and its progress tracker.
"""

import asyncio
import logging

import pytest
from unittest.mock import AsyncMock, MagicMock

from swap_engine.core.swap.errors import ExecutionFailed
from swap_engine.core.swap.models import BalanceSnapshot, ExecutionStatus, ProgressEvent, ProgressStatus, StepStatus
from swap_engine.core.swap.orchestrator import ExecutionOrchestrator, ExecutionTracker
from tests.fixtures import WALLET, FakeWallet, lifi_step, make_route

PENDING = ProgressStatus.PENDING
DONE = ProgressStatus.DONE
FAILED = ProgressStatus.FAILED


def _two_step_route():
    return make_route(steps=[
        lifi_step(from_chain=1, to_chain=1, tool="uniswap"),
        lifi_step(from_chain=1, to_chain=137, tool="stargate"),
    ])


class ScriptedService:
    """Execution service that replays a fixed list of events."""

    def __init__(self, events, error=None):
        self.events = events
        self.error = error
        self.calls = 0

    async def execute_route(self, route, wallet, on_update):
        self.calls += 1
        for event in self.events:
            on_update(event)
        if self.error is not None:
            raise self.error


def _reconciler():
    reconciler = MagicMock()
    reconciler.snapshot = AsyncMock(return_value=BalanceSnapshot(address=WALLET, balances={"1:0x0": "1"}))
    return reconciler


class TestExecutionTracker:

    def test_pending_then_done_single_step(self):
        tracker = ExecutionTracker(make_route())

        assert tracker.apply(ProgressEvent(PENDING, tx_hash="0xabc", chain_id=1, step_index=0))
        assert tracker.progress.steps[0].status == StepStatus.ACTIVE
        assert tracker.progress.steps[0].explorer_url == "https://etherscan.io/tx/0xabc"

        assert tracker.apply(ProgressEvent(DONE, tx_hash="0xabc", step_index=0))
        assert tracker.terminal is not None
        assert tracker.progress.all_completed

    def test_pending_completes_earlier_steps(self):
        tracker = ExecutionTracker(_two_step_route())

        tracker.apply(ProgressEvent(PENDING, tx_hash="0x1", step_index=0))
        tracker.apply(ProgressEvent(PENDING, tx_hash="0x2", chain_id=137, step_index=1))

        statuses = [step.status for step in tracker.progress.steps]
        assert statuses == [StepStatus.COMPLETED, StepStatus.ACTIVE]
        assert tracker.progress.current_step == 1

    def test_intermediate_done_is_not_terminal(self):
        tracker = ExecutionTracker(_two_step_route())

        tracker.apply(ProgressEvent(DONE, tx_hash="0x1", step_index=0))

        assert tracker.terminal is None
        assert tracker.progress.current_step == 1

    def test_events_after_terminal_are_ignored(self):
        tracker = ExecutionTracker(make_route())
        tracker.apply(ProgressEvent(DONE, tx_hash="0x123", step_index=0))
        progress = tracker.progress

        assert tracker.apply(ProgressEvent(DONE, tx_hash="0x123", step_index=0)) is False
        assert tracker.apply(ProgressEvent(FAILED, step_index=0)) is False
        assert tracker.progress is progress

    def test_unknown_step_is_ignored(self):
        tracker = ExecutionTracker(make_route())

        assert tracker.apply(ProgressEvent(PENDING, step_index=5)) is False


class TestExecutionOrchestrator:

    @pytest.mark.asyncio
    async def test_done_completes_and_refreshes_once(self):
        reconciler = _reconciler()
        service = ScriptedService([
            ProgressEvent(PENDING, tx_hash="0x123", chain_id=1, step_index=0),
            ProgressEvent(DONE, tx_hash="0x123", chain_id=1, step_index=0),
            ProgressEvent(DONE, tx_hash="0x123", chain_id=1, step_index=0),
        ])
        orchestrator = ExecutionOrchestrator(service, reconciler)
        updates = []
        snapshots = []

        result = await orchestrator.execute(
            make_route(), FakeWallet(), updates.append, on_balances=snapshots.append
        )
        await orchestrator.drain()

        assert result.status == ExecutionStatus.DONE
        assert result.tx_hash == "0x123"
        assert len(updates) == 2
        reconciler.snapshot.assert_awaited_once()
        address, tokens = reconciler.snapshot.await_args.args
        assert address == WALLET
        assert [t.chain_id for t in tokens] == [1, 137]
        assert len(snapshots) == 1

    @pytest.mark.asyncio
    async def test_failed_step_raises_with_tx_hash(self):
        reconciler = _reconciler()
        service = ScriptedService([
            ProgressEvent(PENDING, tx_hash="0x1", step_index=0),
            ProgressEvent(DONE, tx_hash="0x1", step_index=0),
            ProgressEvent(PENDING, tx_hash="0x2", step_index=1),
            ProgressEvent(FAILED, tx_hash="0x2", step_index=1, message="bridge reverted"),
        ])
        orchestrator = ExecutionOrchestrator(service, reconciler)

        with pytest.raises(ExecutionFailed) as exc_info:
            await orchestrator.execute(_two_step_route(), FakeWallet(), lambda p: None)

        assert exc_info.value.step_index == 1
        assert exc_info.value.tx_hash == "0x2"
        assert exc_info.value.reason == "bridge reverted"
        reconciler.snapshot.assert_not_called()

    @pytest.mark.asyncio
    async def test_service_exception_is_execution_failed(self):
        service = ScriptedService([ProgressEvent(PENDING, tx_hash="0x1", step_index=0)], error=RuntimeError("rpc gone"))
        orchestrator = ExecutionOrchestrator(service, _reconciler())

        with pytest.raises(ExecutionFailed) as exc_info:
            await orchestrator.execute(make_route(), FakeWallet(), lambda p: None)

        assert exc_info.value.tx_hash == "0x1"
        assert "rpc gone" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_timeout_reason(self):
        service = ScriptedService([], error=asyncio.TimeoutError())
        orchestrator = ExecutionOrchestrator(service, _reconciler())

        with pytest.raises(ExecutionFailed) as exc_info:
            await orchestrator.execute(make_route(), FakeWallet(), lambda p: None)

        assert exc_info.value.reason == "execution timed out"

    @pytest.mark.asyncio
    async def test_error_after_done_is_ignored(self):
        reconciler = _reconciler()
        service = ScriptedService([ProgressEvent(DONE, tx_hash="0x9", step_index=0)], error=RuntimeError("late"))
        orchestrator = ExecutionOrchestrator(service, reconciler)

        result = await orchestrator.execute(make_route(), FakeWallet(), lambda p: None)
        await orchestrator.drain()

        assert result.status == ExecutionStatus.DONE
        reconciler.snapshot.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_return_without_terminal_event_fails(self):
        service = ScriptedService([ProgressEvent(PENDING, tx_hash="0x1", step_index=0)])
        orchestrator = ExecutionOrchestrator(service, _reconciler())

        with pytest.raises(ExecutionFailed):
            await orchestrator.execute(make_route(), FakeWallet(), lambda p: None)

    @pytest.mark.asyncio
    async def test_failing_balance_callback_is_logged(self, caplog):
        service = ScriptedService([ProgressEvent(DONE, tx_hash="0x9", step_index=0)])
        orchestrator = ExecutionOrchestrator(service, _reconciler())

        def broken(snapshot):
            raise RuntimeError("subscriber blew up")

        result = await orchestrator.execute(make_route(), FakeWallet(), lambda p: None, on_balances=broken)
        tasks = list(orchestrator._refresh_tasks)
        with caplog.at_level(logging.ERROR, logger="swap_engine.core.swap.orchestrator"):
            await orchestrator.drain()

        assert result.status == ExecutionStatus.DONE
        assert len(tasks) == 1
        assert tasks[0].exception() is None
        assert "Balance refresh callback failed" in caplog.text
