"""SwapSessionManager owns one request slot and is the only writer of its session."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence

from ...logging_config import bind_session_context
from ..wallet.capability import WalletCapability
from .allowance import AllowanceGate
from .balances import BalanceReconciler
from .errors import (
    ApprovalFailed,
    ErrorCategory,
    ExecutionFailed,
    InvalidTransitionError,
    TransientServiceError,
)
from .models import BalanceSnapshot, ExecutionProgress, Route, RouteFailure, SwapRequest, Token
from .orchestrator import ExecutionOrchestrator
from .quote import QuoteService
from .request_builder import TokenLookup, build_swap_request
from .state import ApprovalState, SessionError, SessionState, SessionView, SwapSession

Subscriber = Callable[[SessionView], None]


class SwapSessionManager:
    """Encapsulates quote submission, confirmation, and execution tracking for one slot.

    Every await is followed by an identity check against the slot's current
    session: a response that arrives for a superseded session is dropped.
    """

    def __init__(
        self,
        slot: str,
        *,
        quote_service: QuoteService,
        allowance_gate: AllowanceGate,
        orchestrator: ExecutionOrchestrator,
        reconciler: BalanceReconciler,
        directory: TokenLookup,
        default_slippage: float = 0.005,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.slot = slot
        self._quotes = quote_service
        self._gate = allowance_gate
        self._orchestrator = orchestrator
        self._reconciler = reconciler
        self._directory = directory
        self._default_slippage = default_slippage
        self._logger = logger or logging.getLogger(__name__)
        self._session: Optional[SwapSession] = None
        self._subscribers: List[Subscriber] = []
        self.balances_before: Optional[BalanceSnapshot] = None
        self.balances_after: Optional[BalanceSnapshot] = None

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._session.state if self._session else SessionState.IDLE

    def view(self) -> SessionView:
        if self._session is None:
            return SessionView(slot=self.slot, state=SessionState.IDLE)
        return self._session.view()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self) -> None:
        view = self.view()
        for callback in list(self._subscribers):
            callback(view)

    def _is_current(self, session: SwapSession) -> bool:
        if self._session is session:
            return True
        self._logger.info("Dropping stale response for superseded session %s", session.id)
        return False

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def submit_form(
        self,
        *,
        amount: str,
        from_chain_id: int,
        to_chain_id: int,
        from_token_address: str,
        to_token_address: str,
        from_address: str,
        slippage: Optional[float] = None,
    ) -> SessionView:
        """Build the request from raw input, then submit it.

        ``InputError`` propagates and leaves the slot untouched.
        """
        request = await build_swap_request(
            self._directory,
            amount=amount,
            from_chain_id=from_chain_id,
            to_chain_id=to_chain_id,
            from_token_address=from_token_address,
            to_token_address=to_token_address,
            from_address=from_address,
            slippage=slippage,
            default_slippage=self._default_slippage,
        )
        return await self.submit(request)

    async def submit(self, request: SwapRequest) -> SessionView:
        """Start a fresh session for ``request`` and fetch its quote."""
        previous = self._session
        if previous is not None and not previous.is_terminal and previous.state != SessionState.QUOTE_READY:
            self._logger.info("Superseding session %s in %s", previous.id, previous.state.value)

        session = SwapSession(slot=self.slot, request=request)
        session.transition(SessionState.FETCHING_QUOTE)
        self._session = session
        bind_session_context(slot=self.slot, session_id=session.id)
        self._publish()

        try:
            outcome = await self._quotes.request_quote(request)
        except TransientServiceError as exc:
            if self._is_current(session):
                self._fail(session, SessionError(category=ErrorCategory.TRANSIENT, message=exc.message))
            return self.view()
        except Exception as exc:
            self._logger.exception("Quote request crashed for session %s", session.id)
            if self._is_current(session):
                failure = RouteFailure.unknown(str(exc))
                self._fail(session, SessionError(category=ErrorCategory.ROUTE, message=failure.user_message, failure=failure))
            return self.view()

        if not self._is_current(session):
            return self.view()

        if isinstance(outcome, Route):
            session.route = outcome
            session.transition(SessionState.QUOTE_READY)
            self._publish()
        else:
            self._fail(
                session,
                SessionError(category=ErrorCategory.ROUTE, message=outcome.user_message, failure=outcome),
            )
        return self.view()

    async def confirm(self, wallet: WalletCapability) -> SessionView:
        """Approve if needed, then execute the quoted route to a terminal state."""
        session = self._session
        if session is None or session.state != SessionState.QUOTE_READY or session.route is None:
            raise InvalidTransitionError(self.state.value, SessionState.APPROVING.value)
        route = session.route

        if self._gate.requires_approval(route):
            session.transition(SessionState.APPROVING)
            session.approval_state = ApprovalState.PENDING
            self._publish()
            try:
                approval_tx = await self._gate.ensure_allowance(route, wallet)
            except ApprovalFailed as exc:
                if self._is_current(session):
                    session.approval_state = ApprovalState.REJECTED
                    session.approval_tx_hash = exc.tx_hash
                    self._fail(
                        session,
                        SessionError(category=ErrorCategory.APPROVAL, message=exc.message, tx_hash=exc.tx_hash),
                    )
                return self.view()
            if not self._is_current(session):
                return self.view()
            session.approval_state = ApprovalState.APPROVED
            session.approval_tx_hash = approval_tx
        else:
            session.approval_state = ApprovalState.NOT_REQUIRED

        session.progress = ExecutionProgress.for_route(route)
        session.transition(SessionState.SWAPPING)
        self._publish()

        try:
            result = await self._orchestrator.execute(
                route,
                wallet,
                lambda progress: self._apply_progress(session, progress),
                on_balances=lambda snapshot: self._record_balances(session, snapshot),
            )
        except ExecutionFailed as exc:
            if self._is_current(session) and not session.is_terminal:
                session.tx_hash = exc.tx_hash or session.tx_hash
                self._fail(
                    session,
                    SessionError(
                        category=ErrorCategory.EXECUTION,
                        message=exc.message,
                        tx_hash=exc.tx_hash,
                        step_index=exc.step_index,
                    ),
                )
            return self.view()

        if self._is_current(session) and not session.is_terminal:
            session.progress = result.progress
            session.tx_hash = result.tx_hash or session.tx_hash
            session.transition(SessionState.COMPLETED)
            self._publish()
        return self.view()

    def edit(self) -> SessionView:
        """A request field changed: discard the session and return to Idle.

        Tracking of an already-broadcast transaction is abandoned, not cancelled.
        """
        session = self._session
        if session is not None:
            if session.state in (SessionState.APPROVING, SessionState.SWAPPING):
                self._logger.warning("Abandoning tracking of session %s in %s", session.id, session.state.value)
            session.transition(SessionState.IDLE)
        self._session = None
        self._publish()
        return self.view()

    async def snapshot_balances(self, address: str, tokens: Sequence[Token]) -> BalanceSnapshot:
        """Pre-quote snapshot for the tokens the user selected."""
        snapshot = await self._reconciler.snapshot(address, tokens)
        self.balances_before = snapshot
        self.balances_after = None
        return snapshot

    # ------------------------------------------------------------------
    # Internal writers
    # ------------------------------------------------------------------

    def _fail(self, session: SwapSession, error: SessionError) -> None:
        session.last_error = error
        session.transition(SessionState.FAILED)
        self._logger.info("Session %s failed (%s): %s", session.id, error.category.value, error.message)
        self._publish()

    def _apply_progress(self, session: SwapSession, progress: ExecutionProgress) -> None:
        if not self._is_current(session) or session.is_terminal:
            return
        session.progress = progress
        session.tx_hash = progress.last_tx_hash or session.tx_hash
        self._publish()

    def _record_balances(self, session: SwapSession, snapshot: BalanceSnapshot) -> None:
        if self._session is session:
            self.balances_after = snapshot


class SessionRegistry:
    """One manager per request slot."""

    def __init__(self, factory: Callable[[str], SwapSessionManager]) -> None:
        self._factory = factory
        self._managers: Dict[str, SwapSessionManager] = {}

    def get(self, slot: str) -> SwapSessionManager:
        manager = self._managers.get(slot)
        if manager is None:
            manager = self._factory(slot)
            self._managers[slot] = manager
        return manager

    def __contains__(self, slot: object) -> bool:
        return slot in self._managers

    def __len__(self) -> int:
        return len(self._managers)
