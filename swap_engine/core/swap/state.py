"""Swap session state machine: states, the legal transition table, and the session record."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from .errors import ErrorCategory, InvalidTransitionError
from .models import ExecutionProgress, Route, RouteFailure, SwapRequest


class SessionState(str, Enum):
    IDLE = "idle"
    FETCHING_QUOTE = "fetching_quote"
    QUOTE_READY = "quote_ready"
    APPROVING = "approving"
    SWAPPING = "swapping"
    COMPLETED = "completed"
    FAILED = "failed"


class ApprovalState(str, Enum):
    UNKNOWN = "unknown"
    NOT_REQUIRED = "not_required"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


TERMINAL_STATES: FrozenSet[SessionState] = frozenset({SessionState.COMPLETED, SessionState.FAILED})

# Editing a request field is legal from every state and always lands in IDLE.
TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.IDLE: frozenset({SessionState.FETCHING_QUOTE}),
    SessionState.FETCHING_QUOTE: frozenset({SessionState.QUOTE_READY, SessionState.FAILED}),
    SessionState.QUOTE_READY: frozenset({SessionState.APPROVING, SessionState.SWAPPING}),
    SessionState.APPROVING: frozenset({SessionState.SWAPPING, SessionState.FAILED}),
    SessionState.SWAPPING: frozenset({SessionState.COMPLETED, SessionState.FAILED}),
    SessionState.COMPLETED: frozenset(),
    SessionState.FAILED: frozenset(),
}


def can_transition(current: SessionState, target: SessionState) -> bool:
    return target == SessionState.IDLE or target in TRANSITIONS[current]


@dataclass(frozen=True)
class SessionError:
    """What the UI shows for a failed session."""

    category: ErrorCategory
    message: str
    failure: Optional[RouteFailure] = None
    tx_hash: Optional[str] = None
    step_index: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "message": self.message,
            "failure_kind": self.failure.kind.value if self.failure else None,
            "tx_hash": self.tx_hash,
            "step_index": self.step_index,
        }


@dataclass(frozen=True)
class SessionView:
    """Read-only snapshot handed to observers."""

    slot: str
    state: SessionState
    id: Optional[str] = None
    request: Optional[SwapRequest] = None
    route: Optional[Route] = None
    approval_state: ApprovalState = ApprovalState.UNKNOWN
    progress: ExecutionProgress = field(default_factory=ExecutionProgress)
    last_error: Optional[SessionError] = None
    tx_hash: Optional[str] = None
    approval_tx_hash: Optional[str] = None
    updated_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slot": self.slot,
            "id": self.id,
            "state": self.state.value,
            "request": None if self.request is None else {
                "from_chain_id": self.request.from_chain_id,
                "to_chain_id": self.request.to_chain_id,
                "from_token_address": self.request.from_token_address,
                "to_token_address": self.request.to_token_address,
                "amount_raw": self.request.amount_raw,
                "from_address": self.request.from_address,
                "slippage_fraction": self.request.slippage_fraction,
            },
            "route": self.route.summary() if self.route else None,
            "approval_state": self.approval_state.value,
            "progress": {
                "current_step": self.progress.current_step,
                "steps": [
                    {
                        "index": step.index,
                        "tool": step.tool,
                        "status": step.status.value,
                        "tx_hash": step.tx_hash,
                        "chain_id": step.chain_id,
                        "explorer_url": step.explorer_url,
                    }
                    for step in self.progress.steps
                ],
            },
            "last_error": self.last_error.to_dict() if self.last_error else None,
            "tx_hash": self.tx_hash,
            "approval_tx_hash": self.approval_tx_hash,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class SwapSession:
    """Mutable session record. Only ``SwapSessionManager`` writes to it."""

    slot: str
    request: SwapRequest
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: SessionState = SessionState.IDLE
    route: Optional[Route] = None
    approval_state: ApprovalState = ApprovalState.UNKNOWN
    progress: ExecutionProgress = field(default_factory=ExecutionProgress)
    last_error: Optional[SessionError] = None
    tx_hash: Optional[str] = None
    approval_tx_hash: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def transition(self, target: SessionState) -> None:
        if not can_transition(self.state, target):
            raise InvalidTransitionError(self.state.value, target.value)
        self.state = target
        if target == SessionState.IDLE:
            self.route = None
            self.last_error = None
        self.updated_at = datetime.now(timezone.utc)

    def view(self) -> SessionView:
        return SessionView(
            slot=self.slot,
            state=self.state,
            id=self.id,
            request=self.request,
            route=self.route,
            approval_state=self.approval_state,
            progress=self.progress,
            last_error=self.last_error,
            tx_hash=self.tx_hash,
            approval_tx_hash=self.approval_tx_hash,
            updated_at=self.updated_at,
        )
