"""Swap session core: request building, quoting, approval, execution and balances."""

from .allowance import AllowanceGate
from .balances import BalanceReconciler
from .errors import (
    ApprovalFailed,
    ExecutionFailed,
    InputError,
    InvalidTransitionError,
    SwapError,
    TransientServiceError,
)
from .manager import SessionRegistry, SwapSessionManager
from .models import (
    BalanceSnapshot,
    ExecutionProgress,
    Route,
    RouteFailure,
    RouteFailureKind,
    Step,
    SwapRequest,
    Token,
)
from .orchestrator import ExecutionOrchestrator, ExecutionTracker
from .quote import QuoteService, classify_unavailable_routes
from .request_builder import build_swap_request, format_token_amount, to_raw_amount
from .state import ApprovalState, SessionState, SessionView

__all__ = [
    "AllowanceGate",
    "BalanceReconciler",
    "SwapError",
    "InputError",
    "TransientServiceError",
    "ApprovalFailed",
    "ExecutionFailed",
    "InvalidTransitionError",
    "SwapSessionManager",
    "SessionRegistry",
    "Token",
    "SwapRequest",
    "Step",
    "Route",
    "RouteFailure",
    "RouteFailureKind",
    "ExecutionProgress",
    "BalanceSnapshot",
    "ExecutionOrchestrator",
    "ExecutionTracker",
    "QuoteService",
    "classify_unavailable_routes",
    "build_swap_request",
    "to_raw_amount",
    "format_token_amount",
    "SessionState",
    "ApprovalState",
    "SessionView",
]
