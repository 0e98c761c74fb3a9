"""
Swap Error Taxonomy

Every failure of an external call is normalized into one of these types at the
adapter boundary. The session manager only ever sees these, never a raw
provider exception.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """Categories of errors surfaced to the session."""

    INPUT = "input"                  # Rejected before any external call
    ROUTE = "route"                  # Routing service returned no usable route
    APPROVAL = "approval"            # Wallet rejection or approval revert
    EXECUTION = "execution"          # Step-level failure, possibly partial
    TRANSIENT = "transient"          # Network/service outage, retry manually
    STATE = "state"                  # Illegal state machine usage


@dataclass
class ErrorContext:
    """Additional context about an error."""

    category: ErrorCategory
    recoverable: bool = True
    chain_id: Optional[int] = None
    tx_hash: Optional[str] = None
    step_index: Optional[int] = None
    provider: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class SwapError(Exception):
    """Base class for all engine errors."""

    category: ErrorCategory = ErrorCategory.STATE

    def __init__(self, message: str, context: Optional[ErrorContext] = None):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext(category=self.category)


# Input errors: fail fast, no external call
class InputError(SwapError):
    """Invalid user input."""

    category = ErrorCategory.INPUT


class InvalidAmountError(InputError):
    """Amount is non-numeric, not positive, or rounds down to zero units."""

    def __init__(self, amount: Any, reason: str = "amount must be a positive number"):
        super().__init__(
            f"Invalid amount {amount!r}: {reason}",
            context=ErrorContext(category=ErrorCategory.INPUT, details={"amount": str(amount)}),
        )
        self.amount = amount


class InvalidTokenError(InputError):
    """No token record exists for the chain/address pair."""

    def __init__(self, chain_id: int, address: str):
        super().__init__(
            f"Unknown token {address} on chain {chain_id}",
            context=ErrorContext(
                category=ErrorCategory.INPUT,
                chain_id=chain_id,
                details={"address": address},
            ),
        )
        self.chain_id = chain_id
        self.address = address


class InvalidSlippageError(InputError):
    """Slippage must be a fraction strictly between 0 and 1."""

    def __init__(self, slippage: Any):
        super().__init__(
            f"Invalid slippage {slippage!r}: must be between 0 and 1",
            context=ErrorContext(category=ErrorCategory.INPUT, details={"slippage": str(slippage)}),
        )
        self.slippage = slippage


class TransientServiceError(SwapError):
    """Outage of the routing or balance service. Never retried automatically."""

    category = ErrorCategory.TRANSIENT

    def __init__(self, message: str, provider: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(
            message,
            context=ErrorContext(
                category=ErrorCategory.TRANSIENT,
                provider=provider,
                details={"status_code": status_code} if status_code is not None else {},
            ),
        )
        self.provider = provider
        self.status_code = status_code


class ApprovalFailed(SwapError):
    """Allowance request rejected by the wallet or reverted on-chain."""

    category = ErrorCategory.APPROVAL

    def __init__(self, reason: str, tx_hash: Optional[str] = None, chain_id: Optional[int] = None):
        super().__init__(
            f"Approval failed: {reason}",
            context=ErrorContext(category=ErrorCategory.APPROVAL, tx_hash=tx_hash, chain_id=chain_id),
        )
        self.reason = reason
        self.tx_hash = tx_hash


class ExecutionFailed(SwapError):
    """A route step failed. Earlier steps may already be on-chain."""

    category = ErrorCategory.EXECUTION

    def __init__(self, step_index: int, reason: str, tx_hash: Optional[str] = None):
        super().__init__(
            f"Step {step_index + 1} failed: {reason}",
            context=ErrorContext(
                category=ErrorCategory.EXECUTION,
                tx_hash=tx_hash,
                step_index=step_index,
            ),
        )
        self.step_index = step_index
        self.reason = reason
        self.tx_hash = tx_hash


class InvalidTransitionError(SwapError):
    """Requested transition is not allowed from the session's current state."""

    category = ErrorCategory.STATE

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Cannot move session from {current} to {target}",
            context=ErrorContext(category=ErrorCategory.STATE, recoverable=False),
        )
        self.current = current
        self.target = target


# Wallet adapter errors; the allowance gate and orchestrator translate these
class WalletError(Exception):
    """Wallet rejected a request or the signer endpoint failed."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.tx_hash = tx_hash


class UnsupportedChainError(WalletError):
    """Routing chain id has no wallet-provider counterpart."""

    def __init__(self, chain_id: int):
        super().__init__(f"Unsupported chain: {chain_id}")
        self.chain_id = chain_id


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SwapError",
    "InputError",
    "InvalidAmountError",
    "InvalidTokenError",
    "InvalidSlippageError",
    "TransientServiceError",
    "ApprovalFailed",
    "ExecutionFailed",
    "InvalidTransitionError",
    "WalletError",
    "UnsupportedChainError",
]
