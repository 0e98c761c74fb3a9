"""Typed models used by the swap subsystem."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from .constants import explorer_tx_url, is_native_address, normalize_address


def token_key(chain_id: int, address: str) -> str:
    """Key used for balances: the same sentinel address exists on every chain."""
    return f"{chain_id}:{normalize_address(address)}"


def _to_int(value: Any) -> int:
    if value is None or value == "":
        return 0
    return int(str(value))


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


@dataclass(frozen=True)
class Chain:
    id: int
    name: str
    logo_uri: Optional[str] = None

    @classmethod
    def from_lifi(cls, data: Dict[str, Any]) -> "Chain":
        return cls(id=int(data["id"]), name=str(data.get("name") or data["id"]), logo_uri=data.get("logoURI"))


@dataclass(frozen=True)
class Token:
    address: str
    decimals: int
    symbol: str
    chain_id: int
    name: str = ""
    logo_uri: Optional[str] = None
    price_usd: Optional[Decimal] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", normalize_address(self.address))

    @property
    def is_native(self) -> bool:
        return is_native_address(self.address)

    @property
    def key(self) -> str:
        return token_key(self.chain_id, self.address)

    @classmethod
    def from_lifi(cls, data: Dict[str, Any]) -> "Token":
        return cls(
            address=str(data["address"]),
            decimals=int(data["decimals"]),
            symbol=str(data.get("symbol") or ""),
            chain_id=int(data["chainId"]),
            name=str(data.get("name") or ""),
            logo_uri=data.get("logoURI"),
            price_usd=_to_decimal(data.get("priceUSD")),
        )


@dataclass(frozen=True)
class SwapRequest:
    """Canonical swap intent; amounts are integer strings in the token's smallest unit."""

    from_chain_id: int
    to_chain_id: int
    from_token_address: str
    to_token_address: str
    amount_raw: str
    from_address: str
    slippage_fraction: float

    def __post_init__(self) -> None:
        for name in ("from_token_address", "to_token_address", "from_address"):
            object.__setattr__(self, name, normalize_address(getattr(self, name)))
        if not str(self.amount_raw).isdigit() or int(self.amount_raw) <= 0:
            raise ValueError(f"amount_raw must be a positive integer string, got {self.amount_raw!r}")
        if not 0 < self.slippage_fraction < 1:
            raise ValueError(f"slippage_fraction must be in (0, 1), got {self.slippage_fraction!r}")


@dataclass(frozen=True)
class GasCost:
    amount: int
    amount_usd: Optional[Decimal]
    token_symbol: str = ""


@dataclass(frozen=True)
class Step:
    id: str
    type: str
    tool: str
    execution_duration: float
    approval_address: Optional[str]
    from_amount: int
    to_amount: int
    to_amount_min: int
    from_chain_id: int
    to_chain_id: int
    from_token: Token
    to_token: Token
    gas_costs: List[GasCost] = field(default_factory=list)
    tool_name: str = ""
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def gas_cost_usd(self) -> Optional[Decimal]:
        values = [cost.amount_usd for cost in self.gas_costs if cost.amount_usd is not None]
        return sum(values, Decimal("0")) if values else None

    @property
    def estimated_minutes(self) -> int:
        return math.ceil(self.execution_duration / 60)

    @classmethod
    def from_lifi(cls, data: Dict[str, Any]) -> "Step":
        action = data.get("action") or {}
        estimate = data.get("estimate") or {}
        approval = estimate.get("approvalAddress")
        return cls(
            id=str(data.get("id") or ""),
            type=str(data.get("type") or ""),
            tool=str(data["tool"]),
            tool_name=str((data.get("toolDetails") or {}).get("name") or data["tool"]),
            execution_duration=float(estimate.get("executionDuration") or 0),
            approval_address=normalize_address(approval) if approval else None,
            from_amount=_to_int(estimate.get("fromAmount") or action.get("fromAmount")),
            to_amount=_to_int(estimate.get("toAmount")),
            to_amount_min=_to_int(estimate.get("toAmountMin")),
            from_chain_id=int(action["fromChainId"]),
            to_chain_id=int(action["toChainId"]),
            from_token=Token.from_lifi(action["fromToken"]),
            to_token=Token.from_lifi(action["toToken"]),
            gas_costs=[
                GasCost(
                    amount=_to_int(cost.get("amount")),
                    amount_usd=_to_decimal(cost.get("amountUSD")),
                    token_symbol=str((cost.get("token") or {}).get("symbol") or ""),
                )
                for cost in estimate.get("gasCosts") or []
            ],
            raw=data,
        )


@dataclass(frozen=True)
class Route:
    """An ordered, non-empty plan of steps as ranked by the routing service."""

    id: str
    from_chain_id: int
    to_chain_id: int
    from_token: Token
    to_token: Token
    from_amount: int
    to_amount: int
    to_amount_min: int
    steps: List[Step]
    gas_cost_usd: Optional[Decimal] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.steps:
            raise ValueError("route has no steps")
        if self.to_amount_min > self.to_amount:
            raise ValueError(
                f"route {self.id}: toAmountMin {self.to_amount_min} exceeds toAmount {self.to_amount}"
            )

    @property
    def spent_token(self) -> Token:
        return self.from_token

    @property
    def total_duration_seconds(self) -> float:
        return sum(step.execution_duration for step in self.steps)

    @property
    def estimated_minutes(self) -> int:
        return math.ceil(self.total_duration_seconds / 60)

    def summary(self) -> Dict[str, Any]:
        """Quote panel data: totals plus a per-step breakdown."""
        return {
            "route_id": self.id,
            "from_amount": str(self.from_amount),
            "to_amount": str(self.to_amount),
            "to_amount_min": str(self.to_amount_min),
            "gas_cost_usd": str(self.gas_cost_usd) if self.gas_cost_usd is not None else None,
            "estimated_minutes": self.estimated_minutes,
            "steps": [
                {
                    "index": index,
                    "tool": step.tool,
                    "tool_name": step.tool_name,
                    "gas_cost_usd": str(step.gas_cost_usd) if step.gas_cost_usd is not None else None,
                    "estimated_minutes": step.estimated_minutes,
                }
                for index, step in enumerate(self.steps)
            ],
        }

    @classmethod
    def from_lifi(cls, data: Dict[str, Any]) -> "Route":
        return cls(
            id=str(data.get("id") or ""),
            from_chain_id=int(data["fromChainId"]),
            to_chain_id=int(data["toChainId"]),
            from_token=Token.from_lifi(data["fromToken"]),
            to_token=Token.from_lifi(data["toToken"]),
            from_amount=_to_int(data.get("fromAmount")),
            to_amount=_to_int(data.get("toAmount")),
            to_amount_min=_to_int(data.get("toAmountMin")),
            gas_cost_usd=_to_decimal(data.get("gasCostUSD")),
            steps=[Step.from_lifi(step) for step in data.get("steps") or []],
            raw=data,
        )


class RouteFailureKind(str, Enum):
    FILTERED_OUT = "filtered_out"
    AMOUNT_TOO_HIGH = "amount_too_high"
    INSUFFICIENT_LIQUIDITY = "insufficient_liquidity"
    PRICE_IMPACT_TOO_HIGH = "price_impact_too_high"
    NO_POSSIBLE_ROUTE = "no_possible_route"
    UNKNOWN = "unknown"


_FAILURE_MESSAGES = {
    RouteFailureKind.AMOUNT_TOO_HIGH: "The amount you entered is too high for this swap. Try a smaller amount.",
    RouteFailureKind.INSUFFICIENT_LIQUIDITY: (
        "There is not enough liquidity for this swap. Try a different token pair or a smaller amount."
    ),
    RouteFailureKind.PRICE_IMPACT_TOO_HIGH: (
        "The price impact for this swap is too high. Try a smaller amount or a different token pair."
    ),
    RouteFailureKind.NO_POSSIBLE_ROUTE: "No possible route found for this swap.",
}


@dataclass(frozen=True)
class RouteFailure:
    """Classified reason the routing service produced no usable route."""

    kind: RouteFailureKind
    reason: Optional[str] = None
    raw_message: Optional[str] = None

    @classmethod
    def filtered_out(cls, reason: str) -> "RouteFailure":
        return cls(RouteFailureKind.FILTERED_OUT, reason=reason)

    @classmethod
    def amount_too_high(cls) -> "RouteFailure":
        return cls(RouteFailureKind.AMOUNT_TOO_HIGH)

    @classmethod
    def insufficient_liquidity(cls) -> "RouteFailure":
        return cls(RouteFailureKind.INSUFFICIENT_LIQUIDITY)

    @classmethod
    def price_impact_too_high(cls) -> "RouteFailure":
        return cls(RouteFailureKind.PRICE_IMPACT_TOO_HIGH)

    @classmethod
    def no_possible_route(cls) -> "RouteFailure":
        return cls(RouteFailureKind.NO_POSSIBLE_ROUTE)

    @classmethod
    def unknown(cls, raw_message: str) -> "RouteFailure":
        return cls(RouteFailureKind.UNKNOWN, raw_message=raw_message)

    @property
    def user_message(self) -> str:
        if self.kind == RouteFailureKind.FILTERED_OUT:
            return f"Route filtered out: {self.reason}"
        if self.kind == RouteFailureKind.UNKNOWN:
            return self.raw_message or "Unknown error occurred during swap"
        return _FAILURE_MESSAGES[self.kind]


class ProgressStatus(str, Enum):
    """Status values delivered by the execution service's update channel."""
    PENDING = "PENDING"
    DONE = "DONE"
    FAILED = "FAILED"


@dataclass(frozen=True)
class ProgressEvent:
    status: ProgressStatus
    tx_hash: Optional[str] = None
    chain_id: Optional[int] = None
    step_index: Optional[int] = None
    message: Optional[str] = None


class StepStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class StepProgress:
    index: int
    tool: str
    status: StepStatus = StepStatus.PENDING
    tx_hash: Optional[str] = None
    chain_id: Optional[int] = None

    @property
    def explorer_url(self) -> Optional[str]:
        if self.tx_hash and self.chain_id is not None:
            return explorer_tx_url(self.chain_id, self.tx_hash)
        return None


@dataclass(frozen=True)
class ExecutionProgress:
    """Immutable per-step progress; updates produce a new instance."""

    steps: List[StepProgress] = field(default_factory=list)
    current_step: int = 0

    @classmethod
    def for_route(cls, route: Route) -> "ExecutionProgress":
        return cls(steps=[StepProgress(index=i, tool=step.tool) for i, step in enumerate(route.steps)])

    @property
    def all_completed(self) -> bool:
        return bool(self.steps) and all(step.status == StepStatus.COMPLETED for step in self.steps)

    @property
    def last_tx_hash(self) -> Optional[str]:
        for step in reversed(self.steps):
            if step.tx_hash:
                return step.tx_hash
        return None


class ExecutionStatus(str, Enum):
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ExecutionResult:
    status: ExecutionStatus
    progress: ExecutionProgress
    tx_hash: Optional[str] = None


@dataclass(frozen=True)
class BalanceSnapshot:
    """Raw balances keyed by ``token_key``; a missing key means the fetch failed."""

    address: str
    balances: Dict[str, str] = field(default_factory=dict)
    taken_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __contains__(self, key: object) -> bool:
        return key in self.balances

    def __len__(self) -> int:
        return len(self.balances)

    def get(self, token: Token) -> Optional[str]:
        return self.balances.get(token.key)

    def missing(self, tokens: Iterable[Token]) -> List[Token]:
        return [token for token in tokens if token.key not in self.balances]

    def diff(self, later: "BalanceSnapshot") -> Dict[str, int]:
        """Raw deltas (later - self) for tokens fetched successfully in both snapshots."""
        return {
            key: int(later.balances[key]) - int(value)
            for key, value in self.balances.items()
            if key in later.balances
        }
