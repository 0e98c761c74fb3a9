from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from ..core.swap.models import BalanceSnapshot, Chain, RouteFailure, Token


class ChainResponse(BaseModel):
    id: int = Field(description="Routing-service chain id")
    name: str = Field(description="Display name")
    logo_uri: Optional[str] = Field(default=None, description="Chain logo")

    @classmethod
    def from_chain(cls, chain: Chain) -> "ChainResponse":
        return cls(id=chain.id, name=chain.name, logo_uri=chain.logo_uri)


class TokenResponse(BaseModel):
    chain_id: int = Field(description="Chain the token lives on")
    address: str = Field(description="Lowercased token address")
    symbol: str = Field(description="Token symbol")
    name: str = Field(default="", description="Token name")
    decimals: int = Field(description="Token decimals")
    is_native: bool = Field(description="Whether the address is a native-asset sentinel")
    logo_uri: Optional[str] = Field(default=None, description="Token logo")
    price_usd: Optional[str] = Field(default=None, description="USD price reported by the routing service")

    @classmethod
    def from_token(cls, token: Token) -> "TokenResponse":
        return cls(
            chain_id=token.chain_id,
            address=token.address,
            symbol=token.symbol,
            name=token.name,
            decimals=token.decimals,
            is_native=token.is_native,
            logo_uri=token.logo_uri,
            price_usd=str(token.price_usd) if token.price_usd is not None else None,
        )


class FailureResponse(BaseModel):
    kind: str = Field(description="Classified failure kind")
    message: str = Field(description="User-facing message")
    reason: Optional[str] = Field(default=None, description="Filter reason for filtered_out failures")

    @classmethod
    def from_failure(cls, failure: RouteFailure) -> "FailureResponse":
        return cls(kind=failure.kind.value, message=failure.user_message, reason=failure.reason)


class QuoteResponse(BaseModel):
    success: bool = Field(description="Whether a route was found")
    request: Dict[str, Any] = Field(default_factory=dict, description="Canonical request sent to the routing service")
    route: Optional[Dict[str, Any]] = Field(default=None, description="Quote summary of the first ranked route")
    failure: Optional[FailureResponse] = Field(default=None, description="Why no route is available")
    sources: list = Field(default_factory=list, description="Data sources used")


class BalancesResponse(BaseModel):
    address: str = Field(description="Wallet address")
    balances: Dict[str, str] = Field(description="Raw balances keyed by '<chain_id>:<address>'")
    missing: List[str] = Field(default_factory=list, description="Token keys whose fetch failed")
    taken_at: datetime = Field(description="Snapshot timestamp")

    @classmethod
    def from_snapshot(cls, snapshot: BalanceSnapshot, tokens: List[Token]) -> "BalancesResponse":
        return cls(
            address=snapshot.address,
            balances=dict(snapshot.balances),
            missing=[token.key for token in snapshot.missing(tokens)],
            taken_at=snapshot.taken_at,
        )
