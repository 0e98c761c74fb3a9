from typing import List, Optional
from pydantic import BaseModel, Field


class SwapFormRequest(BaseModel):
    amount: str = Field(description="Display amount as typed by the user, e.g. '1.5' or '1,000'")
    from_chain_id: int = Field(description="Source chain id (routing-service id)")
    to_chain_id: int = Field(description="Destination chain id (routing-service id)")
    from_token_address: str = Field(description="Token spent; zero-address or 0xEeee... for native")
    to_token_address: str = Field(description="Token received; zero-address or 0xEeee... for native")
    from_address: str = Field(description="Wallet address executing the swap")
    slippage: Optional[float] = Field(default=None, gt=0, lt=1, description="Slippage fraction, defaults to 0.005")


class TokenRef(BaseModel):
    chain_id: int = Field(description="Chain the token lives on")
    address: str = Field(description="Token contract address or native sentinel")


class BalancesRequest(BaseModel):
    address: str = Field(description="Wallet address to read balances for")
    tokens: List[TokenRef] = Field(min_length=1, description="Tokens to include in the snapshot")
