from .requests import BalancesRequest, SwapFormRequest, TokenRef
from .responses import BalancesResponse, ChainResponse, FailureResponse, QuoteResponse, TokenResponse

__all__ = [
    "SwapFormRequest",
    "TokenRef",
    "BalancesRequest",
    "ChainResponse",
    "TokenResponse",
    "FailureResponse",
    "QuoteResponse",
    "BalancesResponse",
]
