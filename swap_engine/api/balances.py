from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..core.swap.errors import SwapError
from ..core.swap.models import Token
from ..engine import SwapEngine, get_engine
from ..types.requests import BalancesRequest, TokenRef
from ..types.responses import BalancesResponse
from .errors import to_http_exception

router = APIRouter()


async def resolve_tokens(engine: SwapEngine, refs: List[TokenRef]) -> List[Token]:
    tokens: List[Token] = []
    for ref in refs:
        try:
            token = await engine.directory.get_token(ref.chain_id, ref.address)
        except SwapError as exc:
            raise to_http_exception(exc)
        if token is None:
            raise HTTPException(status_code=404, detail=f"Unknown token {ref.address} on chain {ref.chain_id}")
        tokens.append(token)
    return tokens


@router.post("/balances")
async def post_balances(req: BalancesRequest, engine: SwapEngine = Depends(get_engine)) -> BalancesResponse:
    """Snapshot balances; tokens whose fetch failed are listed under ``missing``."""
    tokens = await resolve_tokens(engine, req.tokens)
    snapshot = await engine.reconciler.snapshot(req.address, tokens)
    return BalancesResponse.from_snapshot(snapshot, tokens)
