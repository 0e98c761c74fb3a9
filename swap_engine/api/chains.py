from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..core.swap.errors import SwapError
from ..engine import SwapEngine, get_engine
from ..types.responses import ChainResponse, TokenResponse
from .errors import to_http_exception

router = APIRouter(prefix="/chains")


@router.get("")
async def list_chains(engine: SwapEngine = Depends(get_engine)) -> List[ChainResponse]:
    try:
        chains = await engine.directory.list_chains()
    except SwapError as exc:
        raise to_http_exception(exc)
    return [ChainResponse.from_chain(chain) for chain in chains]


@router.get("/{chain_id}/tokens")
async def list_tokens(chain_id: int, engine: SwapEngine = Depends(get_engine)) -> List[TokenResponse]:
    try:
        tokens = await engine.directory.list_tokens(chain_id)
    except SwapError as exc:
        raise to_http_exception(exc)
    return [TokenResponse.from_token(token) for token in tokens]


@router.get("/{chain_id}/tokens/{address}")
async def get_token(chain_id: int, address: str, engine: SwapEngine = Depends(get_engine)) -> TokenResponse:
    try:
        token = await engine.directory.get_token(chain_id, address)
    except SwapError as exc:
        raise to_http_exception(exc)
    if token is None:
        raise HTTPException(status_code=404, detail=f"Unknown token {address} on chain {chain_id}")
    return TokenResponse.from_token(token)
