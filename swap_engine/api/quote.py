"""Stateless quote endpoint: build the request, ask for one route, return it or the failure."""

from fastapi import APIRouter, Depends

from ..core.swap.constants import SWAP_SOURCE
from ..core.swap.errors import SwapError
from ..core.swap.models import Route
from ..core.swap.request_builder import build_swap_request
from ..engine import SwapEngine, get_engine
from ..types.requests import SwapFormRequest
from ..types.responses import FailureResponse, QuoteResponse
from .errors import to_http_exception

router = APIRouter()


@router.post("/quote")
async def post_quote(req: SwapFormRequest, engine: SwapEngine = Depends(get_engine)) -> QuoteResponse:
    try:
        request = await build_swap_request(
            engine.directory,
            amount=req.amount,
            from_chain_id=req.from_chain_id,
            to_chain_id=req.to_chain_id,
            from_token_address=req.from_token_address,
            to_token_address=req.to_token_address,
            from_address=req.from_address,
            slippage=req.slippage,
            default_slippage=engine.config.default_slippage,
        )
        outcome = await engine.quote_service.request_quote(request)
    except SwapError as exc:
        raise to_http_exception(exc)

    payload = engine.quote_service.build_payload(request)
    if isinstance(outcome, Route):
        return QuoteResponse(success=True, request=payload, route=outcome.summary(), sources=[SWAP_SOURCE])
    return QuoteResponse(
        success=False,
        request=payload,
        failure=FailureResponse.from_failure(outcome),
        sources=[SWAP_SOURCE],
    )
