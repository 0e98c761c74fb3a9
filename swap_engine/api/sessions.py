"""
Swap session endpoints.

One session manager per slot. ``confirm`` starts approval and execution in the
background and returns immediately; poll ``GET /sessions/{slot}`` for progress.
"""

import asyncio
import logging
from typing import Any, Dict, Set

from fastapi import APIRouter, Depends, HTTPException

from ..core.swap.errors import SwapError
from ..core.swap.manager import SwapSessionManager
from ..core.swap.state import SessionState
from ..engine import SwapEngine, get_engine
from ..types.requests import BalancesRequest, SwapFormRequest
from ..types.responses import BalancesResponse
from .balances import resolve_tokens
from .errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions")

_background: Set[asyncio.Task] = set()


def _session_payload(manager: SwapSessionManager) -> Dict[str, Any]:
    payload = manager.view().to_dict()
    payload["balances_before"] = dict(manager.balances_before.balances) if manager.balances_before else None
    payload["balances_after"] = dict(manager.balances_after.balances) if manager.balances_after else None
    return payload


@router.get("/{slot}")
async def get_session(slot: str, engine: SwapEngine = Depends(get_engine)) -> Dict[str, Any]:
    return _session_payload(engine.sessions.get(slot))


@router.post("/{slot}/submit")
async def submit_session(slot: str, req: SwapFormRequest, engine: SwapEngine = Depends(get_engine)) -> Dict[str, Any]:
    manager = engine.sessions.get(slot)
    try:
        await manager.submit_form(
            amount=req.amount,
            from_chain_id=req.from_chain_id,
            to_chain_id=req.to_chain_id,
            from_token_address=req.from_token_address,
            to_token_address=req.to_token_address,
            from_address=req.from_address,
            slippage=req.slippage,
        )
    except SwapError as exc:
        raise to_http_exception(exc)
    return _session_payload(manager)


@router.post("/{slot}/balances")
async def snapshot_session_balances(
    slot: str,
    req: BalancesRequest,
    engine: SwapEngine = Depends(get_engine),
) -> BalancesResponse:
    """Pre-quote snapshot for the selected tokens; kept on the slot for comparison after the swap."""
    manager = engine.sessions.get(slot)
    tokens = await resolve_tokens(engine, req.tokens)
    snapshot = await manager.snapshot_balances(req.address, tokens)
    return BalancesResponse.from_snapshot(snapshot, tokens)


async def _run_confirm(manager: SwapSessionManager, wallet) -> None:
    try:
        await manager.confirm(wallet)
    except SwapError as exc:
        logger.warning("Confirm for slot %s ended early: %s", manager.slot, exc.message)


@router.post("/{slot}/confirm", status_code=202)
async def confirm_session(slot: str, engine: SwapEngine = Depends(get_engine)) -> Dict[str, Any]:
    if engine.wallet is None:
        raise HTTPException(status_code=503, detail="No signer configured; set SIGNER_RPC_URL and SIGNER_ADDRESS")
    manager = engine.sessions.get(slot)
    if manager.state != SessionState.QUOTE_READY:
        raise HTTPException(
            status_code=409,
            detail=f"Session is {manager.state.value}; confirm requires {SessionState.QUOTE_READY.value}",
        )

    task = asyncio.create_task(_run_confirm(manager, engine.wallet))
    _background.add(task)
    task.add_done_callback(_background.discard)
    # Let confirm make its first synchronous transition before responding.
    await asyncio.sleep(0)
    return _session_payload(manager)


@router.post("/{slot}/edit")
async def edit_session(slot: str, engine: SwapEngine = Depends(get_engine)) -> Dict[str, Any]:
    manager = engine.sessions.get(slot)
    manager.edit()
    return _session_payload(manager)
