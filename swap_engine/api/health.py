from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..engine import SwapEngine, get_engine
from ..providers.base import collect_health

router = APIRouter()


@router.get("/healthz")
async def health_check(engine: SwapEngine = Depends(get_engine)) -> Dict[str, Any]:
    """Health check endpoint that verifies routing and RPC provider status"""
    report = await collect_health([engine.lifi, engine.rpc])
    report["total_providers"] = len(report["providers"])
    report["signer"] = engine.wallet is not None
    return report
