"""
Composition root.

Builds every adapter once from ``Settings`` and hands them the same
``RoutingConfig`` instance. ``get_engine()`` is cached, so repeated calls
return the same engine instead of re-configuring anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from .config import Settings, settings as default_settings
from .core.execution.lifi_executor import LiFiExecutionService
from .core.swap.allowance import AllowanceGate
from .core.swap.balances import BalanceReconciler
from .core.swap.manager import SessionRegistry, SwapSessionManager
from .core.swap.orchestrator import ExecutionOrchestrator
from .core.swap.quote import QuoteService
from .core.wallet.capability import ChainIdMap, WalletCapability
from .core.wallet.jsonrpc import JsonRpcWallet
from .providers.lifi import LiFiProvider, RoutingConfig
from .providers.rpc import JsonRpcClient
from .services.balances import RpcBalanceService
from .services.directory import ChainTokenDirectory

logger = logging.getLogger(__name__)


@dataclass
class SwapEngine:
    config: RoutingConfig
    chain_map: ChainIdMap
    lifi: LiFiProvider
    rpc: JsonRpcClient
    directory: ChainTokenDirectory
    balance_service: RpcBalanceService
    quote_service: QuoteService
    allowance_gate: AllowanceGate
    reconciler: BalanceReconciler
    orchestrator: ExecutionOrchestrator
    sessions: SessionRegistry
    wallet: Optional[WalletCapability] = None

    def new_manager(self, slot: str) -> SwapSessionManager:
        return SwapSessionManager(
            slot,
            quote_service=self.quote_service,
            allowance_gate=self.allowance_gate,
            orchestrator=self.orchestrator,
            reconciler=self.reconciler,
            directory=self.directory,
            default_slippage=self.config.default_slippage,
        )


def build_engine(app_settings: Settings) -> SwapEngine:
    config = RoutingConfig.from_settings(app_settings)
    chain_map = ChainIdMap(app_settings.wallet_chain_ids)
    # Every chain we can read balances on must also be reachable by the wallet.
    chain_map.require(app_settings.rpc_urls.keys())

    lifi = LiFiProvider(config)
    rpc = JsonRpcClient(app_settings.rpc_urls, timeout_s=config.timeout_s)
    directory = ChainTokenDirectory(lifi, cache_ttl_seconds=app_settings.token_cache_ttl_seconds)
    balance_service = RpcBalanceService(rpc)
    reconciler = BalanceReconciler(balance_service)
    execution_service = LiFiExecutionService(
        lifi,
        poll_interval_s=app_settings.status_poll_interval_seconds,
        timeout_s=app_settings.execution_timeout_seconds,
    )

    wallet: Optional[WalletCapability] = None
    if app_settings.has_signer:
        wallet = JsonRpcWallet(
            signer_url=app_settings.signer_rpc_url,
            address=app_settings.signer_address,
            chain_map=chain_map,
            chain_id=app_settings.signer_chain_id,
            receipt_timeout_s=app_settings.receipt_timeout_seconds,
        )

    engine = SwapEngine(
        config=config,
        chain_map=chain_map,
        lifi=lifi,
        rpc=rpc,
        directory=directory,
        balance_service=balance_service,
        quote_service=QuoteService(lifi, config),
        allowance_gate=AllowanceGate(balance_service),
        reconciler=reconciler,
        orchestrator=ExecutionOrchestrator(execution_service, reconciler),
        sessions=SessionRegistry(lambda slot: engine.new_manager(slot)),
        wallet=wallet,
    )
    logger.info(
        "Swap engine configured: integrator=%s order=%s chains=%d signer=%s",
        config.integrator,
        config.order,
        len(chain_map),
        "yes" if wallet else "no",
    )
    return engine


@lru_cache(maxsize=1)
def get_engine() -> SwapEngine:
    """Get the process-wide engine built from the global settings."""
    return build_engine(default_settings)
