"""Async client for the LI.FI routing API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import httpx

from .base import Provider


@dataclass(frozen=True)
class RoutingConfig:
    """Routing options resolved once by the composition root and shared by reference."""

    base_url: str = "https://li.quest/v1"
    integrator: str = "pairs-dex"
    api_key: str = ""
    default_slippage: float = 0.005
    order: str = "RECOMMENDED"
    allow_switch_chain: bool = True
    timeout_s: int = 30

    @classmethod
    def from_settings(cls, settings: Any) -> "RoutingConfig":
        return cls(
            base_url=settings.lifi_base_url,
            integrator=settings.integrator,
            api_key=settings.lifi_api_key,
            default_slippage=settings.default_slippage,
            order=settings.route_order,
            allow_switch_chain=settings.allow_switch_chain,
            timeout_s=settings.request_timeout_seconds,
        )


class LiFiProvider(Provider):
    """Thin wrapper around https://li.quest/v1 endpoints.

    Errors are not translated here: ``httpx.HTTPStatusError`` and
    ``httpx.RequestError`` propagate to the adapter that made the call.
    """

    name = "lifi"

    def __init__(
        self,
        config: RoutingConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.timeout_s = config.timeout_s
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {
            "accept": "application/json",
            "content-type": "application/json",
            "x-lifi-integrator": self.config.integrator,
        }
        if self.config.api_key:
            headers["x-lifi-api-key"] = self.config.api_key
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_s,
            transport=self._transport,
        ) as client:
            response = await client.request(method, path, json=json, params=params, headers=self._headers())
            response.raise_for_status()
            return response

    async def ready(self) -> bool:
        return bool(self.base_url)

    async def health_check(self) -> Dict[str, Any]:
        try:
            chains = await self.get_chains()
        except httpx.HTTPError as exc:
            return {"status": "unhealthy", "error": str(exc)}
        return {"status": "healthy", "chains": len(chains)}

    async def get_routes(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Request ranked candidate routes.

        Response shape: ``{"routes": [...], "unavailableRoutes": {"filteredOut": [...], "failed": [...]}}``
        """

        resp = await self._request("POST", "/advanced/routes", json=payload)
        return resp.json()

    async def get_chains(self) -> List[Dict[str, Any]]:
        resp = await self._request("GET", "/chains")
        return resp.json().get("chains") or []

    async def get_tokens(self, chain_ids: Iterable[int]) -> Dict[str, List[Dict[str, Any]]]:
        chains = ",".join(str(chain_id) for chain_id in chain_ids)
        resp = await self._request("GET", "/tokens", params={"chains": chains} if chains else None)
        return resp.json().get("tokens") or {}

    async def get_token(self, chain_id: int, address: str) -> Dict[str, Any]:
        resp = await self._request("GET", "/token", params={"chain": chain_id, "token": address})
        return resp.json()

    async def get_step_transaction(self, step: Dict[str, Any]) -> Dict[str, Any]:
        """Populate a route step with its ``transactionRequest``."""

        resp = await self._request("POST", "/advanced/stepTransaction", json=step)
        return resp.json()

    async def get_status(
        self,
        tx_hash: str,
        *,
        bridge: Optional[str] = None,
        from_chain: Optional[int] = None,
        to_chain: Optional[int] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"txHash": tx_hash}
        if bridge:
            params["bridge"] = bridge
        if from_chain is not None:
            params["fromChain"] = from_chain
        if to_chain is not None:
            params["toChain"] = to_chain
        resp = await self._request("GET", "/status", params=params)
        return resp.json()
