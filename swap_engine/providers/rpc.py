"""Minimal async JSON-RPC client for EVM chains."""

from __future__ import annotations

import itertools
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import httpx

from .base import Provider


logger = logging.getLogger(__name__)


class RpcError(Exception):
    """JSON-RPC error object returned by the node."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


RpcCall = Tuple[str, List[Any]]


class JsonRpcClient(Provider):
    """Posts JSON-RPC requests to the endpoint configured for each chain."""

    name = "rpc"

    def __init__(
        self,
        rpc_urls: Mapping[int, str],
        *,
        timeout_s: int = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._rpc_urls = dict(rpc_urls)
        self.timeout_s = timeout_s
        self._transport = transport
        self._ids = itertools.count(1)

    @property
    def chain_ids(self) -> List[int]:
        return sorted(self._rpc_urls)

    def _url(self, chain_id: int) -> str:
        rpc_url = self._rpc_urls.get(chain_id)
        if not rpc_url:
            raise ValueError(f"No RPC URL configured for chain {chain_id}")
        return rpc_url

    async def _post(self, chain_id: int, payload: Any) -> Any:
        async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
            response = await client.post(self._url(chain_id), json=payload)
            response.raise_for_status()
            return response.json()

    def _payload(self, method: str, params: List[Any]) -> Dict[str, Any]:
        return {"jsonrpc": "2.0", "method": method, "params": params, "id": next(self._ids)}

    async def call(self, chain_id: int, method: str, params: List[Any]) -> Any:
        """Make a single RPC call to the chain."""
        result = await self._post(chain_id, self._payload(method, params))
        if "error" in result:
            error = result["error"] or {}
            raise RpcError(str(error.get("message") or error), code=error.get("code"))
        return result.get("result")

    async def batch(self, chain_id: int, calls: Sequence[RpcCall]) -> List[Union[Any, RpcError]]:
        """Send calls as one JSON-RPC batch.

        Results are returned in call order; a per-call error is returned in
        place as an ``RpcError`` rather than raised. Transport failures raise.
        """
        payloads = [self._payload(method, params) for method, params in calls]
        if not payloads:
            return []
        response = await self._post(chain_id, payloads)
        if not isinstance(response, list):
            raise RpcError(f"Batch request to chain {chain_id} returned a non-list response")

        by_id = {item.get("id"): item for item in response if isinstance(item, dict)}
        results: List[Union[Any, RpcError]] = []
        for payload in payloads:
            item = by_id.get(payload["id"])
            if item is None:
                results.append(RpcError(f"Missing response for {payload['method']}"))
            elif "error" in item:
                error = item["error"] or {}
                results.append(RpcError(str(error.get("message") or error), code=error.get("code")))
            else:
                results.append(item.get("result"))
        return results

    async def ready(self) -> bool:
        return bool(self._rpc_urls)

    async def health_check(self) -> Dict[str, Any]:
        chains: Dict[str, Any] = {}
        for chain_id in self.chain_ids:
            try:
                block = await self.call(chain_id, "eth_blockNumber", [])
                chains[str(chain_id)] = {"status": "healthy", "block": int(block, 16)}
            except (httpx.HTTPError, RpcError, ValueError) as exc:
                logger.warning("RPC health check failed for chain %s: %s", chain_id, exc)
                chains[str(chain_id)] = {"status": "unhealthy", "error": str(exc)}
        healthy = any(entry["status"] == "healthy" for entry in chains.values())
        return {"status": "healthy" if healthy else "unhealthy", "chains": chains}
