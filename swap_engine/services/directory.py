"""Chain/token directory backed by LI.FI with a TTL cache."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import httpx

from ..core.swap.constants import is_native_address, normalize_address
from ..core.swap.errors import TransientServiceError
from ..core.swap.models import Chain, Token
from ..providers.lifi import LiFiProvider


class ChainTokenDirectory:
    """Lists chains and tokens known to the routing service.

    Usage:
        directory = ChainTokenDirectory(provider)
        chains = await directory.list_chains()
        token = await directory.get_token(1, "0x0000000000000000000000000000000000000000")
    """

    # Cache TTL in seconds (1 hour default - token lists don't change often)
    DEFAULT_CACHE_TTL = 3600

    def __init__(
        self,
        provider: LiFiProvider,
        *,
        cache_ttl_seconds: int = DEFAULT_CACHE_TTL,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._provider = provider
        self._cache_ttl = cache_ttl_seconds
        self._logger = logger or logging.getLogger(__name__)

        self._chains: Optional[Tuple[List[Chain], datetime]] = None
        self._tokens: Dict[int, Tuple[List[Token], datetime]] = {}

    def _fresh(self, stamp: datetime) -> bool:
        return (datetime.now() - stamp).total_seconds() <= self._cache_ttl

    async def list_chains(self) -> List[Chain]:
        if self._chains and self._fresh(self._chains[1]):
            return self._chains[0]
        try:
            raw = await self._provider.get_chains()
        except httpx.HTTPError as exc:
            raise TransientServiceError(f"Failed to fetch chains: {exc}", provider=self._provider.name) from exc

        chains = []
        for entry in raw:
            try:
                chains.append(Chain.from_lifi(entry))
            except (KeyError, TypeError, ValueError):
                self._logger.debug("Skipping malformed chain entry: %s", entry)
        self._chains = (chains, datetime.now())
        self._logger.info("Chain directory refreshed: %d chains", len(chains))
        return chains

    async def list_tokens(self, chain_id: int) -> List[Token]:
        cached = self._tokens.get(chain_id)
        if cached and self._fresh(cached[1]):
            return cached[0]
        try:
            raw = await self._provider.get_tokens([chain_id])
        except httpx.HTTPError as exc:
            raise TransientServiceError(
                f"Failed to fetch tokens for chain {chain_id}: {exc}",
                provider=self._provider.name,
            ) from exc

        tokens = []
        for entry in raw.get(str(chain_id)) or []:
            try:
                tokens.append(Token.from_lifi(entry))
            except (KeyError, TypeError, ValueError):
                self._logger.debug("Skipping malformed token entry on chain %s: %s", chain_id, entry)
        self._tokens[chain_id] = (tokens, datetime.now())
        return tokens

    async def get_token(self, chain_id: int, address: str) -> Optional[Token]:
        """Return the token record or ``None`` when the routing service does not know it."""
        target = normalize_address(address)
        tokens = await self.list_tokens(chain_id)
        for token in tokens:
            if token.address == target:
                return token
        if is_native_address(target):
            for token in tokens:
                if token.is_native:
                    return token

        try:
            raw = await self._provider.get_token(chain_id, target)
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code in (400, 404):
                return None
            raise TransientServiceError(
                f"Failed to fetch token {target} on chain {chain_id}: {exc}",
                provider=self._provider.name,
                status_code=exc.response.status_code,
            ) from exc
        except httpx.RequestError as exc:
            raise TransientServiceError(
                f"Failed to fetch token {target} on chain {chain_id}: {exc}",
                provider=self._provider.name,
            ) from exc

        try:
            return Token.from_lifi(raw)
        except (KeyError, TypeError, ValueError):
            return None
