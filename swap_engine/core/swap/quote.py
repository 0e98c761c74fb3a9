"""Quote adapter: one routing call, first ranked route or a classified failure."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

import httpx

from ...providers.lifi import LiFiProvider, RoutingConfig
from .constants import AMOUNT_TOO_HIGH, INSUFFICIENT_LIQUIDITY_TEXT, NO_POSSIBLE_ROUTE
from .errors import TransientServiceError
from .models import Route, RouteFailure, SwapRequest

QuoteOutcome = Union[Route, RouteFailure]


def _match_subpath_error(error: Dict[str, Any]) -> Optional[RouteFailure]:
    code = str(error.get("code") or "")
    message = str(error.get("message") or "")
    if code == AMOUNT_TOO_HIGH:
        return RouteFailure.amount_too_high()
    if INSUFFICIENT_LIQUIDITY_TEXT in message.lower():
        return RouteFailure.insufficient_liquidity()
    if code == NO_POSSIBLE_ROUTE:
        return RouteFailure.no_possible_route()
    return None


def classify_unavailable_routes(unavailable: Optional[Dict[str, Any]]) -> RouteFailure:
    """Explain an empty route list.

    Precedence is fixed: the first filtered-out reason, then the first
    recognised failed-subpath error (provider order), then NoPossibleRoute.
    """
    unavailable = unavailable or {}

    filtered_out = unavailable.get("filteredOut") or []
    if filtered_out:
        first = filtered_out[0] or {}
        return RouteFailure.filtered_out(str(first.get("reason") or "unspecified"))

    for failed in unavailable.get("failed") or []:
        subpaths = (failed or {}).get("subpaths") or {}
        for errors in subpaths.values():
            for error in errors or []:
                match = _match_subpath_error(error or {})
                if match is not None:
                    return match

    return RouteFailure.no_possible_route()


def classify_provider_message(message: str) -> RouteFailure:
    """Map a rejected-request message onto a failure category; raw text only survives as Unknown."""
    lowered = message.lower()
    if "price impact" in lowered or "slippage" in lowered:
        return RouteFailure.price_impact_too_high()
    if INSUFFICIENT_LIQUIDITY_TEXT in lowered:
        return RouteFailure.insufficient_liquidity()
    return RouteFailure.unknown(message)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text or response.reason_phrase


class QuoteService:
    """Queries the routing service exactly once per request; never retries, never re-ranks."""

    def __init__(
        self,
        provider: LiFiProvider,
        config: RoutingConfig,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._provider = provider
        self._config = config
        self._logger = logger or logging.getLogger(__name__)

    def build_payload(self, request: SwapRequest) -> Dict[str, Any]:
        return {
            "fromChainId": request.from_chain_id,
            "toChainId": request.to_chain_id,
            "fromTokenAddress": request.from_token_address,
            "toTokenAddress": request.to_token_address,
            "fromAmount": request.amount_raw,
            "fromAddress": request.from_address,
            "options": {
                "slippage": request.slippage_fraction,
                "order": self._config.order,
                "allowSwitchChain": self._config.allow_switch_chain,
                "integrator": self._config.integrator,
            },
        }

    async def request_quote(self, request: SwapRequest) -> QuoteOutcome:
        """Return the first ranked ``Route`` or a ``RouteFailure``.

        Raises:
            TransientServiceError: network failure, timeout, 429 or 5xx.
        """
        try:
            data = await self._provider.get_routes(self.build_payload(request))
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            message = _error_message(exc.response)
            if status == 429 or status >= 500:
                raise TransientServiceError(message, provider=self._provider.name, status_code=status) from exc
            self._logger.info("Routing request rejected (%s): %s", status, message)
            return classify_provider_message(message)
        except httpx.RequestError as exc:
            raise TransientServiceError(
                f"Routing service unreachable: {exc}",
                provider=self._provider.name,
            ) from exc
        except ValueError as exc:
            self._logger.warning("Unreadable response from routing service: %s", exc)
            return RouteFailure.unknown(f"Unreadable response from routing service: {exc}")

        if not isinstance(data, dict):
            self._logger.warning("Malformed response from routing service: %r", data)
            return RouteFailure.unknown("Malformed response from routing service")

        routes = data.get("routes") or []
        if not routes:
            try:
                failure = classify_unavailable_routes(data.get("unavailableRoutes"))
            except (AttributeError, TypeError) as exc:
                self._logger.warning("Malformed unavailableRoutes from routing service: %s", exc)
                return RouteFailure.unknown(f"Malformed response from routing service: {exc}")
            self._logger.info("No routes returned: %s", failure.kind.value)
            return failure

        try:
            if not isinstance(routes, list) or not isinstance(routes[0], dict):
                raise TypeError(f"expected a list of route objects, got {routes!r}")
            route = Route.from_lifi(routes[0])
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            self._logger.warning("Malformed route from routing service: %s", exc)
            return RouteFailure.unknown(f"Malformed route from routing service: {exc}")

        self._logger.info(
            "Quote ready: route=%s steps=%d to_amount=%s",
            route.id,
            len(route.steps),
            route.to_amount,
        )
        return route
