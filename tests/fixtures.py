"""Shared builders for LI.FI payloads, tokens and fake adapters used across the test suite."""

from typing import Any, Dict, List, Optional

from swap_engine.core.swap.models import Route, SwapRequest, Token

NATIVE = "0x0000000000000000000000000000000000000000"
EEEE = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
USDC_ETH = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
USDC_POLYGON = "0x3c499c542cef5e3811e1192ce70d8cc03d5c3359"
WALLET = "0x50ac5cfcc81bb0872e85255d7079f8a529345d16"
SPENDER = "0x1231deb6f5749ef6ce6943a275a1d3e7486f4eae"


def lifi_token(chain_id: int, address: str = NATIVE, symbol: str = "ETH", decimals: int = 18) -> Dict[str, Any]:
    return {
        "address": address,
        "chainId": chain_id,
        "symbol": symbol,
        "decimals": decimals,
        "name": symbol,
        "priceUSD": "2000.00",
    }


def lifi_step(
    *,
    from_chain: int = 1,
    to_chain: int = 137,
    from_token: Optional[Dict[str, Any]] = None,
    to_token: Optional[Dict[str, Any]] = None,
    from_amount: str = "1000000000000000000",
    to_amount: str = "2500000000000000000000",
    to_amount_min: str = "2487500000000000000000",
    approval_address: Optional[str] = SPENDER,
    tool: str = "stargate",
    duration: int = 120,
    gas_usd: str = "1.50",
) -> Dict[str, Any]:
    estimate: Dict[str, Any] = {
        "fromAmount": from_amount,
        "toAmount": to_amount,
        "toAmountMin": to_amount_min,
        "executionDuration": duration,
        "gasCosts": [{"amount": "210000000000000", "amountUSD": gas_usd, "token": {"symbol": "ETH"}}],
    }
    if approval_address:
        estimate["approvalAddress"] = approval_address
    return {
        "id": f"step-{tool}",
        "type": "lifi",
        "tool": tool,
        "toolDetails": {"name": tool.title()},
        "action": {
            "fromChainId": from_chain,
            "toChainId": to_chain,
            "fromToken": from_token or lifi_token(from_chain),
            "toToken": to_token or lifi_token(to_chain, symbol="POL"),
            "fromAmount": from_amount,
        },
        "estimate": estimate,
    }


def lifi_route(
    *,
    steps: Optional[List[Dict[str, Any]]] = None,
    from_chain: int = 1,
    to_chain: int = 137,
    from_token: Optional[Dict[str, Any]] = None,
    to_token: Optional[Dict[str, Any]] = None,
    from_amount: str = "1000000000000000000",
    to_amount: str = "2500000000000000000000",
    to_amount_min: str = "2487500000000000000000",
    route_id: str = "route-1",
) -> Dict[str, Any]:
    from_token = from_token or lifi_token(from_chain)
    to_token = to_token or lifi_token(to_chain, symbol="POL")
    if steps is None:
        steps = [
            lifi_step(
                from_chain=from_chain,
                to_chain=to_chain,
                from_token=from_token,
                to_token=to_token,
                from_amount=from_amount,
                to_amount=to_amount,
                to_amount_min=to_amount_min,
            )
        ]
    return {
        "id": route_id,
        "fromChainId": from_chain,
        "toChainId": to_chain,
        "fromToken": from_token,
        "toToken": to_token,
        "fromAmount": from_amount,
        "toAmount": to_amount,
        "toAmountMin": to_amount_min,
        "gasCostUSD": "1.50",
        "steps": steps,
    }


def make_route(**kwargs: Any) -> Route:
    return Route.from_lifi(lifi_route(**kwargs))


def make_token(chain_id: int = 1, address: str = NATIVE, symbol: str = "ETH", decimals: int = 18) -> Token:
    return Token(address=address, decimals=decimals, symbol=symbol, chain_id=chain_id)


def make_request(**overrides: Any) -> SwapRequest:
    values: Dict[str, Any] = {
        "from_chain_id": 1,
        "to_chain_id": 137,
        "from_token_address": NATIVE,
        "to_token_address": NATIVE,
        "amount_raw": "1000000000000000000",
        "from_address": WALLET,
        "slippage_fraction": 0.005,
    }
    values.update(overrides)
    return SwapRequest(**values)


class FakeDirectory:
    """Token lookup backed by a fixed list; counts lookups."""

    def __init__(self, tokens: List[Token]):
        self._tokens = {(token.chain_id, token.address): token for token in tokens}
        self.lookups = 0

    async def get_token(self, chain_id: int, address: str) -> Optional[Token]:
        self.lookups += 1
        return self._tokens.get((chain_id, address.lower()))


class FakeWallet:
    """In-memory wallet that records every request made of it."""

    def __init__(self, chain_id: int = 1, address: str = WALLET):
        self._chain_id = chain_id
        self._address = address
        self.switches: List[int] = []
        self.approvals: List[Dict[str, Any]] = []
        self.sent: List[Dict[str, Any]] = []
        self.approval_error: Optional[Exception] = None

    @property
    def chain_id(self) -> int:
        return self._chain_id

    def address(self) -> str:
        return self._address

    async def request_chain_switch(self, chain_id: int) -> None:
        self.switches.append(chain_id)
        self._chain_id = chain_id

    async def set_token_allowance(self, token: Token, spender: str, amount: int) -> str:
        self.approvals.append({"token": token, "spender": spender, "amount": amount})
        if self.approval_error is not None:
            raise self.approval_error
        return "0xapprove"

    async def send_transaction(self, tx: Dict[str, Any]) -> str:
        self.sent.append(tx)
        return f"0xtx{len(self.sent)}"
