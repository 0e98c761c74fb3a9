"""Turns raw form input into a canonical ``SwapRequest``."""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext
from typing import Optional, Protocol

from .constants import normalize_address
from .errors import InvalidAmountError, InvalidSlippageError, InvalidTokenError
from .models import SwapRequest, Token

AMOUNT_PRECISION = 120


class TokenLookup(Protocol):
    async def get_token(self, chain_id: int, address: str) -> Optional[Token]:
        ...


def parse_display_amount(amount: str) -> Decimal:
    """Parse a user-entered amount, accepting thousands separators."""
    cleaned = str(amount or "").replace(",", "").strip()
    try:
        value = Decimal(cleaned)
    except (InvalidOperation, ValueError):
        raise InvalidAmountError(amount, "not a number") from None
    if not value.is_finite():
        raise InvalidAmountError(amount, "not a finite number")
    if value <= 0:
        raise InvalidAmountError(amount, "must be greater than zero")
    return value


def to_raw_amount(amount: str, decimals: int) -> str:
    """``floor(amount * 10**decimals)`` as an integer string. Never rounds up."""
    value = parse_display_amount(amount)
    # Default 28-digit context would round large wei values before flooring.
    with localcontext() as ctx:
        ctx.prec = AMOUNT_PRECISION
        ctx.rounding = ROUND_DOWN
        try:
            raw = value.scaleb(decimals).to_integral_value(rounding=ROUND_DOWN)
        except ArithmeticError:
            raise InvalidAmountError(amount, "out of range") from None
    if raw <= 0:
        raise InvalidAmountError(amount, f"smaller than the token's smallest unit ({decimals} decimals)")
    return str(int(raw))


def format_token_amount(raw_amount: str | int, decimals: int, max_fraction_digits: int = 6) -> str:
    """Render raw units for display, truncating (not rounding) extra digits."""
    with localcontext() as ctx:
        ctx.prec = AMOUNT_PRECISION
        value = Decimal(int(raw_amount)).scaleb(-decimals)
        truncated = value.quantize(Decimal(1).scaleb(-max_fraction_digits), rounding=ROUND_DOWN)
    text = f"{truncated:,.{max_fraction_digits}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


async def build_swap_request(
    directory: TokenLookup,
    *,
    amount: str,
    from_chain_id: int,
    to_chain_id: int,
    from_token_address: str,
    to_token_address: str,
    from_address: str,
    slippage: Optional[float] = None,
    default_slippage: float = 0.005,
) -> SwapRequest:
    """Validate input and resolve token decimals.

    Raises ``InputError`` subclasses; the amount and slippage are checked
    before any directory lookup so malformed input never reaches the network.
    """
    parse_display_amount(amount)
    slippage_fraction = default_slippage if slippage is None else slippage
    if not 0 < slippage_fraction < 1:
        raise InvalidSlippageError(slippage)

    from_token = await directory.get_token(from_chain_id, from_token_address)
    if from_token is None:
        raise InvalidTokenError(from_chain_id, normalize_address(from_token_address))
    to_token = await directory.get_token(to_chain_id, to_token_address)
    if to_token is None:
        raise InvalidTokenError(to_chain_id, normalize_address(to_token_address))

    return SwapRequest(
        from_chain_id=from_chain_id,
        to_chain_id=to_chain_id,
        from_token_address=from_token_address,
        to_token_address=to_token_address,
        amount_raw=to_raw_amount(amount, from_token.decimals),
        from_address=from_address,
        slippage_fraction=slippage_fraction,
    )
