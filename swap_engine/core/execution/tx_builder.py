"""
Calldata and transaction builders for the few raw contract calls the engine makes.
"""

from typing import Any, Dict, Optional

from ..swap.constants import normalize_address


# Common contract selectors (minimal for encoding)
ERC20_APPROVE_SELECTOR = "0x095ea7b3"  # approve(address,uint256)
ERC20_BALANCE_OF_SELECTOR = "0x70a08231"  # balanceOf(address)
ERC20_ALLOWANCE_SELECTOR = "0xdd62ed3e"  # allowance(address,address)

MAX_UINT256 = 2**256 - 1


def _encode_uint256(value: int) -> str:
    """Encode a uint256 as a 32-byte hex string (without 0x prefix)."""
    if value < 0 or value > MAX_UINT256:
        raise ValueError(f"value out of uint256 range: {value}")
    return format(value, "064x")


def _encode_address(address: str) -> str:
    """Encode an address as a 32-byte hex string (without 0x prefix)."""
    addr = normalize_address(address).replace("0x", "")
    return addr.zfill(64)


def encode_balance_of(owner: str) -> str:
    return ERC20_BALANCE_OF_SELECTOR + _encode_address(owner)


def encode_allowance(owner: str, spender: str) -> str:
    return ERC20_ALLOWANCE_SELECTOR + _encode_address(owner) + _encode_address(spender)


def build_erc20_approve(
    *,
    chain_id: int,
    owner_address: str,
    token_address: str,
    spender_address: str,
    amount: int,
) -> Dict[str, Any]:
    """
    Build a bounded ERC20 approval transaction request.

    There is deliberately no default amount: callers must pass the exact
    amount a route step spends. Unlimited approvals are rejected.

    Returns:
        Transaction request in ``eth_sendTransaction`` shape
    """
    if amount <= 0:
        raise ValueError("approval amount must be positive")
    if amount == MAX_UINT256:
        raise ValueError("unlimited approvals are not allowed")

    calldata = (
        ERC20_APPROVE_SELECTOR +
        _encode_address(spender_address) +
        _encode_uint256(amount)
    )
    return {
        "from": normalize_address(owner_address),
        "to": normalize_address(token_address),
        "data": calldata,
        "value": "0x0",
        "chainId": hex(chain_id),
    }


def normalize_transaction_request(tx: Dict[str, Any], *, chain_id: Optional[int] = None) -> Dict[str, Any]:
    """Convert a routing-service ``transactionRequest`` into hex-quantity JSON-RPC form."""
    normalized: Dict[str, Any] = {}
    for key in ("from", "to", "data"):
        if tx.get(key) is not None:
            normalized[key] = tx[key]
    for key in ("value", "gasLimit", "gasPrice", "maxFeePerGas", "maxPriorityFeePerGas"):
        value = tx.get(key)
        if value is None:
            continue
        if isinstance(value, str) and value.startswith("0x"):
            quantity = value
        else:
            quantity = hex(int(value))
        normalized["gas" if key == "gasLimit" else key] = quantity
    target_chain = tx.get("chainId", chain_id)
    if target_chain is not None:
        normalized["chainId"] = hex(int(str(target_chain), 0)) if isinstance(target_chain, str) else hex(target_chain)
    return normalized
