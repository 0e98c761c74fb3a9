"""Constants for swap orchestration."""

from __future__ import annotations

from typing import Dict, FrozenSet

# LI.FI reports the gas asset with either placeholder depending on the chain/tool.
# Addresses intentionally lowercased to simplify comparisons.
NATIVE_PLACEHOLDER = '0x0000000000000000000000000000000000000000'
NATIVE_EEEE_PLACEHOLDER = '0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee'
NATIVE_SENTINELS: FrozenSet[str] = frozenset({NATIVE_PLACEHOLDER, NATIVE_EEEE_PLACEHOLDER})

# Subpath error codes the quote adapter recognises when no route is returned.
AMOUNT_TOO_HIGH = 'AMOUNT_TOO_HIGH'
NO_POSSIBLE_ROUTE = 'NO_POSSIBLE_ROUTE'
INSUFFICIENT_LIQUIDITY_TEXT = 'insufficient liquidity'

DEFAULT_EXPLORER = 'https://etherscan.io'
EXPLORERS: Dict[int, str] = {
    1: 'https://etherscan.io',
    137: 'https://polygonscan.com',
    42161: 'https://arbiscan.io',
    10: 'https://optimistic.etherscan.io',
}

SWAP_SOURCE = {'name': 'LI.FI', 'url': 'https://li.fi'}


def normalize_address(address: str) -> str:
    """Lowercase and strip an address; every address in the engine goes through here."""
    return (address or '').strip().lower()


def is_native_address(address: str) -> bool:
    return normalize_address(address) in NATIVE_SENTINELS


def explorer_tx_url(chain_id: int, tx_hash: str) -> str:
    base_url = EXPLORERS.get(chain_id, DEFAULT_EXPLORER)
    return f'{base_url}/tx/{tx_hash}'


__all__ = [
    'NATIVE_PLACEHOLDER',
    'NATIVE_EEEE_PLACEHOLDER',
    'NATIVE_SENTINELS',
    'AMOUNT_TOO_HIGH',
    'NO_POSSIBLE_ROUTE',
    'INSUFFICIENT_LIQUIDITY_TEXT',
    'EXPLORERS',
    'SWAP_SOURCE',
    'normalize_address',
    'is_native_address',
    'explorer_tx_url',
]
