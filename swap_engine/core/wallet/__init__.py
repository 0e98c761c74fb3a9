from .capability import ChainIdMap, WalletCapability, ensure_wallet_chain
from .jsonrpc import JsonRpcWallet

__all__ = ["WalletCapability", "ChainIdMap", "ensure_wallet_chain", "JsonRpcWallet"]
