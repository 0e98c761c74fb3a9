from .base import Provider, collect_health
from .lifi import LiFiProvider, RoutingConfig
from .rpc import JsonRpcClient, RpcError

__all__ = ["Provider", "collect_health", "LiFiProvider", "RoutingConfig", "JsonRpcClient", "RpcError"]
