from .balances import RpcBalanceService
from .directory import ChainTokenDirectory

__all__ = ["RpcBalanceService", "ChainTokenDirectory"]
