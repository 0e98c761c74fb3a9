from .lifi_executor import LiFiExecutionService
from .tx_builder import build_erc20_approve, normalize_transaction_request

__all__ = ["LiFiExecutionService", "build_erc20_approve", "normalize_transaction_request"]
