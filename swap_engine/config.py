import os

from pathlib import Path
from typing import Any, Dict

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Pick up the public LI.FI key name used by the web frontend."""

        super().model_post_init(__context)

        if not self.lifi_api_key:
            fallback = os.getenv("NEXT_PUBLIC_LIFI_API_KEY")
            if fallback:
                object.__setattr__(self, "lifi_api_key", fallback)

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")

    # Routing service (LI.FI)
    lifi_base_url: str = Field(default="https://li.quest/v1", description="LI.FI API base URL")
    lifi_api_key: str = Field(
        default="",
        description="LI.FI API key for higher rate limits",
        validation_alias=AliasChoices("lifi_api_key", "LIFI_API_KEY"),
    )
    integrator: str = Field(
        default="pairs-dex",
        description="Integrator id sent with every routing request (no spaces)",
        pattern=r"^[A-Za-z0-9._-]+$",
    )
    default_slippage: float = Field(
        default=0.005,
        gt=0,
        lt=1,
        description="Default slippage fraction (0.005 = 0.5%)",
    )
    route_order: str = Field(
        default="RECOMMENDED",
        description="Ranking policy requested from the routing service",
        pattern="^(RECOMMENDED|FASTEST|CHEAPEST|SAFEST)$",
    )
    allow_switch_chain: bool = Field(default=True, description="Allow routes that require a chain switch")

    # Rate Limiting / timeouts
    request_timeout_seconds: int = Field(default=30, description="HTTP timeout for provider calls")
    token_cache_ttl_seconds: int = Field(
        default=3600,
        description="TTL for the chain/token directory cache (default: 1 hour)",
    )

    # Chain access
    rpc_urls: Dict[int, str] = Field(
        default_factory=lambda: {
            1: "https://ethereum-rpc.publicnode.com",
            10: "https://mainnet.optimism.io",
            137: "https://polygon-rpc.com",
            8453: "https://mainnet.base.org",
            42161: "https://arbitrum-one.publicnode.com",
        },
        description="JSON-RPC endpoint per routing chain id, used for balance reads",
    )
    wallet_chain_ids: Dict[int, int] = Field(
        default_factory=lambda: {
            1: 1,
            137: 137,
            42161: 42161,
            10: 10,
            43114: 43114,
            56: 56,
            8453: 8453,
            100: 100,
            42220: 42220,
            250: 250,
            59144: 59144,
            7777777: 7777777,
        },
        description="Routing-service chain id -> wallet-provider chain id",
    )

    # Server-side signer (optional; enables the /sessions confirm endpoint)
    signer_rpc_url: str = Field(default="", description="JSON-RPC signer endpoint (eth_sendTransaction)")
    signer_address: str = Field(default="", description="Address controlled by the signer endpoint")
    signer_chain_id: int = Field(default=1, description="Chain the signer starts on")

    # Execution tracking
    status_poll_interval_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Interval between LI.FI status polls while a step is pending",
    )
    execution_timeout_seconds: int = Field(
        default=1800,
        ge=1,
        description="Max seconds the execution service tracks a single step",
    )
    receipt_timeout_seconds: int = Field(
        default=300,
        ge=1,
        description="Max seconds the wallet adapter waits for an approval receipt",
    )

    @property
    def has_lifi_key(self) -> bool:
        return bool(self.lifi_api_key)

    @property
    def has_signer(self) -> bool:
        return bool(self.signer_rpc_url and self.signer_address)


# Global settings instance
settings = Settings()
