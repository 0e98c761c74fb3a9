from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable


class Provider(ABC):
    """Base interface for external services the engine talks to."""

    name: str
    timeout_s: int = 10

    @abstractmethod
    async def ready(self) -> bool:
        """Check if the provider is configured well enough to serve requests"""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status (``{"status": "healthy" | "unhealthy", ...}``)"""
        pass


async def collect_health(providers: Iterable[Provider]) -> Dict[str, Any]:
    """Run every provider's health check and fold them into one report."""
    provider_status: Dict[str, Any] = {}
    for provider in providers:
        if not await provider.ready():
            provider_status[provider.name] = {"status": "unavailable"}
            continue
        provider_status[provider.name] = await provider.health_check()

    healthy = sum(1 for status in provider_status.values() if status.get("status") == "healthy")
    degraded = any(status.get("status") == "unhealthy" for status in provider_status.values())
    return {
        "status": "healthy" if healthy and not degraded else "degraded",
        "providers": provider_status,
        "available_providers": healthy,
    }
