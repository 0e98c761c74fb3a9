import pytest
from pydantic import ValidationError

from swap_engine.config import Settings
from swap_engine.engine import build_engine
from swap_engine.providers.lifi import RoutingConfig


def test_routing_defaults(monkeypatch):
    """Routing options default to the integrator's production values."""

    monkeypatch.delenv("LIFI_API_KEY", raising=False)
    monkeypatch.delenv("NEXT_PUBLIC_LIFI_API_KEY", raising=False)

    settings = Settings(_env_file=None)
    config = RoutingConfig.from_settings(settings)

    assert config.integrator == "pairs-dex"
    assert config.default_slippage == 0.005
    assert config.order == "RECOMMENDED"
    assert config.allow_switch_chain is True
    assert config.api_key == ""


def test_lifi_api_key_public_alias(monkeypatch):
    """The frontend's public key name is picked up when the primary one is absent."""

    monkeypatch.delenv("LIFI_API_KEY", raising=False)
    monkeypatch.setenv("NEXT_PUBLIC_LIFI_API_KEY", "from-frontend")

    settings = Settings(_env_file=None)

    assert settings.lifi_api_key == "from-frontend"
    assert settings.has_lifi_key


def test_lifi_api_key_direct_env(monkeypatch):
    """Environment-provided LI.FI key remains the primary source."""

    monkeypatch.setenv("LIFI_API_KEY", "primary-key")
    monkeypatch.setenv("NEXT_PUBLIC_LIFI_API_KEY", "from-frontend")

    assert Settings(_env_file=None).lifi_api_key == "primary-key"


@pytest.mark.parametrize("slippage", ["0", "1", "-0.1"])
def test_slippage_bounds(monkeypatch, slippage):
    monkeypatch.setenv("DEFAULT_SLIPPAGE", slippage)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_integrator_without_spaces(monkeypatch):
    monkeypatch.setenv("INTEGRATOR", "pairs dex")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_engine_requires_wallet_mapping_for_rpc_chains():
    settings = Settings(_env_file=None, rpc_urls={1: "http://node", 8453: "http://base"}, wallet_chain_ids={1: 1})

    with pytest.raises(ValueError):
        build_engine(settings)


def test_engine_builds_signer_wallet_when_configured():
    settings = Settings(
        _env_file=None,
        rpc_urls={1: "http://node"},
        wallet_chain_ids={1: 1, 137: 137},
        signer_rpc_url="http://signer",
        signer_address="0x50AC5CFCC81BB0872E85255D7079F8A529345D16",
    )

    engine = build_engine(settings)

    assert engine.wallet is not None
    assert engine.wallet.address() == "0x50ac5cfcc81bb0872e85255d7079f8a529345d16"
    assert engine.config is engine.quote_service._config
