from decimal import Decimal

import pytest

from yield_router.config.settings import (
    ChainSettings,
    ProtocolSettings,
    RebalanceSettings,
    Settings,
    get_settings,
)


def test_load_bundled_yaml():
    settings = Settings.from_yaml("development")

    assert settings.env == "development"
    assert float(settings.rebalance.max_allocation_per_protocol) == pytest.approx(0.4)
    assert settings.rebalance.min_protocols_for_diversity == 3
    assert float(settings.rebalance.min_time_between_rebalances) == pytest.approx(86400)
    assert float(settings.rebalance.gas_cost_per_transfer_usd) == pytest.approx(0.20)
    assert settings.feed.base_url == "https://yields.llama.fi/pools"
    assert set(settings.chains) == {"solana", "base", "ethereum", "arbitrum", "hyperliquid"}
    assert len(settings.protocols) == 14
    assert settings.protocols["hlp-hyperliquid"].liquidity_tier == "high"


def test_bundled_yaml_is_valid():
    assert Settings.from_yaml("development").validate_settings() == []


def test_env_override(monkeypatch):
    monkeypatch.setenv("ROUTER_REBALANCE__MIN_RISK_SCORE", "70")
    settings = Settings.from_yaml("development")
    assert settings.rebalance.min_risk_score == Decimal("70")
    # Untouched siblings keep their YAML values
    assert settings.rebalance.min_protocols_for_diversity == 3


def test_direct_env_overrides(monkeypatch):
    monkeypatch.setenv("DEFILLAMA_URL", "http://localhost:9999/pools")
    monkeypatch.setenv("ROUTER_CURRENT_CHAIN", "base")
    settings = Settings.from_yaml("development")
    assert settings.feed.base_url == "http://localhost:9999/pools"
    assert settings.cross_chain.current_chain == "base"


def test_env_overlay_file_is_merged(tmp_path):
    (tmp_path / "config.yaml").write_text(
        "rebalance:\n  min_risk_score: 60\n  min_protocols_for_diversity: 3\n"
    )
    (tmp_path / "staging.yaml").write_text("rebalance:\n  min_risk_score: 75\n")

    settings = Settings.from_yaml("staging", path=tmp_path / "config.yaml")

    assert settings.env == "staging"
    assert settings.rebalance.min_risk_score == Decimal("75")
    assert settings.rebalance.min_protocols_for_diversity == 3


def test_missing_yaml_falls_back_to_defaults(tmp_path):
    settings = Settings.from_yaml("development", path=tmp_path / "absent.yaml")
    assert settings.rebalance.min_risk_score == Decimal("60")
    assert settings.chains == {}


def test_unknown_keys_warned(tmp_path, caplog):
    (tmp_path / "config.yaml").write_text(
        "rebalance:\n  min_risk_scroe: 70\n"
        "protocols:\n  anything-goes:\n    chain: solana\n"
    )

    Settings.from_yaml("development", path=tmp_path / "config.yaml")

    assert "rebalance.min_risk_scroe" in caplog.text
    assert "anything-goes" not in caplog.text


class TestValidateSettings:
    def test_cap_out_of_range(self):
        settings = Settings(rebalance=RebalanceSettings(max_allocation_per_protocol=Decimal("1.5")))
        assert any("max_allocation_per_protocol" in e for e in settings.validate_settings())

    def test_diversity_floor_below_one(self):
        settings = Settings(rebalance=RebalanceSettings(min_protocols_for_diversity=0))
        assert any("min_protocols_for_diversity" in e for e in settings.validate_settings())

    def test_min_risk_score_out_of_range(self):
        settings = Settings(rebalance=RebalanceSettings(min_risk_score=Decimal("120")))
        assert any("min_risk_score" in e for e in settings.validate_settings())

    def test_protocol_on_unknown_chain(self):
        settings = Settings(
            chains={"solana": ChainSettings(name="Solana")},
            protocols={"aave-base": ProtocolSettings(chain="base")},
            cross_chain={"current_chain": "solana"},
        )
        errors = settings.validate_settings()
        assert errors == ["protocols.aave-base.chain 'base' missing from chains"]

    def test_defaults_are_valid(self):
        assert Settings().validate_settings() == []


def test_get_settings_is_cached():
    get_settings.cache_clear()
    try:
        assert get_settings("development") is get_settings("development")
    finally:
        get_settings.cache_clear()
