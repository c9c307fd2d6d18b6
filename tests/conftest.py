from datetime import UTC, datetime
from decimal import Decimal

import pytest

from yield_router.config.settings import CrossChainSettings, RebalanceSettings, Settings
from yield_router.domain.models import (
    ChainCost,
    LiquidityTier,
    ProtocolMeta,
    StrategyCategory,
)
from yield_router.services.registry import ProtocolRegistry


@pytest.fixture
def now():
    return datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def rebalance_settings():
    return RebalanceSettings()


@pytest.fixture
def cross_chain_settings():
    return CrossChainSettings()


@pytest.fixture
def settings():
    """Defaults only; no YAML, no env."""
    return Settings(testing_mode=True)


@pytest.fixture
def registry():
    """Small fixed registry: two Solana lenders, one Base lender, one Hyperliquid LP."""
    protocols = [
        ProtocolMeta(
            protocol_id="kamino-solana",
            name="Kamino",
            chain="solana",
            base_reputation=Decimal("88"),
            category=StrategyCategory.LENDING,
            liquidity_tier=LiquidityTier.LOW,
            project="kamino-lend",
        ),
        ProtocolMeta(
            protocol_id="save-solana",
            name="Save",
            chain="solana",
            base_reputation=Decimal("72"),
            category=StrategyCategory.LENDING,
            liquidity_tier=LiquidityTier.LOW,
            project="save",
        ),
        ProtocolMeta(
            protocol_id="aave-base",
            name="Aave",
            chain="base",
            base_reputation=Decimal("92"),
            category=StrategyCategory.LENDING,
            liquidity_tier=LiquidityTier.LOW,
            project="aave-v3",
        ),
        ProtocolMeta(
            protocol_id="hlp-hyperliquid",
            name="HLP",
            chain="hyperliquid",
            base_reputation=Decimal("70"),
            category=StrategyCategory.PERP_LP,
            liquidity_tier=LiquidityTier.HIGH,
            project="hyperliquid-hlp",
        ),
    ]
    chains = [
        ChainCost("solana", "Solana", bridge_cost_usd=Decimal("1.50"), gas_cost_usd=Decimal("0.001")),
        ChainCost("base", "Base", bridge_cost_usd=Decimal("1.00"), gas_cost_usd=Decimal("0.05")),
        ChainCost("hyperliquid", "Hyperliquid", bridge_cost_usd=Decimal("1.00"), gas_cost_usd=Decimal("0.001")),
    ]
    return ProtocolRegistry(protocols, chains)
