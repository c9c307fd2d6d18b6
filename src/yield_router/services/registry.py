"""
Static protocol and chain tables.

Built once at startup from settings; read-only afterwards.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from yield_router.config.settings import Settings
from yield_router.domain.errors import UnknownChain, UnknownProtocol
from yield_router.domain.models import ChainCost, LiquidityTier, ProtocolMeta, StrategyCategory


class ProtocolRegistry:
    """Lookup for ProtocolMeta and ChainCost entries."""

    def __init__(
        self,
        protocols: Iterable[ProtocolMeta] = (),
        chains: Iterable[ChainCost] = (),
    ):
        self._protocols: Mapping[str, ProtocolMeta] = MappingProxyType({p.protocol_id: p for p in protocols})
        self._chains: Mapping[str, ChainCost] = MappingProxyType({c.chain: c for c in chains})

    @classmethod
    def from_settings(cls, settings: Settings) -> ProtocolRegistry:
        protocols = [
            ProtocolMeta(
                protocol_id=protocol_id,
                name=cfg.name or protocol_id,
                chain=cfg.chain,
                base_reputation=cfg.base_reputation,
                category=StrategyCategory.from_string(cfg.category),
                liquidity_tier=LiquidityTier(cfg.liquidity_tier.lower()),
                min_deposit_usd=cfg.min_deposit_usd,
                project=cfg.project,
            )
            for protocol_id, cfg in settings.protocols.items()
        ]
        chains = [
            ChainCost(
                chain=chain_id,
                name=cfg.name or chain_id,
                bridge_cost_usd=cfg.bridge_cost_usd,
                gas_cost_usd=cfg.gas_cost_usd,
                bridge_time_minutes=cfg.bridge_time_minutes,
                native_bridge=cfg.native_bridge,
            )
            for chain_id, cfg in settings.chains.items()
        ]
        return cls(protocols, chains)

    @property
    def protocols(self) -> Mapping[str, ProtocolMeta]:
        return self._protocols

    @property
    def chains(self) -> Mapping[str, ChainCost]:
        return self._chains

    def get_protocol(self, protocol_id: str) -> ProtocolMeta:
        """Return protocol metadata or raise UnknownProtocol."""
        meta = self._protocols.get(protocol_id)
        if meta is None:
            raise UnknownProtocol(f"Protocol {protocol_id} is not registered", protocol=protocol_id)
        return meta

    def get_chain(self, chain: str) -> ChainCost:
        """Return chain cost entry or raise UnknownChain."""
        cost = self._chains.get(chain)
        if cost is None:
            raise UnknownChain(f"Chain {chain} has no cost entry", chain=chain)
        return cost

    def protocols_for_chain(self, chain: str) -> list[ProtocolMeta]:
        return [p for p in self._protocols.values() if p.chain == chain]
