"""
Opportunity ranking.

Risk-adjusted APY = APY * (risk score / 100). Opportunities below the minimum
risk score are dropped; the rest are sorted descending by risk-adjusted APY.
`sorted` is stable, so ties keep their input order.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal

from yield_router.config.settings import CrossChainSettings
from yield_router.domain.errors import ConfigurationError, UnknownChain, UnknownProtocol
from yield_router.domain.models import (
    LiquidityTier,
    Opportunity,
    RiskProfile,
    RiskScore,
    StrategyCategory,
    YieldRecord,
)
from yield_router.observability.logging import LOG_TAG_SCAN, get_logger
from yield_router.services.costs import compute_route_cost
from yield_router.services.registry import ProtocolRegistry
from yield_router.services.scoring import cross_chain_risk_score

logger = get_logger(__name__)

_HUNDRED = Decimal("100")
NEUTRAL_RISK_SCORE = Decimal("50")


def risk_adjusted_apy(apy: Decimal, risk_score: Decimal) -> Decimal:
    """APY scaled by safety score."""
    return apy * (risk_score / _HUNDRED)


def _sort_ranked(opportunities: list[Opportunity]) -> list[Opportunity]:
    return sorted(opportunities, key=lambda o: o.risk_adjusted_apy, reverse=True)


def rank_opportunities(
    records: Iterable[YieldRecord],
    risk_scores: Mapping[str, RiskScore],
    min_risk_score: Decimal,
    registry: ProtocolRegistry | None = None,
) -> list[Opportunity]:
    """
    Rank records by risk-adjusted APY.

    Records without a score get the neutral score. A score equal to the
    minimum passes. Empty or fully filtered input returns an empty list.
    """
    candidates: list[Opportunity] = []

    for record in records:
        score = risk_scores.get(record.protocol_id)
        total = score.total if score is not None else NEUTRAL_RISK_SCORE
        if total < min_risk_score:
            logger.debug(f"{LOG_TAG_SCAN} [{record.protocol_id}] filtered: risk {total} < min {min_risk_score}")
            continue

        meta = registry.protocols.get(record.protocol_id) if registry is not None else None
        candidates.append(
            Opportunity(
                protocol_id=record.protocol_id,
                chain=record.chain,
                apy=record.total_apy,
                risk_score=total,
                risk_adjusted_apy=risk_adjusted_apy(record.total_apy, total),
                tvl_usd=record.tvl_usd,
                category=meta.category if meta else StrategyCategory.OTHER,
                liquidity_tier=meta.liquidity_tier if meta else LiquidityTier.MEDIUM,
                name=meta.name if meta else "",
            )
        )

    return _sort_ranked(candidates)


def rank_cross_chain_opportunities(
    records: Iterable[YieldRecord],
    registry: ProtocolRegistry,
    settings: CrossChainSettings | None = None,
    *,
    current_chain: str | None = None,
    hold_days: int | None = None,
    min_risk_score: Decimal | None = None,
) -> list[Opportunity]:
    """
    Rank records with bridging and gas costs relative to `current_chain`.

    Records whose protocol or chain is not registered are skipped with a warning.
    """
    s = settings or CrossChainSettings()
    current = current_chain or s.current_chain
    days = hold_days if hold_days is not None else s.hold_days
    if days < 1:
        raise ConfigurationError(f"hold_days must be at least 1, got {days}")
    min_risk = min_risk_score if min_risk_score is not None else s.profile_min_risk.get(
        s.risk_profile, NEUTRAL_RISK_SCORE
    )

    candidates: list[Opportunity] = []
    for record in records:
        try:
            meta = registry.get_protocol(record.protocol_id)
            cost = compute_route_cost(
                chain=record.chain,
                current_chain=current,
                chain_costs=registry.chains,
                apy=record.total_apy,
                hold_days=days,
                reference_position=s.reference_position_usd,
            )
        except (UnknownProtocol, UnknownChain) as e:
            logger.warning(
                f"{LOG_TAG_SCAN} Skipping {record.protocol_id}: {e.message}",
                extra={"protocol": record.protocol_id, "chain": record.chain, "error_code": e.error_code},
            )
            continue

        score = cross_chain_risk_score(record, meta, s)
        if score < min_risk:
            continue

        candidates.append(
            Opportunity(
                protocol_id=record.protocol_id,
                chain=record.chain,
                apy=record.total_apy,
                risk_score=score,
                risk_adjusted_apy=risk_adjusted_apy(record.total_apy, score),
                tvl_usd=record.tvl_usd,
                category=meta.category,
                liquidity_tier=meta.liquidity_tier,
                name=meta.name,
                bridge_cost_usd=cost.bridge_cost_usd,
                gas_cost_usd=cost.gas_cost_usd,
                total_cost_usd=cost.total_cost_usd,
                min_hold_days=cost.min_hold_days,
                net_apy=cost.net_apy,
                breakeven_reachable=cost.breakeven_reachable,
            )
        )

    return _sort_ranked(candidates)


def min_risk_for_profile(profile: RiskProfile | str, settings: CrossChainSettings | None = None) -> Decimal:
    """Minimum cross-chain risk score accepted by a risk profile."""
    s = settings or CrossChainSettings()
    key = RiskProfile(profile).value
    return s.profile_min_risk.get(key, NEUTRAL_RISK_SCORE)
