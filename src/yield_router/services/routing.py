"""
Route advisor for a single-position cross-chain strategy.

Picks the best opportunity for a risk profile and decides whether to
hold, make a first deposit, or move the whole position.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from decimal import Decimal

from yield_router.config.settings import Settings
from yield_router.domain.models import (
    HeldPosition,
    LiquidityTier,
    Opportunity,
    RiskProfile,
    RouteAction,
    RouteActionType,
    StrategyCategory,
)
from yield_router.domain.rules import (
    REASON_NO_OPPORTUNITIES,
    REASON_REBALANCE,
    check_min_hold,
    check_route_improvement,
    days_to_recover_cost,
)
from yield_router.observability.logging import LOG_TAG_DECISION, get_logger

logger = get_logger(__name__)

DEFAULT_SMALL_POSITION_USD = Decimal("500")
DEFAULT_SAME_CHAIN_PREFERENCE = Decimal("0.8")


def _fits_profile(opp: Opportunity, profile: RiskProfile) -> bool:
    if profile is RiskProfile.CONSERVATIVE:
        return opp.category is StrategyCategory.LENDING and opp.liquidity_tier is LiquidityTier.LOW
    if profile is RiskProfile.MODERATE:
        return opp.liquidity_tier is not LiquidityTier.HIGH
    return True


def select_best_opportunity(
    opportunities: Sequence[Opportunity],
    current_chain: str,
    position_size: Decimal,
    risk_profile: RiskProfile | str = RiskProfile.MODERATE,
    *,
    small_position_usd: Decimal = DEFAULT_SMALL_POSITION_USD,
    same_chain_preference: Decimal = DEFAULT_SAME_CHAIN_PREFERENCE,
) -> Opportunity | None:
    """
    Best ranked opportunity allowed by the risk profile.

    Profiles:
        conservative: lending with low liquidity risk only
        moderate:     anything but high liquidity risk
        aggressive:   everything

    Small positions stay on the current chain when a same-chain opportunity
    earns more than `same_chain_preference` of the best one, since a bridge
    fee eats a larger share of a small balance.
    """
    profile = RiskProfile(risk_profile)
    filtered = [o for o in opportunities if _fits_profile(o, profile)]
    if not filtered:
        return None

    best = filtered[0]
    if position_size < small_position_usd:
        same_chain = next((o for o in filtered if o.chain == current_chain), None)
        if same_chain is not None and same_chain.risk_adjusted_apy > best.risk_adjusted_apy * same_chain_preference:
            return same_chain
    return best


class RouteAdvisor:
    """Hold / deposit / rebalance advice for one position."""

    def __init__(self, settings: Settings, clock: Callable[[], datetime] | None = None):
        self.settings = settings
        self._clock = clock or (lambda: datetime.now(UTC))

    def advise(
        self,
        opportunities: Sequence[Opportunity],
        current_position: HeldPosition | None,
        principal: Decimal,
        now: datetime | None = None,
    ) -> RouteAction:
        now = now or self._clock()
        cc = self.settings.cross_chain
        current_chain = current_position.chain if current_position else cc.current_chain

        best = select_best_opportunity(
            opportunities,
            current_chain,
            principal,
            cc.risk_profile,
            small_position_usd=cc.small_position_usd,
            same_chain_preference=cc.same_chain_preference,
        )
        if best is None:
            return self._hold(f"{REASON_NO_OPPORTUNITIES}: No suitable opportunities found for risk profile")

        if current_position is None:
            action = RouteAction(
                action=RouteActionType.DEPOSIT,
                reason=f"New deployment to {best.display_name} on {best.chain} at {best.apy:.2%} APY",
                opportunity=best,
                amount_usd=principal,
            )
            logger.info(f"{LOG_TAG_DECISION} DEPOSIT {action.reason}")
            return action

        days_in_position = (now - current_position.entered_at).days
        hold = check_min_hold(days_in_position, cc.min_hold_days)
        if not hold.passed:
            return self._hold(hold.reason)

        improvement = best.risk_adjusted_apy - current_position.apy
        recovery_days = days_to_recover_cost(best.total_cost_usd, principal, improvement)
        worth_it = check_route_improvement(
            improvement,
            self.settings.rebalance.min_apy_difference_to_rebalance,
            recovery_days,
            cc.max_cost_recovery_days,
        )
        if not worth_it.passed:
            return self._hold(worth_it.reason)

        action = RouteAction(
            action=RouteActionType.REBALANCE,
            reason=f"{REASON_REBALANCE}: Better opportunity {best.display_name} on {best.chain} (+{improvement:.2%} APY)",
            opportunity=best,
            amount_usd=principal,
        )
        logger.info(f"{LOG_TAG_DECISION} {action.reason}")
        return action

    def _hold(self, reason: str) -> RouteAction:
        logger.info(f"{LOG_TAG_DECISION} HOLD {reason}")
        return RouteAction(action=RouteActionType.HOLD, reason=reason)
