"""
Cost model for cross-chain moves and operating-budget sustainability.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import ROUND_CEILING, Decimal

from yield_router.domain.errors import ConfigurationError, UnknownChain
from yield_router.domain.models import ChainCost, RouteCost, SustainabilityReport

_ZERO = Decimal("0")
DAYS_PER_YEAR = Decimal("365")
DAYS_PER_MONTH = Decimal("30")
DEFAULT_REFERENCE_POSITION_USD = Decimal("1000")


def _ceil_days(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_CEILING))


def compute_route_cost(
    chain: str,
    current_chain: str,
    chain_costs: Mapping[str, ChainCost],
    apy: Decimal,
    hold_days: int,
    reference_position: Decimal = DEFAULT_REFERENCE_POSITION_USD,
) -> RouteCost:
    """
    Cost of deploying `reference_position` on `chain` from `current_chain`.

    Formulas:
        bridge     = bridge cost of target chain, 0 when already there
        total      = bridge + gas
        annualized = total / reference_position * 365 / hold_days
        net_apy    = apy - annualized
        min_hold   = ceil(total / (apy / 365 * reference_position)), 0 if apy <= 0

    A non-positive APY never breaks even; that is reported through
    `breakeven_reachable=False` rather than a division by zero.
    A hold period shorter than one day raises ConfigurationError.
    """
    if hold_days < 1:
        raise ConfigurationError(f"hold_days must be at least 1, got {hold_days}", chain=chain)

    entry = chain_costs.get(chain)
    if entry is None:
        raise UnknownChain(f"Chain {chain} has no cost entry", chain=chain)

    bridge_cost = entry.bridge_cost_usd if chain != current_chain else _ZERO
    gas_cost = entry.gas_cost_usd
    total_cost = bridge_cost + gas_cost

    annualized_cost = (total_cost / reference_position) * (DAYS_PER_YEAR / Decimal(hold_days))
    net_apy = apy - annualized_cost

    if apy > 0:
        daily_yield = apy / DAYS_PER_YEAR * reference_position
        min_hold_days = _ceil_days(total_cost / daily_yield)
        breakeven_reachable = True
    else:
        min_hold_days = 0
        breakeven_reachable = False

    return RouteCost(
        bridge_cost_usd=bridge_cost,
        gas_cost_usd=gas_cost,
        total_cost_usd=total_cost,
        annualized_cost=annualized_cost,
        net_apy=net_apy,
        min_hold_days=min_hold_days,
        breakeven_reachable=breakeven_reachable,
    )


def calculate_self_sustainability(
    principal: Decimal,
    apy: Decimal,
    daily_operating_cost: Decimal = Decimal("0.10"),
) -> SustainabilityReport:
    """
    Does the yield on `principal` pay for a daily operating budget?

    Example: $100 at 5% APY earns ~$0.0137/day; against $0.10/day that nets
    ~-$0.0863/day, so it is not sustainable.
    """
    daily_yield = principal * apy / DAYS_PER_YEAR
    net_daily = daily_yield - daily_operating_cost
    is_sustainable = net_daily > 0

    days_to_sustainability = 0
    if not is_sustainable and daily_yield > 0:
        days_to_sustainability = _ceil_days(daily_operating_cost / daily_yield)

    yearly_cost = daily_operating_cost * DAYS_PER_YEAR
    required_principal = yearly_cost / apy if apy > 0 else None
    required_apy = yearly_cost / principal if principal > 0 else None

    return SustainabilityReport(
        daily_yield=daily_yield,
        daily_cost=daily_operating_cost,
        net_daily=net_daily,
        is_sustainable=is_sustainable,
        days_to_sustainability=days_to_sustainability,
        monthly_profit=net_daily * DAYS_PER_MONTH,
        required_principal=required_principal,
        required_apy=required_apy,
    )
