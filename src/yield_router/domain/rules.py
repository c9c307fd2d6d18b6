"""
Domain Rules: rebalance gating conditions.

Pure functions that encode the business rules behind a rebalance decision.
Each check returns a RuleResult; callers short-circuit on the first failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from yield_router.domain.models import AllocationPlan, TransferInstruction

# =============================================================================
# Reason Code Prefixes (Consistent Decision Reason Formatting)
# =============================================================================
REASON_COOLDOWN = "COOLDOWN"
REASON_NO_OPPORTUNITIES = "NO_OPPORTUNITIES"
REASON_LOW_IMPROVEMENT = "LOW_IMPROVEMENT"
REASON_COST = "COST"
REASON_NOOP = "NOOP"
REASON_REBALANCE = "REBALANCE"
REASON_MIN_HOLD = "MIN_HOLD"
REASON_COST_RECOVERY = "COST_RECOVERY"


@dataclass(frozen=True)
class RuleResult:
    """Result of a rule check."""

    passed: bool
    reason: str = ""


# =============================================================================
# Gate Rules
# =============================================================================


def seconds_since(last: datetime | None, now: datetime) -> Decimal | None:
    """Elapsed seconds since `last`, or None when there is no previous event."""
    if last is None:
        return None
    return Decimal(str((now - last).total_seconds()))


def check_cooldown(
    last_rebalance_at: datetime | None,
    now: datetime,
    min_seconds: Decimal,
) -> RuleResult:
    """Reject while within `min_seconds` of the last accepted rebalance."""
    elapsed = seconds_since(last_rebalance_at, now)
    if elapsed is None or elapsed >= min_seconds:
        return RuleResult(True)

    remaining = min_seconds - elapsed
    return RuleResult(
        False,
        f"{REASON_COOLDOWN}: Too soon since last rebalance "
        f"({int(elapsed // 60)}m ago, min {int(min_seconds // 60)}m, "
        f"{int(remaining // 60)}m remaining)",
    )


def check_opportunities_available(plan: AllocationPlan, min_risk_score: Decimal) -> RuleResult:
    """An empty plan means nothing passed the risk filter (not an error)."""
    if not plan.is_empty:
        return RuleResult(True)
    return RuleResult(
        False,
        f"{REASON_NO_OPPORTUNITIES}: No opportunity passed the risk filter (min score {min_risk_score})",
    )


def check_min_improvement(improvement: Decimal, min_difference: Decimal) -> RuleResult:
    """Expected APY gain must reach the configured threshold."""
    if improvement >= min_difference:
        return RuleResult(True)
    return RuleResult(
        False,
        f"{REASON_LOW_IMPROVEMENT}: APY improvement ({improvement:.2%}) "
        f"below threshold ({min_difference:.2%})",
    )


def check_max_cost(estimated_cost: Decimal, max_cost: Decimal) -> RuleResult:
    """Execution cost must not exceed the ceiling."""
    if estimated_cost <= max_cost:
        return RuleResult(True)
    return RuleResult(
        False,
        f"{REASON_COST}: Gas cost (${estimated_cost:.2f}) exceeds max (${max_cost:.2f})",
    )


def check_has_transfers(transfers: list[TransferInstruction] | tuple[TransferInstruction, ...]) -> RuleResult:
    """Nothing to do when every delta is inside the churn threshold."""
    if transfers:
        return RuleResult(True)
    return RuleResult(False, f"{REASON_NOOP}: Allocation already within threshold of target")


# =============================================================================
# Cross-Chain Route Rules
# =============================================================================


def check_min_hold(days_in_position: int, min_hold_days: int) -> RuleResult:
    """Don't rotate out of a fresh position."""
    if days_in_position >= min_hold_days:
        return RuleResult(True)
    return RuleResult(
        False,
        f"{REASON_MIN_HOLD}: Holding current position ({days_in_position}d < {min_hold_days}d min hold)",
    )


def days_to_recover_cost(cost_usd: Decimal, principal: Decimal, apy_improvement: Decimal) -> Decimal | None:
    """Days of extra yield needed to pay back a move. None if it never pays back."""
    yearly_gain = principal * apy_improvement
    if yearly_gain <= 0:
        return None
    return cost_usd / (yearly_gain / Decimal("365"))


def check_route_improvement(
    apy_improvement: Decimal,
    min_improvement: Decimal,
    recovery_days: Decimal | None,
    max_recovery_days: Decimal,
) -> RuleResult:
    """Route change must beat the current APY and recoup its cost quickly enough."""
    if apy_improvement >= min_improvement and recovery_days is not None and recovery_days <= max_recovery_days:
        return RuleResult(True)

    recovery = "never" if recovery_days is None else f"{recovery_days:.0f}d"
    prefix = REASON_LOW_IMPROVEMENT if apy_improvement < min_improvement else REASON_COST_RECOVERY
    return RuleResult(
        False,
        f"{prefix}: Current position is optimal (improvement: {apy_improvement:.2%}, recovery: {recovery})",
    )
