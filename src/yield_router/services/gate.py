"""
Decision gate: turns a target plan into an accept/reject rebalance decision.

Check order (first failure wins):
1. Cooldown since the last accepted rebalance
2. Empty plan (nothing passed the risk filter)
3. Minimum APY improvement
4. Maximum execution cost
5. Empty transfer plan
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from yield_router.config.settings import RebalanceSettings
from yield_router.domain.models import (
    AllocationPlan,
    GateState,
    Opportunity,
    Position,
    RebalanceDecision,
    TransferInstruction,
)
from yield_router.domain.rules import (
    REASON_REBALANCE,
    check_cooldown,
    check_has_transfers,
    check_max_cost,
    check_min_improvement,
    check_opportunities_available,
)
from yield_router.observability.logging import LOG_TAG_DECISION, get_logger
from yield_router.services.planner import current_weights, plan_transfers

logger = get_logger(__name__)

_ZERO = Decimal("0")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def expected_improvement(
    positions: Sequence[Position],
    plan: AllocationPlan,
    opportunities: Sequence[Opportunity],
) -> Decimal:
    """Weighted target APY minus weighted current APY."""
    apy_by_protocol: dict[str, Decimal] = {}
    for opp in opportunities:
        apy_by_protocol.setdefault(opp.protocol_id, opp.apy)

    target_apy = sum((w * apy_by_protocol.get(pid, _ZERO) for pid, w in plan.items()), _ZERO)
    current_apy = sum((p.weight * p.current_apy for p in positions), _ZERO)
    return target_apy - current_apy


class DecisionGate:
    """
    Stateful rebalance gate.

    The only state is the time of the last accepted rebalance. `decide` never
    mutates it; the caller confirms with `record_acceptance` once the transfers
    are actually submitted.
    """

    def __init__(
        self,
        settings: RebalanceSettings,
        last_rebalance_at: datetime | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.settings = settings
        self.last_rebalance_at = last_rebalance_at
        self._clock = clock or _utcnow

    @property
    def cooldown(self) -> timedelta:
        return timedelta(seconds=float(self.settings.min_time_between_rebalances))

    def state(self, now: datetime | None = None) -> GateState:
        now = now or self._clock()
        if self.last_rebalance_at is None or now - self.last_rebalance_at >= self.cooldown:
            return GateState.IDLE
        return GateState.COOLING

    def remaining_cooldown(self, now: datetime | None = None) -> timedelta:
        now = now or self._clock()
        if self.last_rebalance_at is None:
            return timedelta(0)
        return max(timedelta(0), self.last_rebalance_at + self.cooldown - now)

    def record_acceptance(self, now: datetime | None = None) -> None:
        """Start the cooldown window."""
        self.last_rebalance_at = now or self._clock()
        logger.info(
            f"{LOG_TAG_DECISION} Rebalance recorded at {self.last_rebalance_at.isoformat()}, "
            f"cooling for {self.cooldown}"
        )

    def decide(
        self,
        positions: Sequence[Position],
        plan: AllocationPlan,
        opportunities: Sequence[Opportunity],
        total_value: Decimal,
        now: datetime | None = None,
    ) -> RebalanceDecision:
        now = now or self._clock()
        s = self.settings

        cooldown = check_cooldown(self.last_rebalance_at, now, s.min_time_between_rebalances)
        if not cooldown.passed:
            return self._reject(cooldown.reason, now)

        available = check_opportunities_available(plan, s.min_risk_score)
        if not available.passed:
            return self._reject(available.reason, now)

        improvement = expected_improvement(positions, plan, opportunities)
        gain = check_min_improvement(improvement, s.min_apy_difference_to_rebalance)
        if not gain.passed:
            return self._reject(gain.reason, now, improvement=improvement)

        transfers = plan_transfers(
            current_weights(positions),
            plan,
            total_value,
            threshold=s.rebalance_threshold,
            dust_usd=s.dust_usd,
        )
        cost = Decimal(len(transfers)) * s.gas_cost_per_transfer_usd

        affordable = check_max_cost(cost, s.max_gas_cost_for_rebalance)
        if not affordable.passed:
            return self._reject(affordable.reason, now, transfers, improvement, cost)

        has_work = check_has_transfers(transfers)
        if not has_work.passed:
            return self._reject(has_work.reason, now, improvement=improvement)

        reason = (
            f"{REASON_REBALANCE}: {len(transfers)} transfers, "
            f"+{improvement:.2%} APY for ${cost:.2f} estimated cost"
        )
        logger.info(
            f"{LOG_TAG_DECISION} ACCEPT {reason}",
            extra={"should_act": True, "improvement": improvement, "cost_usd": cost},
        )
        return RebalanceDecision(
            should_act=True,
            reason=reason,
            transfers=tuple(transfers),
            expected_apy_improvement=improvement,
            estimated_cost_usd=cost,
            decided_at=now,
        )

    def _reject(
        self,
        reason: str,
        now: datetime,
        transfers: Sequence[TransferInstruction] = (),
        improvement: Decimal = _ZERO,
        cost: Decimal = _ZERO,
    ) -> RebalanceDecision:
        logger.info(
            f"{LOG_TAG_DECISION} REJECT {reason}",
            extra={"should_act": False, "improvement": improvement, "cost_usd": cost},
        )
        return RebalanceDecision(
            should_act=False,
            reason=reason,
            transfers=tuple(transfers),
            expected_apy_improvement=improvement,
            estimated_cost_usd=cost,
            decided_at=now,
        )
