"""
Allocation optimizer.

Weights follow risk-adjusted APY, capped per protocol, then renormalized.
The cap is applied BEFORE renormalization, so it bounds each protocol's raw
share rather than its final weight.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from yield_router.domain.errors import DegenerateAllocation
from yield_router.domain.models import AllocationPlan, Opportunity
from yield_router.observability.logging import get_logger

logger = get_logger(__name__)

_ZERO = Decimal("0")
_ONE = Decimal("1")


def select_candidates(ranked: Sequence[Opportunity], diversity_floor: int) -> list[Opportunity]:
    """Top max(diversity_floor, available) opportunities."""
    selected = list(ranked[: max(diversity_floor, len(ranked))])
    if selected and len(selected) < diversity_floor:
        logger.warning(
            f"Only {len(selected)} opportunities available, below diversity floor of {diversity_floor}"
        )
    return selected


def _equal_weights(selected: Sequence[Opportunity]) -> list[Decimal]:
    share = _ONE / Decimal(len(selected))
    return [share] * len(selected)


def compute_allocation(
    ranked: Sequence[Opportunity],
    diversity_floor: int,
    per_protocol_cap: Decimal,
) -> AllocationPlan:
    """
    Target weights over a ranked, risk-filtered opportunity list.

    Steps:
        1. select the top max(diversity_floor, len(ranked)) opportunities
        2. raw weight = risk-adjusted APY / sum of risk-adjusted APYs
        3. clamp each raw weight to `per_protocol_cap`
        4. renormalize so the weights sum to 1

    Non-positive risk-adjusted APYs contribute no raw weight. If the selection
    has no positive risk-adjusted APY at all, every selected protocol gets an
    equal weight instead.

    Returns an empty plan for empty input.
    """
    selected = select_candidates(ranked, diversity_floor)
    if not selected:
        return AllocationPlan()

    positive = [max(_ZERO, o.risk_adjusted_apy) for o in selected]
    total_positive = sum(positive, _ZERO)

    if total_positive <= 0:
        degenerate = DegenerateAllocation(
            f"All {len(selected)} candidate risk-adjusted APYs are non-positive; equal-weighting",
            details={"protocols": [o.protocol_id for o in selected]},
        )
        logger.warning(degenerate.message, extra={"error_code": degenerate.error_code})
        weights = _equal_weights(selected)
    else:
        raw = [p / total_positive for p in positive]
        capped = [min(w, per_protocol_cap) for w in raw]
        capped_total = sum(capped, _ZERO)
        weights = [w / capped_total for w in capped] if capped_total > 0 else _equal_weights(selected)

    plan: dict[str, Decimal] = {}
    for opportunity, weight in zip(selected, weights, strict=True):
        # Same protocol on two pools: keep the combined share
        plan[opportunity.protocol_id] = plan.get(opportunity.protocol_id, _ZERO) + weight

    logger.debug(
        "Target allocation: " + ", ".join(f"{pid}={w:.2%}" for pid, w in plan.items())
    )
    return AllocationPlan.from_dict(plan)
