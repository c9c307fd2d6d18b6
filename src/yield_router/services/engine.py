"""
Rebalance engine facade.

One cycle = fetch -> score -> rank -> allocate -> decide. Execution is a
separate step so a dry run or a cancelled cycle never starts the cooldown.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from yield_router.config.settings import Settings
from yield_router.domain.errors import DomainError, FeedUnavailable
from yield_router.domain.models import (
    AllocationPlan,
    Opportunity,
    Position,
    RebalanceDecision,
    RiskScore,
    YieldRecord,
)
from yield_router.observability.logging import LOG_TAG_DECISION, LOG_TAG_HEALTH, LOG_TAG_SCAN, get_logger
from yield_router.ports.executor import TransferExecutorPort
from yield_router.ports.vault import VaultPort
from yield_router.ports.yield_feed import YieldFeedPort
from yield_router.services.allocation import compute_allocation
from yield_router.services.gate import DecisionGate
from yield_router.services.ranking import rank_opportunities
from yield_router.services.registry import ProtocolRegistry
from yield_router.services.scoring import score_records

logger = get_logger(__name__)


@dataclass(slots=True)
class CycleResult:
    """Everything one decision cycle produced."""

    decision: RebalanceDecision
    plan: AllocationPlan
    opportunities: list[Opportunity] = field(default_factory=list)
    scores: dict[str, RiskScore] = field(default_factory=dict)
    records: list[YieldRecord] = field(default_factory=list)
    positions: list[Position] = field(default_factory=list)
    total_value: Decimal = Decimal("0")
    tx_refs: list[str] = field(default_factory=list)


class RebalanceEngine:
    """Runs decision cycles against injected feed and vault ports."""

    def __init__(
        self,
        settings: Settings,
        feed: YieldFeedPort,
        vault: VaultPort,
        gate: DecisionGate,
        registry: ProtocolRegistry,
    ):
        self.settings = settings
        self.feed = feed
        self.vault = vault
        self.gate = gate
        self.registry = registry

    async def run_cycle(self, vault_handle: str | None = None, now: datetime | None = None) -> CycleResult:
        """
        Produce one decision.

        FeedUnavailable propagates untouched; no decision is made and the gate
        is left as it was.
        """
        rb = self.settings.rebalance
        handle = vault_handle or self.settings.engine.vault_handle

        records = await self.feed.fetch_yield_records(self.settings.feed.asset)
        total_value, positions = await self.vault.fetch_positions(handle)

        scores = score_records(records, self.registry, self.settings.scoring)
        ranked = rank_opportunities(records, scores, rb.min_risk_score, self.registry)
        logger.info(
            f"{LOG_TAG_SCAN} {len(records)} records, {len(ranked)} passed risk filter "
            f"(min score {rb.min_risk_score})"
        )

        plan = compute_allocation(ranked, rb.min_protocols_for_diversity, rb.max_allocation_per_protocol)
        decision = self.gate.decide(positions, plan, ranked, total_value, now=now)

        return CycleResult(
            decision=decision,
            plan=plan,
            opportunities=ranked,
            scores=scores,
            records=records,
            positions=positions,
            total_value=total_value,
        )

    async def execute(
        self,
        result: CycleResult,
        executor: TransferExecutorPort,
        now: datetime | None = None,
    ) -> list[str]:
        """
        Submit an accepted decision's transfers, then start the cooldown.

        Rejected decisions are not submitted. If the executor raises, the gate
        stays idle and the error propagates.
        """
        decision = result.decision
        if not decision.should_act:
            return []

        refs = await executor.execute_transfers(list(decision.transfers))
        self.gate.record_acceptance(now)
        result.tx_refs = refs
        logger.info(
            f"{LOG_TAG_DECISION} Submitted {len(refs)} transfers (${decision.total_moved_usd:.2f} moved)",
            extra={"should_act": True, "cost_usd": decision.estimated_cost_usd},
        )
        return refs

    async def step(
        self,
        executor: TransferExecutorPort,
        vault_handle: str | None = None,
        now: datetime | None = None,
    ) -> CycleResult | None:
        """
        One loop iteration: decide, then execute.

        A DomainError (feed outage, malformed vault snapshot) skips the cycle
        and returns None. The gate is untouched, so the next cycle retries.
        """
        try:
            result = await self.run_cycle(vault_handle, now=now)
            await self.execute(result, executor, now=now)
        except FeedUnavailable as e:
            logger.warning(
                f"{LOG_TAG_HEALTH} Feed unavailable, skipping cycle: {e.message}",
                extra={"error_code": e.error_code},
            )
            return None
        except DomainError as e:
            logger.error(
                f"{LOG_TAG_HEALTH} Cycle skipped: {e.message}",
                extra={"error_code": e.error_code, "protocol": e.protocol, "chain": e.chain},
            )
            return None
        return result
