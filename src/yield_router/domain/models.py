"""
Canonical Domain Models.

All financial calculations use Decimal for precision.
Every model here is a cycle-scoped value object: rebuilt from fresh inputs
on each decision cycle and never mutated afterwards.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

# =============================================================================
# ENUMS
# =============================================================================


class StrategyCategory(str, Enum):
    """How a protocol generates yield."""

    LENDING = "lending"
    VAULT = "vault"
    LIQUID_STAKING = "liquid-staking"
    PERP_LP = "perp-lp"
    OTHER = "other"

    @classmethod
    def from_string(cls, value: str) -> StrategyCategory:
        """Parse category, falling back to OTHER for unrecognized values."""
        normalized = value.lower().strip().replace("_", "-")
        if normalized in ("lst", "staking"):
            return cls.LIQUID_STAKING
        for member in cls:
            if member.value == normalized:
                return member
        return cls.OTHER


class LiquidityTier(str, Enum):
    """Exit-liquidity risk tier."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class GateState(str, Enum):
    """Decision gate state machine."""

    IDLE = "IDLE"  # No pending cooldown
    COOLING = "COOLING"  # Within min_time_between_rebalances of last acceptance


class RouteActionType(str, Enum):
    """Action proposed by the cross-chain route advisor."""

    HOLD = "hold"
    DEPOSIT = "deposit"
    REBALANCE = "rebalance"


class RiskProfile(str, Enum):
    """Investor risk appetite for cross-chain routing."""

    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


# =============================================================================
# STATIC CONFIGURATION DATA
# =============================================================================


@dataclass(frozen=True, slots=True)
class ProtocolMeta:
    """Static per-protocol attributes (configuration, not runtime state)."""

    protocol_id: str
    name: str
    chain: str
    base_reputation: Decimal  # 0-100
    category: StrategyCategory = StrategyCategory.OTHER
    liquidity_tier: LiquidityTier = LiquidityTier.MEDIUM
    min_deposit_usd: Decimal = Decimal("0")
    project: str = ""  # Upstream aggregator slug


@dataclass(frozen=True, slots=True)
class ChainCost:
    """Per-chain cost table entry."""

    chain: str
    name: str
    bridge_cost_usd: Decimal
    gas_cost_usd: Decimal
    bridge_time_minutes: int = 0
    native_bridge: bool = False


# =============================================================================
# VALUE OBJECTS & MODELS
# =============================================================================


@dataclass(frozen=True, slots=True)
class YieldRecord:
    """Yield snapshot for one protocol pool.

    APYs are fractions (0.07 = 7%). Replaced wholesale on each refresh.
    """

    protocol_id: str
    chain: str
    asset: str
    total_apy: Decimal
    base_apy: Decimal = Decimal("0")
    reward_apy: Decimal = Decimal("0")
    tvl_usd: Decimal = Decimal("0")
    pool_id: str = ""
    observed_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True, slots=True)
class RiskScore:
    """Safety score (0-100, higher = safer) with its component sub-scores."""

    protocol_id: str
    tvl_score: Decimal
    reputation_score: Decimal
    age_score: Decimal
    exploit_score: Decimal
    total: Decimal

    @classmethod
    def neutral(cls, protocol_id: str, total: Decimal = Decimal("50")) -> RiskScore:
        """Default score for protocols missing from the registry."""
        zero = Decimal("0")
        return cls(protocol_id, zero, zero, zero, zero, total)


@dataclass(frozen=True, slots=True)
class Opportunity:
    """Ranked yield opportunity.

    The cost fields are only populated by the cross-chain ranker; for
    single-chain ranking they stay at zero.
    """

    protocol_id: str
    chain: str
    apy: Decimal
    risk_score: Decimal
    risk_adjusted_apy: Decimal
    tvl_usd: Decimal = Decimal("0")
    category: StrategyCategory = StrategyCategory.OTHER
    liquidity_tier: LiquidityTier = LiquidityTier.MEDIUM
    name: str = ""

    # Cross-chain cost analysis
    bridge_cost_usd: Decimal = Decimal("0")
    gas_cost_usd: Decimal = Decimal("0")
    total_cost_usd: Decimal = Decimal("0")
    min_hold_days: int = 0
    net_apy: Decimal = Decimal("0")
    breakeven_reachable: bool = True

    @property
    def display_name(self) -> str:
        return self.name or self.protocol_id


@dataclass(frozen=True, slots=True)
class Position:
    """Current vault position (supplied externally, read-only)."""

    protocol_id: str
    value_usd: Decimal
    weight: Decimal  # value / total vault value
    current_apy: Decimal = Decimal("0")


@dataclass(frozen=True)
class AllocationPlan(Mapping[str, Decimal]):
    """Target weights keyed by protocol id, in ranking order."""

    weights: tuple[tuple[str, Decimal], ...] = ()

    @classmethod
    def from_dict(cls, weights: Mapping[str, Decimal]) -> AllocationPlan:
        return cls(tuple((k, Decimal(v)) for k, v in weights.items()))

    def __getitem__(self, protocol_id: str) -> Decimal:
        for key, weight in self.weights:
            if key == protocol_id:
                return weight
        raise KeyError(protocol_id)

    def __iter__(self) -> Iterator[str]:
        return (key for key, _ in self.weights)

    def __len__(self) -> int:
        return len(self.weights)

    @property
    def protocols(self) -> list[str]:
        return [key for key, _ in self.weights]

    @property
    def total(self) -> Decimal:
        return sum((w for _, w in self.weights), Decimal("0"))

    @property
    def is_empty(self) -> bool:
        return not self.weights

    def weight_of(self, protocol_id: str) -> Decimal:
        """Target weight, 0 for protocols not in the plan."""
        return self.get(protocol_id, Decimal("0"))


@dataclass(frozen=True, slots=True)
class TransferInstruction:
    """Move `amount_usd` from one protocol to another."""

    source: str
    destination: str
    amount_usd: Decimal

    def __post_init__(self) -> None:
        if self.amount_usd <= 0:
            from yield_router.domain.errors import InvalidTransfer

            raise InvalidTransfer(
                f"Transfer amount must be positive, got {self.amount_usd}",
                protocol=self.source,
                details={"destination": self.destination},
            )


@dataclass(frozen=True, slots=True)
class RebalanceDecision:
    """Outcome of one gated decision cycle. Consumed once by the executor."""

    should_act: bool
    reason: str
    transfers: tuple[TransferInstruction, ...] = ()
    expected_apy_improvement: Decimal = Decimal("0")
    estimated_cost_usd: Decimal = Decimal("0")
    decided_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def total_moved_usd(self) -> Decimal:
        return sum((t.amount_usd for t in self.transfers), Decimal("0"))


@dataclass(frozen=True, slots=True)
class RouteCost:
    """Cost of moving a reference position onto an opportunity's chain."""

    bridge_cost_usd: Decimal
    gas_cost_usd: Decimal
    total_cost_usd: Decimal
    annualized_cost: Decimal
    net_apy: Decimal
    min_hold_days: int
    breakeven_reachable: bool


@dataclass(frozen=True, slots=True)
class HeldPosition:
    """Single position tracked by the cross-chain route advisor."""

    protocol_id: str
    chain: str
    amount_usd: Decimal
    apy: Decimal
    entered_at: datetime


@dataclass(frozen=True, slots=True)
class RouteAction:
    """Cross-chain advisor output."""

    action: RouteActionType
    reason: str
    opportunity: Opportunity | None = None
    amount_usd: Decimal | None = None


@dataclass(frozen=True, slots=True)
class SustainabilityReport:
    """Whether yield on a principal covers a daily operating budget."""

    daily_yield: Decimal
    daily_cost: Decimal
    net_daily: Decimal
    is_sustainable: bool
    days_to_sustainability: int
    monthly_profit: Decimal
    required_principal: Decimal | None
    required_apy: Decimal | None
