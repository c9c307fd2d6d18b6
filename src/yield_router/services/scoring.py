"""
Risk scoring for yield records.

Two scorers share the registry:
- the four-part safety score (TVL, reputation, age, exploit history)
- the cross-chain score (reputation adjusted by TVL, liquidity tier and strategy)

Both are deterministic: identical inputs always produce identical scores.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from yield_router.config.settings import CrossChainSettings, ScoringSettings
from yield_router.domain.errors import UnknownProtocol
from yield_router.domain.models import ProtocolMeta, RiskScore, YieldRecord
from yield_router.observability.logging import get_logger
from yield_router.services.registry import ProtocolRegistry

logger = get_logger(__name__)

_ZERO = Decimal("0")
_ONE = Decimal("1")
_HUNDRED = Decimal("100")
_TENTH = Decimal("0.1")


def _round1(value: Decimal) -> Decimal:
    return value.quantize(_TENTH, rounding=ROUND_HALF_UP)


def clamp_score(value: Decimal) -> Decimal:
    """Clamp a score to [0, 100]."""
    return max(_ZERO, min(_HUNDRED, value))


def _log_scaled(value: Decimal, scale: Decimal, weight: Decimal, cap: Decimal) -> Decimal:
    """min(cap, log10(max(1, value / scale)) * weight)."""
    ratio = max(_ONE, value / scale)
    return min(cap, ratio.log10() * weight)


# =============================================================================
# Four-part safety score
# =============================================================================


def score_record(
    record: YieldRecord,
    meta: ProtocolMeta,
    settings: ScoringSettings | None = None,
) -> RiskScore:
    """
    Score one record against its protocol metadata.

    Sub-scores:
        tvl:        min(cap, log10(max(1, tvl / scale)) * weight)
        reputation: base_reputation / 100 * cap
        age:        constant for every tracked protocol
        exploit:    cap - penalty when reputation is below the clean-history threshold

    Each sub-score and the total are rounded to one decimal; the total is clamped to [0, 100].
    """
    s = settings or ScoringSettings()

    tvl_score = _log_scaled(record.tvl_usd, s.tvl_scale_usd, s.tvl_weight, s.tvl_cap)
    reputation_score = meta.base_reputation / _HUNDRED * s.reputation_cap
    age_score = s.age_score
    penalty = s.exploit_penalty if meta.base_reputation < s.clean_history_threshold else _ZERO
    exploit_score = s.exploit_cap - penalty

    total = clamp_score(tvl_score + reputation_score + age_score + exploit_score)

    return RiskScore(
        protocol_id=record.protocol_id,
        tvl_score=_round1(tvl_score),
        reputation_score=_round1(reputation_score),
        age_score=_round1(age_score),
        exploit_score=_round1(exploit_score),
        total=_round1(total),
    )


def score_records(
    records: Iterable[YieldRecord],
    registry: ProtocolRegistry,
    settings: ScoringSettings | None = None,
) -> dict[str, RiskScore]:
    """
    Score a batch of records keyed by protocol id.

    Unknown protocols fall back to the neutral score so a single unrecognized
    protocol never blocks the others.
    """
    s = settings or ScoringSettings()
    scores: dict[str, RiskScore] = {}

    for record in records:
        try:
            meta = registry.get_protocol(record.protocol_id)
        except UnknownProtocol as e:
            logger.warning(
                f"[{record.protocol_id}] {e.message}; using neutral score {s.neutral_score}",
                extra={"protocol": record.protocol_id, "error_code": e.error_code},
            )
            scores[record.protocol_id] = RiskScore.neutral(record.protocol_id, s.neutral_score)
            continue
        scores[record.protocol_id] = score_record(record, meta, s)

    return scores


# =============================================================================
# Cross-chain score
# =============================================================================


def cross_chain_risk_score(
    record: YieldRecord,
    meta: ProtocolMeta,
    settings: CrossChainSettings | None = None,
) -> Decimal:
    """
    Reputation plus TVL bonus, liquidity-tier penalty and strategy adjustment.

    TVL bonus is +10 at $100M+ TVL and scales down logarithmically.
    """
    s = settings or CrossChainSettings()

    tvl_bonus = _log_scaled(record.tvl_usd, s.tvl_bonus_scale_usd, s.tvl_bonus_weight, s.tvl_bonus_cap)
    liquidity_penalty = s.liquidity_penalties.get(meta.liquidity_tier.value, _ZERO)
    strategy_adjustment = s.strategy_adjustments.get(meta.category.value, _ZERO)

    return clamp_score(meta.base_reputation + tvl_bonus + liquidity_penalty + strategy_adjustment)
