from datetime import UTC, datetime, timedelta
from decimal import Decimal

from yield_router.domain.models import AllocationPlan, TransferInstruction
from yield_router.domain.rules import (
    REASON_COOLDOWN,
    REASON_COST,
    REASON_COST_RECOVERY,
    REASON_LOW_IMPROVEMENT,
    REASON_MIN_HOLD,
    REASON_NO_OPPORTUNITIES,
    REASON_NOOP,
    check_cooldown,
    check_has_transfers,
    check_max_cost,
    check_min_hold,
    check_min_improvement,
    check_opportunities_available,
    check_route_improvement,
    days_to_recover_cost,
)

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)
DAY = Decimal("86400")


class TestCooldown:
    def test_no_previous_rebalance_passes(self):
        assert check_cooldown(None, NOW, DAY).passed

    def test_within_cooldown_fails_with_remaining_time(self):
        result = check_cooldown(NOW - timedelta(hours=1), NOW, DAY)
        assert not result.passed
        assert result.reason.startswith(REASON_COOLDOWN)
        assert "60m ago" in result.reason
        assert "1380m remaining" in result.reason

    def test_exactly_at_boundary_passes(self):
        assert check_cooldown(NOW - timedelta(days=1), NOW, DAY).passed


def test_empty_plan_has_no_opportunities():
    result = check_opportunities_available(AllocationPlan(), Decimal("60"))
    assert not result.passed
    assert result.reason.startswith(REASON_NO_OPPORTUNITIES)
    assert check_opportunities_available(AllocationPlan.from_dict({"x": Decimal("1")}), Decimal("60")).passed


def test_min_improvement_threshold_is_inclusive():
    assert check_min_improvement(Decimal("0.02"), Decimal("0.02")).passed
    result = check_min_improvement(Decimal("0.019"), Decimal("0.02"))
    assert not result.passed
    assert result.reason.startswith(REASON_LOW_IMPROVEMENT)


def test_max_cost_threshold_is_inclusive():
    assert check_max_cost(Decimal("1.00"), Decimal("1.0")).passed
    result = check_max_cost(Decimal("1.20"), Decimal("1.0"))
    assert not result.passed
    assert result.reason == f"{REASON_COST}: Gas cost ($1.20) exceeds max ($1.00)"


def test_has_transfers():
    assert not check_has_transfers([]).passed
    assert check_has_transfers([TransferInstruction("a", "b", Decimal("1"))]).passed
    assert check_has_transfers(()).reason.startswith(REASON_NOOP)


def test_min_hold():
    result = check_min_hold(3, 7)
    assert not result.passed
    assert result.reason == f"{REASON_MIN_HOLD}: Holding current position (3d < 7d min hold)"
    assert check_min_hold(7, 7).passed


class TestRouteImprovement:
    def test_days_to_recover_cost(self):
        # $1000 * 3.65% = $36.50/yr = $0.10/day -> $1 pays back in 10 days
        assert days_to_recover_cost(Decimal("1"), Decimal("1000"), Decimal("0.0365")) == Decimal("10")

    def test_never_recovers_without_gain(self):
        assert days_to_recover_cost(Decimal("1"), Decimal("1000"), Decimal("0")) is None
        assert days_to_recover_cost(Decimal("1"), Decimal("1000"), Decimal("-0.01")) is None

    def test_low_improvement(self):
        result = check_route_improvement(Decimal("0.01"), Decimal("0.02"), Decimal("5"), Decimal("30"))
        assert not result.passed
        assert result.reason.startswith(REASON_LOW_IMPROVEMENT)

    def test_slow_recovery(self):
        result = check_route_improvement(Decimal("0.03"), Decimal("0.02"), Decimal("45"), Decimal("30"))
        assert not result.passed
        assert result.reason.startswith(REASON_COST_RECOVERY)
        assert "recovery: 45d" in result.reason

    def test_passes(self):
        assert check_route_improvement(Decimal("0.03"), Decimal("0.02"), Decimal("12"), Decimal("30")).passed
