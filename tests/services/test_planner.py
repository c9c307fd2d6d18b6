from decimal import Decimal

from yield_router.domain.models import AllocationPlan, Position, TransferInstruction
from yield_router.services.planner import current_weights, plan_transfers, split_deltas

TOTAL = Decimal("1000")


def _plan(**weights: str) -> AllocationPlan:
    return AllocationPlan.from_dict({k: Decimal(v) for k, v in weights.items()})


def test_single_source_single_destination():
    transfers = plan_transfers({"X": Decimal("1.0")}, _plan(X="0.6", Y="0.4"), TOTAL)
    assert transfers == [TransferInstruction("X", "Y", Decimal("400.0"))]


def test_greedy_match_across_multiple_legs():
    current = {"a": Decimal("0.5"), "b": Decimal("0.5")}
    target = _plan(c="0.3", d="0.3", a="0.4")

    transfers = plan_transfers(current, target, TOTAL)

    assert [(t.source, t.destination, t.amount_usd) for t in transfers] == [
        ("a", "c", Decimal("100")),
        ("b", "c", Decimal("200")),
        ("b", "d", Decimal("300")),
    ]


def test_transfer_sum_is_min_of_sides():
    # sources 500 (b leaves entirely), destinations 300
    current = {"a": Decimal("0.5"), "b": Decimal("0.5")}
    target = _plan(a="0.8")

    sources, destinations = split_deltas(current, target, TOTAL)
    transfers = plan_transfers(current, target, TOTAL)

    total_src = sum(amount for _, amount in sources)
    total_dst = sum(amount for _, amount in destinations)
    assert sum(t.amount_usd for t in transfers) == min(total_src, total_dst)



def test_no_protocol_left_beyond_threshold_after_matching():
    current = {"a": Decimal("0.35"), "b": Decimal("0.25"), "c": Decimal("0.22"), "d": Decimal("0.18")}
    target = _plan(e="0.20", a="0.10", f="0.27", b="0.05", c="0.38")
    threshold = Decimal("0.01")

    transfers = plan_transfers(current, target, TOTAL, threshold=threshold)

    held = {pid: w * TOTAL for pid, w in current.items()}
    for t in transfers:
        held[t.source] = held.get(t.source, Decimal("0")) - t.amount_usd
        held[t.destination] = held.get(t.destination, Decimal("0")) + t.amount_usd

    for pid in set(held) | set(target):
        residual = held.get(pid, Decimal("0")) - target.weight_of(pid) * TOTAL
        assert abs(residual) <= threshold * TOTAL, pid
    # a->e, a->f, b->f, d->f, d->c
    assert len(transfers) == 5


def test_current_equals_target_gives_no_transfers():
    current = {"a": Decimal("0.5"), "b": Decimal("0.5")}
    assert plan_transfers(current, _plan(a="0.5", b="0.5"), TOTAL) == []


def test_deltas_within_threshold_are_ignored():
    current = {"a": Decimal("0.505"), "b": Decimal("0.495")}
    assert plan_transfers(current, _plan(a="0.5", b="0.5"), TOTAL) == []


def test_discovery_order_target_then_current_only():
    current = {"old": Decimal("0.5"), "a": Decimal("0.5")}
    sources, destinations = split_deltas(current, _plan(b="0.5", a="0.5"), TOTAL)
    assert [pid for pid, _ in destinations] == ["b"]
    assert [pid for pid, _ in sources] == ["old"]


def test_dust_remainder_is_skipped():
    # a gives 100.005, c only takes 100: the 0.005 remainder is dust
    current = {"a": Decimal("0.100005")}
    target = _plan(c="0.1")
    transfers = plan_transfers(current, target, TOTAL, threshold=Decimal("0"))
    assert transfers == [TransferInstruction("a", "c", Decimal("100.0"))]


def test_every_transfer_amount_is_positive():
    current = {"a": Decimal("0.2"), "b": Decimal("0.3"), "c": Decimal("0.5")}
    target = _plan(d="0.25", e="0.25", c="0.25", a="0.25")
    transfers = plan_transfers(current, target, TOTAL)
    assert transfers
    assert all(t.amount_usd > 0 for t in transfers)


def test_current_weights_from_positions():
    positions = [
        Position("a", Decimal("300"), Decimal("0.3")),
        Position("b", Decimal("500"), Decimal("0.5")),
        Position("a", Decimal("200"), Decimal("0.2")),
    ]
    assert current_weights(positions) == {"a": Decimal("0.5"), "b": Decimal("0.5")}
