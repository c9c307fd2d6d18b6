"""
Rebalance planner: diff current weights against a target plan and pair the
over-weight protocols (sources) with the under-weight ones (destinations).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

from yield_router.domain.models import AllocationPlan, Position, TransferInstruction

_ZERO = Decimal("0")
DEFAULT_THRESHOLD = Decimal("0.01")
DEFAULT_DUST_USD = Decimal("0.01")


@dataclass
class _Leg:
    protocol_id: str
    remaining: Decimal


def current_weights(positions: list[Position] | tuple[Position, ...]) -> dict[str, Decimal]:
    """Weight per protocol, summing duplicates, in position order."""
    weights: dict[str, Decimal] = {}
    for pos in positions:
        weights[pos.protocol_id] = weights.get(pos.protocol_id, _ZERO) + pos.weight
    return weights


def split_deltas(
    current: Mapping[str, Decimal],
    target: AllocationPlan,
    total_value: Decimal,
    threshold: Decimal = DEFAULT_THRESHOLD,
) -> tuple[list[tuple[str, Decimal]], list[tuple[str, Decimal]]]:
    """
    Sources and destinations in discovery order (target order, then current-only).

    Deltas within +/- threshold are ignored as rounding noise.
    """
    order = list(target) + [pid for pid in current if pid not in target]

    sources: list[tuple[str, Decimal]] = []
    destinations: list[tuple[str, Decimal]] = []
    for protocol_id in order:
        delta = target.weight_of(protocol_id) - current.get(protocol_id, _ZERO)
        if delta < -threshold:
            sources.append((protocol_id, abs(delta) * total_value))
        elif delta > threshold:
            destinations.append((protocol_id, delta * total_value))
    return sources, destinations


def plan_transfers(
    current: Mapping[str, Decimal],
    target: AllocationPlan,
    total_value: Decimal,
    threshold: Decimal = DEFAULT_THRESHOLD,
    dust_usd: Decimal = DEFAULT_DUST_USD,
) -> list[TransferInstruction]:
    """
    Greedy two-pointer match of sources to destinations.

    Each step moves min(remaining source, remaining destination) and advances
    past whichever side drops below `dust_usd`. Terminates after at most
    len(sources) + len(destinations) steps. The sum of all transfers equals
    min(total sources, total destinations) up to dust.
    """
    source_amounts, destination_amounts = split_deltas(current, target, total_value, threshold)
    sources = [_Leg(pid, amount) for pid, amount in source_amounts]
    destinations = [_Leg(pid, amount) for pid, amount in destination_amounts]

    transfers: list[TransferInstruction] = []
    i = j = 0
    while i < len(sources) and j < len(destinations):
        src, dst = sources[i], destinations[j]
        move = min(src.remaining, dst.remaining)

        if move > 0:
            transfers.append(TransferInstruction(src.protocol_id, dst.protocol_id, move))
            src.remaining -= move
            dst.remaining -= move

        if src.remaining <= 0 or src.remaining < dust_usd:
            i += 1
        if dst.remaining <= 0 or dst.remaining < dust_usd:
            j += 1

    return transfers
