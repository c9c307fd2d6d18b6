"""
Services: scoring, ranking, allocation, planning and gating.

Pure decision logic over domain models; I/O stays behind the ports.
"""

from yield_router.services.allocation import compute_allocation
from yield_router.services.costs import calculate_self_sustainability, compute_route_cost
from yield_router.services.engine import CycleResult, RebalanceEngine
from yield_router.services.gate import DecisionGate
from yield_router.services.planner import plan_transfers
from yield_router.services.ranking import rank_cross_chain_opportunities, rank_opportunities
from yield_router.services.registry import ProtocolRegistry
from yield_router.services.routing import RouteAdvisor, select_best_opportunity
from yield_router.services.scoring import score_records

__all__ = [
    "compute_allocation",
    "calculate_self_sustainability",
    "compute_route_cost",
    "CycleResult",
    "RebalanceEngine",
    "DecisionGate",
    "plan_transfers",
    "rank_cross_chain_opportunities",
    "rank_opportunities",
    "ProtocolRegistry",
    "RouteAdvisor",
    "select_best_opportunity",
    "score_records",
]
