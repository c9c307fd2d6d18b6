"""
Domain Layer: Core value objects, error taxonomy, and gate rules.

This layer has NO external dependencies (no HTTP types, no config types).
All types here are canonical and used throughout the application.
"""

from yield_router.domain.errors import (
    ConfigurationError,
    DegenerateAllocation,
    DomainError,
    FeedUnavailable,
    InvalidTransfer,
    UnknownChain,
    UnknownProtocol,
)
from yield_router.domain.models import (
    AllocationPlan,
    ChainCost,
    GateState,
    HeldPosition,
    LiquidityTier,
    Opportunity,
    Position,
    ProtocolMeta,
    RebalanceDecision,
    RiskProfile,
    RiskScore,
    RouteAction,
    RouteActionType,
    RouteCost,
    StrategyCategory,
    SustainabilityReport,
    TransferInstruction,
    YieldRecord,
)

__all__ = [
    # Enums
    "StrategyCategory",
    "LiquidityTier",
    "GateState",
    "RouteActionType",
    "RiskProfile",
    # Models
    "YieldRecord",
    "ProtocolMeta",
    "ChainCost",
    "RiskScore",
    "Opportunity",
    "Position",
    "AllocationPlan",
    "TransferInstruction",
    "RebalanceDecision",
    "RouteCost",
    "HeldPosition",
    "RouteAction",
    "SustainabilityReport",
    # Errors
    "DomainError",
    "FeedUnavailable",
    "UnknownProtocol",
    "UnknownChain",
    "DegenerateAllocation",
    "InvalidTransfer",
    "ConfigurationError",
]
