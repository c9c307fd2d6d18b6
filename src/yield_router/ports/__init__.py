"""
Ports: Abstract interfaces for external dependencies.

The decision engine depends only on these interfaces, not on concrete
feed, vault or executor implementations.
"""

from yield_router.ports.executor import TransferExecutorPort
from yield_router.ports.vault import VaultPort
from yield_router.ports.yield_feed import YieldFeedPort

__all__ = ["YieldFeedPort", "VaultPort", "TransferExecutorPort"]
