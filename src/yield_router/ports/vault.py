"""
Vault Port: read-only view of the managed vault's positions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from yield_router.domain.models import Position


class VaultPort(ABC):
    """Abstract interface for reading vault state."""

    @abstractmethod
    async def fetch_positions(self, vault_handle: str) -> tuple[Decimal, list[Position]]:
        """
        Current vault state.

        Returns:
            (total vault value in USD, positions with weights summing to ~1)
        """
        ...
