"""
Yield Feed Port: source of per-protocol APY and TVL observations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from yield_router.domain.models import YieldRecord


class YieldFeedPort(ABC):
    """Abstract interface for yield data providers."""

    @abstractmethod
    async def fetch_yield_records(self, asset: str) -> list[YieldRecord]:
        """
        Fetch the latest yield records for `asset`.

        Raises:
            FeedUnavailable: the upstream could not be reached or answered with an error.
        """
        ...

    async def close(self) -> None:
        """Release network resources. No-op by default."""
        return None
