"""
Transfer Executor Port: submits accepted transfer instructions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from yield_router.domain.models import TransferInstruction


class TransferExecutorPort(ABC):
    """Abstract interface for transfer execution."""

    @abstractmethod
    async def execute_transfers(self, transfers: list[TransferInstruction]) -> list[str]:
        """
        Submit transfers in order.

        Returns:
            One reference (transaction id or simulated id) per transfer.
        """
        ...
