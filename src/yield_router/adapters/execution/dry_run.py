"""
Dry-run transfer executor.

Logs each instruction and returns simulated references. Nothing leaves the
process.
"""

from __future__ import annotations

from collections import deque

from yield_router.domain.models import TransferInstruction
from yield_router.observability.logging import LOG_TAG_DECISION, get_logger
from yield_router.ports.executor import TransferExecutorPort

logger = get_logger(__name__)

DEFAULT_HISTORY_SIZE = 1000


class DryRunExecutor(TransferExecutorPort):
    """Simulates transfers; keeps the most recent ones for inspection."""

    def __init__(self, history_size: int = DEFAULT_HISTORY_SIZE) -> None:
        self.history: deque[TransferInstruction] = deque(maxlen=history_size)
        self.submitted = 0

    async def execute_transfers(self, transfers: list[TransferInstruction]) -> list[str]:
        refs: list[str] = []
        for transfer in transfers:
            self.submitted += 1
            ref = f"dry-run-{self.submitted}"
            self.history.append(transfer)
            refs.append(ref)
            logger.info(
                f"{LOG_TAG_DECISION} [DRY RUN] {transfer.source} -> {transfer.destination}: "
                f"${transfer.amount_usd:.2f} ({ref})",
                extra={"protocol": transfer.destination},
            )
        return refs
