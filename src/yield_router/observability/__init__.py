"""Observability: logging."""

from yield_router.observability.logging import (
    LOG_TAG_DECISION,
    LOG_TAG_HEALTH,
    LOG_TAG_SCAN,
    get_logger,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "LOG_TAG_DECISION",
    "LOG_TAG_HEALTH",
    "LOG_TAG_SCAN",
]
