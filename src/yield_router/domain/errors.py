"""
Domain Error Taxonomy.

All domain-specific exceptions with clear categorization.
None of these is fatal to the process: each is either resolved internally
(with a log line) or surfaced to the caller to retry on the next cycle.
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """
    Base class for all domain errors.

    Includes structured error info for logging and debugging.
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(
        self,
        message: str,
        *,
        protocol: str | None = None,
        chain: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.protocol = protocol
        self.chain = chain
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for logging."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "protocol": self.protocol,
            "chain": self.chain,
            "details": self.details,
        }


# =============================================================================
# Upstream Data Errors
# =============================================================================


class FeedUnavailable(DomainError):
    """Upstream yield feed could not be fetched.

    Distinct from an empty ranking: the cycle is aborted and no decision is
    produced.
    """

    error_code = "FEED_UNAVAILABLE"

    def __init__(self, message: str, *, status: int | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.status = status
        if status is not None:
            self.details["status"] = status


# =============================================================================
# Registry Errors
# =============================================================================


class UnknownProtocol(DomainError):
    """Protocol is not present in the static registry."""

    error_code = "UNKNOWN_PROTOCOL"


class UnknownChain(DomainError):
    """Chain is not present in the chain cost table."""

    error_code = "UNKNOWN_CHAIN"


# =============================================================================
# Allocation & Planning Errors
# =============================================================================


class DegenerateAllocation(DomainError):
    """All candidate risk-adjusted APYs are non-positive.

    Used for diagnostics only; the optimizer falls back to equal weights.
    """

    error_code = "DEGENERATE_ALLOCATION"


class InvalidTransfer(DomainError):
    """Transfer instruction with a non-positive amount."""

    error_code = "INVALID_TRANSFER"


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(DomainError):
    """Settings failed validation."""

    error_code = "CONFIGURATION_ERROR"

    def __init__(self, message: str, *, errors: list[str] | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.errors = errors or []
        self.details["errors"] = list(self.errors)
