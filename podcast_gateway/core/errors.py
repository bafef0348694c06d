"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    fields: list[dict[str, Any]]
    http_status: int
    retry_after: int
    scope: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when client input fails validation."""


class UpstreamAppError(AppError):
    """Raised when the upstream catalog is unreachable or answers with an error."""


class AggregationAppError(AppError):
    """Raised when a page/count pair cannot be assembled."""


@dataclass
class RateLimitAppError(AppError):
    """Raised when a client exhausts a rate limit budget.

    Attributes:
        headers: Retry-After and RateLimit-* headers for the 429 response.
    """

    headers: dict[str, str] = field(default_factory=dict)
