"""Per-IP rate limiting for the HTTP layer.

This module wires the rate limiting adapter into the HTTP layer.

Three scopes are enforced, each with its own counter store:
- global: every request, applied as middleware before CORS and routing
- graphql: /graphql only, skipped for browsers in development (GraphiQL)
- podcasts: the REST podcast listing

Stores are built per application in build_rate_limit_policies() and kept on
``app.state``, so tests and multi-instance deployments can inject their own.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

from fastapi import Request, Response
from starlette.requests import HTTPConnection

from podcast_gateway.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from podcast_gateway.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from podcast_gateway.core.config import Settings
from podcast_gateway.core.errors import RateLimitAppError
from podcast_gateway.core.exception_handlers import app_error_handler

logger = logging.getLogger(__name__)

GLOBAL_SCOPE = "global"
GRAPHQL_SCOPE = "graphql"
PODCASTS_SCOPE = "podcasts"


@dataclass(frozen=True)
class RateLimitPolicy:
    """A named limit: counter store, client-facing message and skip rule."""

    scope: str
    limiter: AbstractRateLimiter
    message: str
    skip: Callable[[HTTPConnection], bool] | None = None


def _describe_window(seconds: int) -> str:
    if seconds % 60 == 0:
        minutes = seconds // 60
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    return f"{seconds} seconds"


def build_rate_limit_policies(
    cfg: Settings,
    *,
    clock: Callable[[], float] = time.time,
) -> dict[str, RateLimitPolicy]:
    """Build the global, GraphQL and podcasts policies from settings.

    Returns an empty mapping when rate limiting is disabled.
    """
    app_cfg = cfg.app
    if not app_cfg.rate_limit_enabled:
        return {}

    def _browser_in_development(connection: HTTPConnection) -> bool:
        return cfg.is_development and "Mozilla" in connection.headers.get("user-agent", "")

    podcasts_window = app_cfg.podcasts_rate_limit_window_seconds

    return {
        GLOBAL_SCOPE: RateLimitPolicy(
            scope=GLOBAL_SCOPE,
            limiter=InMemoryFixedWindowRateLimiter(
                limit=app_cfg.global_rate_limit_requests,
                window_seconds=app_cfg.global_rate_limit_window_seconds,
                clock=clock,
            ),
            message="You have exceeded the rate limit. Please try again later.",
        ),
        GRAPHQL_SCOPE: RateLimitPolicy(
            scope=GRAPHQL_SCOPE,
            limiter=InMemoryFixedWindowRateLimiter(
                limit=app_cfg.graphql_rate_limit_requests,
                window_seconds=app_cfg.graphql_rate_limit_window_seconds,
                clock=clock,
            ),
            message="Too many GraphQL queries from this IP, please try again later.",
            skip=_browser_in_development,
        ),
        PODCASTS_SCOPE: RateLimitPolicy(
            scope=PODCASTS_SCOPE,
            limiter=InMemoryFixedWindowRateLimiter(
                limit=app_cfg.podcasts_rate_limit_requests,
                window_seconds=podcasts_window,
                clock=clock,
            ),
            message=(
                "Too many podcast requests from this IP. Please wait "
                f"{_describe_window(podcasts_window)} before making more requests."
            ),
        ),
    }


def client_ip(connection: HTTPConnection) -> str:
    """Identify the client by the address of the connecting peer."""
    return connection.client.host if connection.client else "unknown"


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing client addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Standard RateLimit-* headers, plus Retry-After when blocked."""
    headers = {
        "RateLimit-Limit": str(result.limit),
        "RateLimit-Remaining": str(result.remaining),
        "RateLimit-Reset": str(result.reset_after_seconds),
    }
    if result.retry_after_seconds is not None:
        headers["Retry-After"] = str(result.retry_after_seconds)
    return headers


def check_rate_limit(
    policy: RateLimitPolicy,
    connection: HTTPConnection,
    *,
    include_headers: bool,
) -> RateLimitResult | None:
    """Consume one unit of ``policy`` for the connecting client.

    Returns:
        The limiter result, or None when the policy skips this connection.

    Raises:
        RateLimitAppError: When the client exhausted the policy's budget.
    """
    if policy.skip is not None and policy.skip(connection):
        logger.debug("rate_limit.skipped", extra={"scope": policy.scope})
        return None

    key = client_ip(connection)
    result = policy.limiter.consume(key)
    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "scope": policy.scope,
                "key_hash": _hash_limiter_key(key),
                "limit": result.limit,
                "remaining": result.remaining,
            },
        )
        return result

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "scope": policy.scope,
            "key_hash": _hash_limiter_key(key),
            "limit": result.limit,
            "window_s": policy.limiter.window_seconds,
            "retry_after_s": retry_after,
        },
    )

    raise RateLimitAppError(
        code="rate_limit_exceeded",
        message=policy.message,
        details={"retry_after": retry_after, "scope": policy.scope},
        headers=rate_limit_headers(result) if include_headers else {},
    )


async def global_rate_limit_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """HTTP middleware enforcing the global per-IP limit on every request.

    Runs outside routing, so a throttled request is answered here through the
    regular AppError handler instead of being raised.
    """
    policy = request.app.state.rate_limit_policies.get(GLOBAL_SCOPE)
    if policy is None:
        return await call_next(request)

    include_headers = request.app.state.settings.app.rate_limit_include_headers
    try:
        result = check_rate_limit(policy, request, include_headers=include_headers)
    except RateLimitAppError as exc:
        return await app_error_handler(request, exc)

    response = await call_next(request)
    if result is not None and include_headers:
        for name, value in rate_limit_headers(result).items():
            response.headers.setdefault(name, value)
    return response


def enforce_rate_limit(scope: str) -> Callable[[HTTPConnection], Awaitable[None]]:
    """Build a FastAPI dependency enforcing the policy named ``scope``.

    Usage:
        @router.get("/", dependencies=[Depends(enforce_rate_limit("podcasts"))])
    """

    async def _enforce(connection: HTTPConnection) -> None:
        policy = connection.app.state.rate_limit_policies.get(scope)
        if policy is None:
            return
        check_rate_limit(
            policy,
            connection,
            include_headers=connection.app.state.settings.app.rate_limit_include_headers,
        )

    return _enforce
