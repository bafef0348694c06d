"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return consistent JSON responses with proper
HTTP status codes and traceability.

Design:
- ValidationAppError / RequestValidationError → 400 with field-level detail
- RateLimitAppError → 429 with retryAfter
- UpstreamAppError / AggregationAppError → 500, generic message only
- Unexpected Exception → generic 500 (safety net)
- All responses include request_id for log correlation
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from podcast_gateway.core.errors import (
    AggregationAppError,
    AppError,
    RateLimitAppError,
    UpstreamAppError,
)
from podcast_gateway.core.logging import get_request_id

logger = logging.getLogger(__name__)

GENERIC_UPSTREAM_MESSAGE = "Unable to fetch podcast data at this time"


def _error_body(code: str, message: str, details: Any = None) -> dict[str, Any]:
    error_content: dict[str, Any] = {
        "code": code,
        "message": message,
        "request_id": get_request_id(),
    }
    if details:
        error_content["details"] = details
    return {"error": error_content}


def _status_for(exc: AppError) -> int:
    if isinstance(exc, RateLimitAppError):
        return 429
    if isinstance(exc, (UpstreamAppError, AggregationAppError)):
        return 500
    return 400


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Server-side failures (upstream, aggregation) are logged with their cause
    but answered with a generic message and no details, so upstream status
    codes and addresses never reach the client.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = _status_for(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "cause": repr(exc.__cause__) if exc.__cause__ else None,
            "status_code": status_code,
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    if status_code >= 500:
        return JSONResponse(
            status_code=status_code,
            content=_error_body("podcast_fetch_failed", GENERIC_UPSTREAM_MESSAGE),
        )

    content = _error_body(exc.code, exc.message, exc.details)
    headers: dict[str, str] | None = None

    if isinstance(exc, RateLimitAppError):
        retry_after = (exc.details or {}).get("retry_after", 0)
        content["retryAfter"] = retry_after
        headers = exc.headers or None

    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Turn FastAPI query/body validation failures into 400 responses.

    Each failing field is reported with its location, message and error type.
    The rejected input value is not echoed back.
    """
    fields = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "query"),
            "location": err.get("loc", ("",))[0],
            "message": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]

    logger.info(
        "request_validation_failed",
        extra={
            "request_path": request.url.path,
            "fields": [f["field"] for f in fields],
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=400,
        content=_error_body(
            "invalid_request_parameters",
            "Invalid request parameters",
            {"fields": fields},
        ),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning generic message.
    Prevents information leakage (no stack traces to client).
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=500,
        content=_error_body(
            "internal_server_error",
            "An unexpected error occurred. Please try again later.",
        ),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with FastAPI app.

    Must be called during app initialization, before route registration.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
