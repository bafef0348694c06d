"""HTTP middleware for request correlation and CORS.

request_id_middleware:
- Accepts incoming X-Request-ID header or generates a UUID
- Stores request_id in contextvars for logs and error bodies
- Returns request_id and total duration in response headers

unhandled_error_middleware:
- Turns unexpected exceptions into the generic 500 body inside the stack,
  so the response still gets request id and CORS headers

cors_middleware:
- Echoes Access-Control-Allow-Origin only for origins on the allow-list
- Answers every OPTIONS request with 200 before routing

Usage:
    app.middleware("http")(unhandled_error_middleware)
    app.middleware("http")(cors_middleware)
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import time
import uuid
from typing import Awaitable, Callable

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse

from podcast_gateway.core.exception_handlers import general_exception_handler
from podcast_gateway.core.logging import reset_request_id, set_request_id

CallNext = Callable[[Request], Awaitable[Response]]

CORS_ALLOW_METHODS = "GET, POST, OPTIONS"
CORS_ALLOW_HEADERS = "Origin, X-Requested-With, Content-Type, Accept, Authorization"


async def request_id_middleware(request: Request, call_next: CallNext) -> Response:
    """HTTP middleware for request ID generation and propagation.

    If the client provides the configured request id header (X-Request-ID by
    default), that value is used. Otherwise, a new UUID is generated. The id
    is bound to the context for the duration of the request only.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The response from the next handler with request_id and
            duration headers added.
    """

    header_name = request.app.state.settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    token = set_request_id(request_id)
    start = time.perf_counter()
    try:
        response = await call_next(request)
    finally:
        reset_request_id(token)

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


async def unhandled_error_middleware(request: Request, call_next: CallNext) -> Response:
    """Answer exceptions no handler claimed with the generic 500 body.

    Registered innermost. The app-level Exception handler only runs outside
    every middleware, where the request id is already unbound.
    """
    try:
        return await call_next(request)
    except Exception as exc:
        return await general_exception_handler(request, exc)


def _apply_cors_headers(response: Response, origin: str | None, allowed: list[str]) -> None:
    if origin is not None and origin in allowed:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Vary"] = "Origin"
    response.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
    response.headers["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS
    response.headers["Access-Control-Allow-Credentials"] = "true"


async def cors_middleware(request: Request, call_next: CallNext) -> Response:
    """Allow-list CORS with credentials.

    Unlisted origins get no Access-Control-Allow-Origin header, which makes
    browsers block the response. Preflights never reach routing, so an
    OPTIONS request gets 200 whatever the path.
    """
    origin = request.headers.get("origin")
    allowed = request.app.state.cors_origins

    if request.method == "OPTIONS":
        response: Response = PlainTextResponse("OK", status_code=200)
    else:
        response = await call_next(request)

    _apply_cors_headers(response, origin, allowed)
    return response
