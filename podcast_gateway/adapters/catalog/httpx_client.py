"""Upstream podcast catalog client built on httpx."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from podcast_gateway.adapters.catalog.base import (
    TOTAL_COUNT_PROBE_LIMIT,
    AbstractPodcastCatalogClient,
)
from podcast_gateway.core.errors import UpstreamAppError
from podcast_gateway.schemas.podcast import Podcast

logger = logging.getLogger(__name__)

_podcast_list = TypeAdapter(list[Podcast])


def build_query_params(
    *,
    limit: int,
    page: int | None = None,
    search: str | None = None,
) -> dict[str, Any]:
    """Build upstream query parameters.

    ``search`` is left out entirely when blank: upstream treats a missing
    parameter differently from an empty one.

    >>> build_query_params(page=1, limit=10, search="  ")
    {'page': 1, 'limit': 10}
    """
    params: dict[str, Any] = {}
    if page is not None:
        params["page"] = page
    params["limit"] = limit
    if search is not None and search.strip():
        params["search"] = search
    return params


class HttpxPodcastCatalogClient(AbstractPodcastCatalogClient):
    """Client for the upstream ``GET /podcasts`` endpoint.

    Uses one pooled ``httpx.AsyncClient`` for the lifetime of the app. Calls
    are stateless and may run concurrently. Failures are never retried.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        *,
        total_count_probe_limit: int = TOTAL_COUNT_PROBE_LIMIT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the httpx async client.

        Args:
            base_url: Upstream API root, e.g. ``https://catalog.example``.
            timeout_seconds: Timeout applied to connect, read and write.
            total_count_probe_limit: Page size used by fetch_total_count().
            transport: Optional transport override (used by tests).
        """
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout_seconds,
            transport=transport,
        )
        self.total_count_probe_limit = total_count_probe_limit

    async def _get_podcasts_json(self, params: dict[str, Any], *, operation: str) -> list[Any]:
        """GET /podcasts and return the decoded JSON array.

        Raises:
            UpstreamAppError: On transport errors, non-2xx status, or a body
                that is not a JSON array.
        """
        start = time.perf_counter()
        try:
            response = await self.client.get("/podcasts", params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            logger.warning(
                "upstream.request_failed",
                extra={
                    "operation": operation,
                    "reason": "bad_status",
                    "http_status": status_code,
                },
            )
            raise UpstreamAppError(
                code="upstream_bad_status",
                message=f"Upstream returned HTTP {status_code}",
                details={"http_status": status_code},
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning(
                "upstream.request_failed",
                extra={
                    "operation": operation,
                    "reason": "transport_error",
                    "error_type": type(exc).__name__,
                },
            )
            raise UpstreamAppError(
                code="upstream_unreachable",
                message=f"Upstream request failed: {type(exc).__name__}",
            ) from exc
        except ValueError as exc:
            logger.warning(
                "upstream.request_failed",
                extra={"operation": operation, "reason": "invalid_json"},
            )
            raise UpstreamAppError(
                code="upstream_invalid_payload",
                message="Upstream returned a body that is not valid JSON",
            ) from exc

        if not isinstance(payload, list):
            logger.warning(
                "upstream.request_failed",
                extra={
                    "operation": operation,
                    "reason": "unexpected_payload",
                    "payload_type": type(payload).__name__,
                },
            )
            raise UpstreamAppError(
                code="upstream_invalid_payload",
                message="Upstream returned a body that is not a JSON array",
            )

        logger.debug(
            "upstream.request_succeeded",
            extra={
                "operation": operation,
                "items": len(payload),
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return payload

    async def fetch_page(
        self,
        page: int,
        limit: int,
        search: str | None = None,
    ) -> list[Podcast]:
        params = build_query_params(page=page, limit=limit, search=search)
        payload = await self._get_podcasts_json(params, operation="fetch_page")
        try:
            return _podcast_list.validate_python(payload)
        except ValidationError as exc:
            logger.warning(
                "upstream.request_failed",
                extra={
                    "operation": "fetch_page",
                    "reason": "invalid_podcast_shape",
                    "error_count": exc.error_count(),
                },
            )
            raise UpstreamAppError(
                code="upstream_invalid_payload",
                message="Upstream returned podcasts with an unexpected shape",
            ) from exc

    async def fetch_total_count(self, search: str | None = None) -> int:
        # Known approximation: never exceeds total_count_probe_limit.
        params = build_query_params(limit=self.total_count_probe_limit, search=search)
        payload = await self._get_podcasts_json(params, operation="fetch_total_count")
        return len(payload)

    async def aclose(self) -> None:
        await self.client.aclose()
