from __future__ import annotations

import logging
import time
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response

from podcast_gateway.core.rate_limit import PODCASTS_SCOPE, enforce_rate_limit
from podcast_gateway.schemas.podcast import (
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    MAX_LIMIT,
    PageRequest,
    PodcastListResponse,
)
from podcast_gateway.services.podcast_service import PodcastService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/podcasts", tags=["Podcasts"])


def get_podcast_service(request: Request) -> PodcastService:
    """Return the PodcastService shared by the REST and GraphQL endpoints."""
    return request.app.state.podcast_service


@router.get(
    "",
    response_model=PodcastListResponse,
    dependencies=[Depends(enforce_rate_limit(PODCASTS_SCOPE))],
)
async def list_podcasts(
    response: Response,
    service: Annotated[PodcastService, Depends(get_podcast_service)],
    search: Annotated[
        str | None,
        Query(description="Case-insensitive filter; blank means no filter."),
    ] = None,
    page: Annotated[int, Query(ge=1, description="1-based page number.")] = DEFAULT_PAGE,
    limit: Annotated[
        int,
        Query(ge=1, le=MAX_LIMIT, description=f"Page size, 1 to {MAX_LIMIT}."),
    ] = DEFAULT_LIMIT,
) -> PodcastListResponse:
    """List podcasts from the upstream catalog, one page at a time.

    Query parameters are validated before any upstream call; invalid values
    get a 400 with field-level errors. Upstream failures surface as a generic
    500 through the global exception handlers.

    Response headers:
        X-Response-Time: Time spent fetching from upstream, e.g. ``"42ms"``.
        X-Total-Results: Number of podcasts in this page.
    """
    page_request = PageRequest(page=page, limit=limit, search=search)

    start = time.perf_counter()
    result = await service.get_page(page_request)
    elapsed_ms = int((time.perf_counter() - start) * 1000)

    response.headers["X-Response-Time"] = f"{elapsed_ms}ms"
    response.headers["X-Total-Results"] = str(len(result.podcasts))

    logger.info(
        "podcasts.rest.completed",
        extra={"response_time_ms": elapsed_ms, "results": len(result.podcasts)},
    )

    return PodcastListResponse.from_page(result)
