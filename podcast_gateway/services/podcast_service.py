"""Podcast aggregation service.

Combines a paged fetch and a total-count probe against the upstream catalog
into a single PodcastPage. Both the REST and the GraphQL endpoints go
through this service so their totals are computed the same way.
"""

from __future__ import annotations

import asyncio
import logging
import time

from podcast_gateway.adapters.catalog.base import AbstractPodcastCatalogClient
from podcast_gateway.core.errors import AggregationAppError, UpstreamAppError
from podcast_gateway.schemas.podcast import PageRequest, PodcastPage, compute_total_pages

logger = logging.getLogger(__name__)


class PodcastService:
    """Service assembling paginated podcast listings.

    Attributes:
        catalog: Upstream catalog client.
    """

    def __init__(self, catalog: AbstractPodcastCatalogClient) -> None:
        self.catalog = catalog

    async def get_page(self, request: PageRequest) -> PodcastPage:
        """Fetch one page of podcasts plus the totals needed to paginate it.

        The page and the count are requested concurrently. The first failure
        cancels the other request and fails the whole call: a page paired
        with a count from a different moment (or no count) is never returned.

        Args:
            request: Normalized page, limit and search filter.

        Returns:
            PodcastPage with podcasts, totalItems, totalPages and currentPage.

        Raises:
            AggregationAppError: If either upstream call fails.
        """
        start = time.perf_counter()

        page_task = asyncio.create_task(
            self.catalog.fetch_page(request.page, request.limit, request.search)
        )
        count_task = asyncio.create_task(self.catalog.fetch_total_count(request.search))

        try:
            podcasts, total_items = await asyncio.gather(page_task, count_task)
        except UpstreamAppError as exc:
            for task in (page_task, count_task):
                task.cancel()
            logger.error(
                "podcasts.fetch.failed",
                extra={
                    "error_code": exc.code,
                    "error_message": exc.message,
                    "page": request.page,
                    "limit": request.limit,
                    "has_search": request.search is not None,
                },
            )
            raise AggregationAppError(
                code="podcast_fetch_failed",
                message="Unable to fetch podcast data at this time",
            ) from exc
        except BaseException:
            # Cancellation (client went away) or an unexpected bug: stop both calls.
            for task in (page_task, count_task):
                task.cancel()
            raise

        total_pages = compute_total_pages(total_items, request.limit)

        logger.info(
            "podcasts.fetch.success",
            extra={
                "page": request.page,
                "limit": request.limit,
                "has_search": request.search is not None,
                "results": len(podcasts),
                "total_items": total_items,
                "total_pages": total_pages,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )

        return PodcastPage(
            podcasts=podcasts,
            total_items=total_items,
            total_pages=total_pages,
            current_page=request.page,
        )
