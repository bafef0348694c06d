from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated apps with their own catalog client, settings and
rate-limit stores.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import Depends, FastAPI

from podcast_gateway.adapters.catalog import AbstractPodcastCatalogClient, create_catalog_client
from podcast_gateway.api.graphql import create_graphql_router, require_graphql_query
from podcast_gateway.api.routes import health_router, podcasts_router
from podcast_gateway.core.config import Settings, settings
from podcast_gateway.core.exception_handlers import setup_exception_handlers
from podcast_gateway.core.logging import configure_logging
from podcast_gateway.core.middleware import (
    cors_middleware,
    request_id_middleware,
    unhandled_error_middleware,
)
from podcast_gateway.core.openapi import apply_openapi_customizations
from podcast_gateway.core.rate_limit import (
    GRAPHQL_SCOPE,
    build_rate_limit_policies,
    enforce_rate_limit,
    global_rate_limit_middleware,
)
from podcast_gateway.services.podcast_service import PodcastService


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await app.state.catalog_client.aclose()


def create_app(
    app_settings: Settings | None = None,
    *,
    catalog_client: AbstractPodcastCatalogClient | None = None,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Settings to use; defaults to the global settings.
        catalog_client: Upstream client; built from settings when omitted.
        clock: Time source for the rate-limit windows.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    cfg = app_settings or settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    client = catalog_client if catalog_client is not None else create_catalog_client(cfg.upstream)

    app = FastAPI(
        title="Podcast Gateway",
        description=(
            "API gateway in front of a podcast catalog. Serves paginated, "
            "searchable podcast listings over REST (/api/podcasts) and "
            "GraphQL (/graphql), with per-IP rate limiting and an "
            "allow-list CORS policy."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=_lifespan,
    )

    app.state.settings = cfg
    app.state.cors_origins = cfg.app.cors_origin_list
    app.state.rate_limit_policies = build_rate_limit_policies(cfg, clock=clock)
    app.state.catalog_client = client
    app.state.podcast_service = PodcastService(client)

    # Middleware: the last one added runs first
    app.middleware("http")(unhandled_error_middleware)
    app.middleware("http")(cors_middleware)
    app.middleware("http")(global_rate_limit_middleware)
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(health_router)
    app.include_router(podcasts_router)
    app.include_router(
        create_graphql_router(cfg),
        prefix="/graphql",
        tags=["GraphQL"],
        dependencies=[
            Depends(require_graphql_query),
            Depends(enforce_rate_limit(GRAPHQL_SCOPE)),
        ],
    )

    # OpenAPI customizations (tags)
    apply_openapi_customizations(app)

    return app
