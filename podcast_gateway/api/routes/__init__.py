from __future__ import annotations

from podcast_gateway.api.routes.health import router as health_router
from podcast_gateway.api.routes.podcasts import router as podcasts_router

__all__ = ["health_router", "podcasts_router"]
