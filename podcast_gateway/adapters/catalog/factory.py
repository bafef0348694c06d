"""Factory for the upstream catalog client."""

from podcast_gateway.adapters.catalog.base import AbstractPodcastCatalogClient
from podcast_gateway.adapters.catalog.httpx_client import HttpxPodcastCatalogClient
from podcast_gateway.core.config import UpstreamSettings, settings
from podcast_gateway.core.errors import ValidationAppError


def create_catalog_client(
    upstream: UpstreamSettings | None = None,
) -> AbstractPodcastCatalogClient:
    """Instantiate the upstream catalog client from configuration.

    Args:
        upstream: Upstream settings; defaults to the global settings.

    Returns:
        AbstractPodcastCatalogClient: Configured client instance.

    Raises:
        ValidationAppError: If the upstream URL is not an http(s) URL.
    """
    cfg = upstream or settings.upstream
    url = cfg.url.strip()

    if not url.startswith(("http://", "https://")):
        raise ValidationAppError(
            code="upstream_invalid_url",
            message="PODCAST_API_URL must be an http:// or https:// URL",
        )

    return HttpxPodcastCatalogClient(
        base_url=url,
        timeout_seconds=cfg.timeout_seconds,
        total_count_probe_limit=cfg.total_count_probe_limit,
    )
