"""Upstream catalog adapter layer - abstracts over the podcast catalog API."""

from podcast_gateway.adapters.catalog.base import (
    TOTAL_COUNT_PROBE_LIMIT,
    AbstractPodcastCatalogClient,
)
from podcast_gateway.adapters.catalog.factory import create_catalog_client
from podcast_gateway.adapters.catalog.httpx_client import HttpxPodcastCatalogClient

__all__ = [
    "AbstractPodcastCatalogClient",
    "HttpxPodcastCatalogClient",
    "TOTAL_COUNT_PROBE_LIMIT",
    "create_catalog_client",
]
