"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It pins APP_ENV=testing and a fake upstream URL before any settings import,
so no .env.development file is read and no real catalog is contacted.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

# Set default env vars that all tests might need
os.environ.setdefault("PODCAST_API_URL", "http://catalog.test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Any, Callable

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from podcast_gateway.adapters.catalog.base import AbstractPodcastCatalogClient
from podcast_gateway.core.app_factory import create_app
from podcast_gateway.core.config import AppSettings, Settings
from podcast_gateway.schemas.podcast import Podcast


def make_podcast_payload(index: int) -> dict[str, Any]:
    return {
        "id": index,
        "title": f"Podcast {index}",
        "description": f"Episode notes for podcast {index}",
        "categoryName": "Tech" if index % 2 else "Comedy",
        "publisherName": "Acme Audio",
        "images": {
            "default": f"https://img.test/{index}.jpg",
            "thumbnail": f"https://img.test/{index}-thumb.jpg",
        },
        "isExclusive": False,
        "hasFreeEpisodes": True,
        "mediaType": "audio",
    }


class FakeCatalogClient(AbstractPodcastCatalogClient):
    """In-memory catalog that paginates and filters like the real upstream.

    Set ``page_error`` or ``count_error`` to make the matching call raise.
    """

    def __init__(self, payloads: list[dict[str, Any]] | None = None) -> None:
        self.payloads = list(payloads or [])
        self.page_calls: list[tuple[int, int, str | None]] = []
        self.count_calls: list[str | None] = []
        self.page_error: Exception | None = None
        self.count_error: Exception | None = None
        self.closed = False

    def _matching(self, search: str | None) -> list[dict[str, Any]]:
        if not search:
            return self.payloads
        return [p for p in self.payloads if search in p["title"].lower()]

    async def fetch_page(self, page: int, limit: int, search: str | None = None) -> list[Podcast]:
        self.page_calls.append((page, limit, search))
        if self.page_error is not None:
            raise self.page_error
        start = (page - 1) * limit
        return [Podcast.model_validate(p) for p in self._matching(search)[start : start + limit]]

    async def fetch_total_count(self, search: str | None = None) -> int:
        self.count_calls.append(search)
        if self.count_error is not None:
            raise self.count_error
        return len(self._matching(search))

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_catalog() -> FakeCatalogClient:
    """Catalog holding twelve podcasts (ids 1..12)."""
    return FakeCatalogClient([make_podcast_payload(i) for i in range(1, 13)])


@pytest.fixture
def empty_catalog() -> FakeCatalogClient:
    return FakeCatalogClient([])


@pytest.fixture
def build_app() -> Callable[..., FastAPI]:
    """Return a factory building an isolated app with fresh rate-limit stores.

    Usage:
        app = build_app(fake_catalog, app_env="development", podcasts_rate_limit_requests=2)
    """

    def _build(
        catalog: AbstractPodcastCatalogClient,
        *,
        app_env: str = "testing",
        clock: Callable[[], float] | None = None,
        **app_overrides: Any,
    ) -> FastAPI:
        cfg = Settings(app_env=app_env, app=AppSettings(**app_overrides))
        if clock is None:
            return create_app(cfg, catalog_client=catalog)
        return create_app(cfg, catalog_client=catalog, clock=clock)

    return _build


@pytest.fixture
def client(build_app: Callable[..., FastAPI], fake_catalog: FakeCatalogClient) -> TestClient:
    """Create FastAPI test client backed by the fake catalog."""
    return TestClient(build_app(fake_catalog))
