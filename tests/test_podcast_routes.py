"""Tests for the REST podcast listing endpoint.

Covers pagination math, search normalization, request validation before any
upstream call, and the generic 500 returned when aggregation fails.

Configuration:
- conftest.py sets APP_ENV=testing and provides a fake catalog client
- Each test builds its own app, so rate-limit counters never leak across tests
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from podcast_gateway.adapters.catalog import HttpxPodcastCatalogClient
from podcast_gateway.core.errors import UpstreamAppError


class TestListPodcasts:
    """Happy-path behavior of GET /api/podcasts."""

    def test_second_page_of_twelve_items(self, client: TestClient, fake_catalog):
        response = client.get("/api/podcasts", params={"page": 2, "limit": 5})

        assert response.status_code == 200
        data = response.json()
        assert data["currentPage"] == 2
        assert data["totalPages"] == 3
        assert [p["id"] for p in data["podcasts"]] == [6, 7, 8, 9, 10]
        assert "totalItems" not in data

    def test_defaults_to_first_page_of_ten(self, client: TestClient, fake_catalog):
        response = client.get("/api/podcasts")

        assert response.status_code == 200
        data = response.json()
        assert data["currentPage"] == 1
        assert data["totalPages"] == 2
        assert len(data["podcasts"]) == 10
        assert fake_catalog.page_calls == [(1, 10, None)]

    def test_podcasts_keep_camel_case_fields(self, client: TestClient):
        podcast = client.get("/api/podcasts", params={"limit": 1}).json()["podcasts"][0]

        assert podcast["categoryName"] == "Tech"
        assert podcast["publisherName"] == "Acme Audio"
        assert podcast["hasFreeEpisodes"] is True
        assert podcast["images"]["thumbnail"] == "https://img.test/1-thumb.jpg"

    def test_sets_timing_and_result_count_headers(self, client: TestClient):
        response = client.get("/api/podcasts", params={"page": 3, "limit": 5})

        assert response.status_code == 200
        assert response.headers["X-Total-Results"] == "2"
        assert response.headers["X-Response-Time"].endswith("ms")
        assert response.headers["X-Response-Time"][:-2].isdigit()

    def test_page_past_the_end_is_empty(self, client: TestClient):
        response = client.get("/api/podcasts", params={"page": 9, "limit": 5})

        assert response.status_code == 200
        data = response.json()
        assert data["podcasts"] == []
        assert data["totalPages"] == 3
        assert data["currentPage"] == 9

    def test_empty_catalog_has_zero_pages(self, build_app, empty_catalog):
        client = TestClient(build_app(empty_catalog))

        data = client.get("/api/podcasts").json()

        assert data == {"podcasts": [], "currentPage": 1, "totalPages": 0}


class TestSearch:
    def test_search_is_trimmed_and_lower_cased(self, client: TestClient, fake_catalog):
        response = client.get("/api/podcasts", params={"search": "  PODCAST 1  "})

        assert response.status_code == 200
        assert fake_catalog.page_calls == [(1, 10, "podcast 1")]
        assert fake_catalog.count_calls == ["podcast 1"]
        # "podcast 1", "podcast 10", "podcast 11", "podcast 12"
        assert response.json()["totalPages"] == 1
        assert response.headers["X-Total-Results"] == "4"

    @pytest.mark.parametrize("search", ["", "   "])
    def test_blank_search_means_no_filter(self, client: TestClient, fake_catalog, search: str):
        response = client.get("/api/podcasts", params={"search": search})

        assert response.status_code == 200
        assert fake_catalog.page_calls == [(1, 10, None)]
        assert fake_catalog.count_calls == [None]


class TestValidation:
    """Invalid parameters are rejected with 400 before any upstream call."""

    @pytest.mark.parametrize(
        "params, field",
        [
            ({"page": 0}, "page"),
            ({"page": -3}, "page"),
            ({"page": "abc"}, "page"),
            ({"limit": 0}, "limit"),
            ({"limit": 101}, "limit"),
            ({"limit": "ten"}, "limit"),
        ],
    )
    def test_invalid_parameters_return_400(
        self, client: TestClient, fake_catalog, params: dict, field: str
    ):
        response = client.get("/api/podcasts", params=params)

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "invalid_request_parameters"
        assert [f["field"] for f in error["details"]["fields"]] == [field]
        assert fake_catalog.page_calls == []
        assert fake_catalog.count_calls == []

    def test_limit_bounds_are_inclusive(self, client: TestClient):
        assert client.get("/api/podcasts", params={"limit": 1}).status_code == 200
        assert client.get("/api/podcasts", params={"limit": 100}).status_code == 200


class TestUpstreamFailures:
    def test_count_failure_returns_generic_500(self, client: TestClient, fake_catalog):
        fake_catalog.count_error = UpstreamAppError(
            code="upstream_bad_status",
            message="Upstream returned HTTP 503",
            details={"http_status": 503},
        )

        response = client.get("/api/podcasts", params={"page": 1, "limit": 5})

        assert response.status_code == 500
        body = response.json()
        assert "podcasts" not in body
        assert body["error"]["code"] == "podcast_fetch_failed"
        assert body["error"]["message"] == "Unable to fetch podcast data at this time"
        assert "details" not in body["error"]
        assert "503" not in response.text

    def test_page_failure_returns_generic_500(self, client: TestClient, fake_catalog):
        fake_catalog.page_error = UpstreamAppError(
            code="upstream_unreachable",
            message="Upstream request failed: ConnectError",
        )

        response = client.get("/api/podcasts")

        assert response.status_code == 500
        assert "ConnectError" not in response.text
        assert "X-Total-Results" not in response.headers


class TestUpstreamPassthrough:
    """Scalar fields are forwarded with whatever JSON type upstream used."""

    @pytest.mark.parametrize(
        "item, field, value",
        [
            ({"id": 1, "title": 2024}, "title", 2024),
            ({"id": 1.5, "title": "x"}, "id", 1.5),
            ({"id": 1, "mediaType": 3}, "mediaType", 3),
            ({"id": "abc", "isExclusive": "yes"}, "isExclusive", "yes"),
        ],
    )
    def test_unexpected_scalar_types_are_echoed(self, build_app, item: dict, field: str, value):
        catalog = HttpxPodcastCatalogClient(
            "http://catalog.test",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[item])),
        )
        client = TestClient(build_app(catalog))

        response = client.get("/api/podcasts")

        assert response.status_code == 200
        assert response.json()["podcasts"][0][field] == value

    def test_non_object_images_still_fail(self, build_app):
        catalog = HttpxPodcastCatalogClient(
            "http://catalog.test",
            transport=httpx.MockTransport(
                lambda request: httpx.Response(200, json=[{"id": 1, "images": "nope"}])
            ),
        )
        client = TestClient(build_app(catalog))

        assert client.get("/api/podcasts").status_code == 500
