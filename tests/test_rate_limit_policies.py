"""Tests for per-IP rate limit policies wired into the app."""

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from podcast_gateway.adapters.rate_limit.base import RateLimitResult
from podcast_gateway.core.config import AppSettings, Settings
from podcast_gateway.core.rate_limit import (
    GLOBAL_SCOPE,
    GRAPHQL_SCOPE,
    PODCASTS_SCOPE,
    build_rate_limit_policies,
    rate_limit_headers,
)

GRAPHQL_BODY = {"query": "{ podcasts { totalItems } }"}


class TestGlobalLimit:
    def test_101st_request_in_window_is_rejected(self, client: TestClient):
        for _ in range(100):
            assert client.get("/healt").status_code == 200

        response = client.get("/healt")

        assert response.status_code == 429
        body = response.json()
        assert body["error"]["code"] == "rate_limit_exceeded"
        assert body["error"]["message"] == (
            "You have exceeded the rate limit. Please try again later."
        )
        assert 0 < body["retryAfter"] <= 15 * 60
        assert response.headers["Retry-After"] == str(body["retryAfter"])
        assert response.headers["RateLimit-Limit"] == "100"
        assert response.headers["RateLimit-Remaining"] == "0"

    def test_window_reopens_after_expiry(self, build_app, fake_catalog):
        clock = Mock(return_value=1000.0)
        client = TestClient(build_app(fake_catalog, clock=clock, global_rate_limit_requests=2))

        assert client.get("/healt").status_code == 200
        assert client.get("/healt").status_code == 200
        assert client.get("/healt").status_code == 429

        clock.return_value = 1000.0 + 15 * 60
        assert client.get("/healt").status_code == 200

    def test_preflight_counts_against_global_limit(self, build_app, fake_catalog):
        client = TestClient(build_app(fake_catalog, global_rate_limit_requests=1))

        assert client.options("/api/podcasts").status_code == 200
        assert client.options("/api/podcasts").status_code == 429

    def test_allowed_responses_carry_rate_limit_headers(self, client: TestClient):
        response = client.get("/healt")

        assert response.headers["RateLimit-Limit"] == "100"
        assert response.headers["RateLimit-Remaining"] == "99"
        assert int(response.headers["RateLimit-Reset"]) == 15 * 60
        assert "Retry-After" not in response.headers

    def test_headers_can_be_disabled(self, build_app, fake_catalog):
        client = TestClient(build_app(fake_catalog, rate_limit_include_headers=False))

        response = client.get("/healt")

        assert "RateLimit-Limit" not in response.headers

    def test_rate_limiting_can_be_disabled(self, build_app, fake_catalog):
        client = TestClient(
            build_app(fake_catalog, rate_limit_enabled=False, global_rate_limit_requests=1)
        )

        for _ in range(5):
            assert client.get("/healt").status_code == 200


class TestPodcastsLimit:
    def test_31st_rest_request_is_rejected(self, client: TestClient, fake_catalog):
        for _ in range(30):
            assert client.get("/api/podcasts").status_code == 200

        response = client.get("/api/podcasts")

        assert response.status_code == 429
        body = response.json()
        assert body["error"]["message"] == (
            "Too many podcast requests from this IP. Please wait 5 minutes "
            "before making more requests."
        )
        assert body["error"]["details"]["scope"] == PODCASTS_SCOPE
        assert len(fake_catalog.page_calls) == 30

    def test_podcasts_limit_does_not_affect_other_routes(self, build_app, fake_catalog):
        client = TestClient(build_app(fake_catalog, podcasts_rate_limit_requests=1))

        assert client.get("/api/podcasts").status_code == 200
        assert client.get("/api/podcasts").status_code == 429
        assert client.get("/healt").status_code == 200
        assert client.post("/graphql", json=GRAPHQL_BODY).status_code == 200


class TestGraphQLLimit:
    def test_51st_graphql_request_is_rejected(self, client: TestClient):
        for _ in range(50):
            assert client.post("/graphql", json=GRAPHQL_BODY).status_code == 200

        response = client.post("/graphql", json=GRAPHQL_BODY)

        assert response.status_code == 429
        assert response.json()["error"]["message"] == (
            "Too many GraphQL queries from this IP, please try again later."
        )

    def test_browsers_are_not_limited_in_development(self, build_app, fake_catalog):
        client = TestClient(
            build_app(fake_catalog, app_env="development", graphql_rate_limit_requests=1)
        )
        headers = {"User-Agent": "Mozilla/5.0 (X11; Linux x86_64)"}

        for _ in range(3):
            response = client.post("/graphql", json=GRAPHQL_BODY, headers=headers)
            assert response.status_code == 200

        assert client.post("/graphql", json=GRAPHQL_BODY).status_code == 200
        assert client.post("/graphql", json=GRAPHQL_BODY).status_code == 429

    def test_browsers_are_limited_outside_development(self, build_app, fake_catalog):
        client = TestClient(build_app(fake_catalog, graphql_rate_limit_requests=1))
        headers = {"User-Agent": "Mozilla/5.0"}

        assert client.post("/graphql", json=GRAPHQL_BODY, headers=headers).status_code == 200
        assert client.post("/graphql", json=GRAPHQL_BODY, headers=headers).status_code == 429


class TestPolicyConstruction:
    def test_builds_three_scopes_from_settings(self):
        cfg = Settings(app_env="testing", app=AppSettings())

        policies = build_rate_limit_policies(cfg)

        assert set(policies) == {GLOBAL_SCOPE, GRAPHQL_SCOPE, PODCASTS_SCOPE}
        assert policies[GLOBAL_SCOPE].limiter.window_seconds == 15 * 60
        assert policies[GRAPHQL_SCOPE].limiter.window_seconds == 10 * 60
        assert policies[PODCASTS_SCOPE].limiter.window_seconds == 5 * 60

    def test_disabled_builds_nothing(self):
        cfg = Settings(app_env="testing", app=AppSettings(rate_limit_enabled=False))

        assert build_rate_limit_policies(cfg) == {}

    @pytest.mark.parametrize(
        "retry_after, expected",
        [(None, False), (42, True)],
    )
    def test_retry_after_header_only_when_blocked(self, retry_after, expected):
        result = RateLimitResult(
            allowed=retry_after is None,
            limit=10,
            remaining=0 if retry_after else 5,
            reset_at=2000,
            reset_after_seconds=42,
            retry_after_seconds=retry_after,
        )

        headers = rate_limit_headers(result)

        assert ("Retry-After" in headers) is expected
        assert headers["RateLimit-Reset"] == "42"
