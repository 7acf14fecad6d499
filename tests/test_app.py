"""
Tests for application-level behavior

- error envelopes produced by the global exception handlers
- health and root endpoints
- rate limiting
"""

import inspect

import pytest
from fastapi import FastAPI, status
from fastapi.testclient import TestClient
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.requests import Request

from library_api.main import app, format_validation_errors
from library_api.services.rate_limiter import get_client_ip, rate_limit_exceeded_handler


class TestErrorEnvelopes:
    def test_unknown_route(self, client):
        response = client.get("/api/publishers")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"error": "Not Found", "status": 404}

    def test_method_not_allowed(self, client):
        response = client.post("/api/authors/1/books")

        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
        assert response.json()["status"] == 405

    def test_non_integer_id(self, client):
        response = client.get("/api/authors/abc")

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert "author_id" in response.json()["errors"]

    def test_format_validation_errors_groups_by_field(self):
        errors = [
            {"loc": ("body", "name"), "msg": "Field required", "type": "missing"},
            {"loc": ("body", "name"), "msg": "Value error, Too short", "type": "value_error"},
            {"loc": ("query", "per_page"), "msg": "Input should be greater than or equal to 1"},
        ]

        assert format_validation_errors(errors) == {
            "name": ["Field required", "Too short"],
            "per_page": ["Input should be greater than or equal to 1"],
        }


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == {"connected": True}
        assert "cache" in body
        assert body["rate_limiting"]["enabled"] is False

    def test_health_runs_in_threadpool(self):
        """The health check does blocking DB and Redis I/O, so it must not be a coroutine."""
        route = next(r for r in app.routes if getattr(r, "path", None) == "/health")

        assert not inspect.iscoroutinefunction(route.endpoint)

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["api"] == "/api"


def make_request(headers: dict[str, str]) -> Request:
    return Request({
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": ("10.0.0.1", 5000),
    })


class TestClientIp:
    @pytest.mark.parametrize(
        "headers,expected",
        [
            ({"X-Forwarded-For": "203.0.113.7, 10.0.0.2"}, "203.0.113.7"),
            ({"X-Real-IP": "198.51.100.4"}, "198.51.100.4"),
            ({}, "10.0.0.1"),
        ],
    )
    def test_get_client_ip(self, headers, expected):
        assert get_client_ip(make_request(headers)) == expected


class TestRateLimiting:
    @pytest.fixture
    def limited_client(self):
        """A throwaway app with a limit of 2 requests per minute."""
        limiter = Limiter(key_func=get_client_ip, default_limits=["2/minute"])
        app = FastAPI()
        app.state.limiter = limiter
        app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
        app.add_middleware(SlowAPIMiddleware)

        @app.get("/ping")
        async def ping():
            return {"pong": True}

        with TestClient(app) as test_client:
            yield test_client

    def test_third_request_is_rejected(self, limited_client):
        assert limited_client.get("/ping").status_code == 200
        assert limited_client.get("/ping").status_code == 200

        response = limited_client.get("/ping")

        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        body = response.json()
        assert body["status"] == 429
        assert body["error"].startswith("Too many requests.")
        assert response.headers["Retry-After"] == "60"

    def test_limit_is_per_client(self, limited_client):
        for _ in range(2):
            limited_client.get("/ping", headers={"X-Forwarded-For": "203.0.113.1"})

        response = limited_client.get("/ping", headers={"X-Forwarded-For": "203.0.113.2"})

        assert response.status_code == status.HTTP_200_OK
