"""
Unit tests for the HTTP endpoints.

The application runs with the conftest cache service on the in-memory
store and the fake parameter service.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from cache_service.domain.cache.exceptions import UpstreamUnavailableException
from cache_service.infrastructure.redis.exceptions import RedisConnectionException
from cache_service.main import create_app
from cache_service.services.cache.parameter_cache import ParameterCacheService


@pytest.fixture
def app(test_settings, cache_service):
    app = create_app(test_settings)
    app.state.cache_service = cache_service
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


class TestReadEndpoints:
    def test_system_rate(self, client):
        response = client.get("/cache/sysvar", params={"name": "TRM"})

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "TRM"
        assert Decimal(str(body["rate"])) == Decimal("4150.25")
        assert body["id"].startswith("_R")
        assert body["version"] == 0

    def test_unknown_system_rate(self, client):
        response = client.get("/cache/sysvar", params={"name": "NOPE"})

        assert response.status_code == 404
        assert response.json()["error"] == "ENTITY_NOT_FOUND"

    def test_missing_name_parameter(self, client):
        assert client.get("/cache/sysvar").status_code == 422

    def test_upstream_unavailable(self, client, upstream):
        upstream.error = UpstreamUnavailableException()

        response = client.get("/cache/doctypes")

        assert response.status_code == 503
        assert response.json()["error"] == "UPSTREAM_UNAVAILABLE"

    def test_day(self, client):
        assert client.get("/cache/day").json() == {"day": "2023-09-15"}
        assert client.get("/cache/day", params={"days": 1}).json() == {
            "day": "2023-09-19"
        }

    def test_add_business_days(self, client):
        response = client.get("/cache/addday", params={"days": 5})

        assert response.json() == {"day": "2023-09-26"}

    def test_holiday(self, client):
        response = client.get("/cache/holiday", params={"day": "2023-09-18"})
        assert response.json() == {"day": "2023-09-18", "holiday": True}

        response = client.get("/cache/holiday", params={"day": "2023-09-16"})
        assert response.json()["holiday"] is False

    def test_holiday_bad_date(self, client):
        assert client.get("/cache/holiday", params={"day": "16/09/2023"}).status_code == 422

    def test_document_types(self, client):
        response = client.get("/cache/doctypes")

        assert response.status_code == 200
        assert sorted(item["name"] for item in response.json()) == ["CC", "NIT"]

    def test_system_dates(self, client):
        response = client.get("/cache/dates")

        assert response.status_code == 200
        names = [item["name"] for item in response.json()]
        assert names.count("HOLIDAY") == 2
        assert len(names) == 5


class TestInvalidationEndpoints:
    def test_invalidate_all(self, client, repositories):
        client.get("/cache/doctypes")

        response = client.post("/cache/invalid")

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["scope"] == "all"
        assert len(body["cleared"]) == 3

    def test_invalidate_key(self, client):
        client.get("/cache/sysvar", params={"name": "TRM"})

        response = client.post(
            "/cache/invalid", params={"scope": "system_rates", "key": "TRM"}
        )

        assert response.json()["cleared"] == ["SYSTEM_RATE"]
        assert response.json()["key"] == "TRM"

    @pytest.mark.parametrize(
        "path,kind",
        [
            ("/cache/invalid/dates", "SYSTEM_DATE"),
            ("/cache/invalid/documents", "DOCUMENT_TYPE"),
            ("/cache/invalid/rates", "SYSTEM_RATE"),
        ],
    )
    def test_scoped_invalidation(self, client, path, kind):
        response = client.post(path)

        assert response.status_code == 200
        assert response.json()["cleared"] == [kind]

    def test_invalidation_failure(self, client, repositories):
        with patch.object(
            repositories.system_dates,
            "delete_all",
            AsyncMock(side_effect=RedisConnectionException()),
        ):
            response = client.post("/cache/invalid/dates")

        assert response.status_code == 503
        assert "SYSTEM_DATE" in response.json()["failures"]

    def test_unknown_scope(self, client):
        assert client.post("/cache/invalid", params={"scope": "users"}).status_code == 422


class TestEventEndpoint:
    def test_rate_event(self, client):
        response = client.post(
            "/cache/events",
            json={
                "event_name": "SYSTEM_RATE_UPDATED",
                "event_body": {"data": {"name": "TRM", "rate": 4300}},
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["action"] == "rate_refreshed"
        assert Decimal(str(body["rate"]["rate"])) == Decimal("4300")

    def test_invalidation_event(self, client):
        response = client.post(
            "/cache/events", json={"event_name": "SYSTEM_DATE_CHANGED"}
        )

        assert response.json()["action"] == "invalidated"
        assert response.json()["invalidation"]["scope"] == "system_dates"

    def test_ignored_event(self, client):
        response = client.post("/cache/events", json={"event_name": "OTHER"})

        assert response.json() == {"event_name": "OTHER", "action": "ignored"}

    def test_invalid_rate_event(self, client):
        response = client.post(
            "/cache/events",
            json={
                "event_name": "SYSTEM_RATE_UPDATED",
                "event_body": {"data": {"name": "TRM", "rate": 0}},
            },
        )

        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"


class TestHealthEndpoints:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["environment"] == "test"

    def test_health_store_down(self, client, repositories):
        with patch.object(
            repositories.document_types,
            "count",
            AsyncMock(side_effect=RedisConnectionException()),
        ):
            response = client.get("/health")

        assert response.status_code == 503

    def test_metrics(self, client):
        client.get("/cache/doctypes")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "parameter_cache_lookups_total" in response.text


class TestLifespan:
    def test_service_built_on_startup(self, test_settings):
        app = create_app(test_settings)

        with TestClient(app):
            assert isinstance(app.state.cache_service, ParameterCacheService)

        assert app.state.cache_service is None

    def test_store_failure_maps_to_503(self, client, repositories):
        with patch.object(
            repositories.system_rates,
            "find_by_name",
            AsyncMock(side_effect=RedisConnectionException()),
        ):
            response = client.get("/cache/sysvar", params={"name": "TRM"})

        assert response.status_code == 503
        assert response.json()["error"] == "REDIS_CONNECTION_ERROR"
