"""Integration tests for the cross-cutting endpoints.

Covers:
- /health with every dependency up, and with the cache down
- correlation id propagation
"""

from __future__ import annotations

import uuid
from unittest import mock

import pytest
import structlog
from django.http import HttpResponse
from django.test import RequestFactory

from modules.core import views as core_views
from modules.core.middleware import CorrelationIdMiddleware

pytestmark = pytest.mark.integration


class TestHealthCheck:
    def test_healthy(self, api_client):
        response = api_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["services"]["database"]["status"] == "up"
        assert body["services"]["cache"]["status"] == "up"
        assert "response_time_ms" in body["services"]["database"]
        assert "timestamp" in body

    def test_cache_down(self, api_client):
        failing = mock.Mock(side_effect=ConnectionError("redis unreachable"))
        with mock.patch.dict(core_views.PROBES, {"cache": failing}):
            response = api_client.get("/health")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "unhealthy"
        assert body["services"]["cache"] == {"status": "down"}
        assert body["services"]["database"]["status"] == "up"


class TestCorrelationId:
    def test_echoes_client_id(self, api_client_with_correlation):
        client, cid = api_client_with_correlation

        response = client.get("/health")

        assert response["X-Request-ID"] == cid

    def test_generates_id(self, api_client):
        response = api_client.get("/health")

        assert uuid.UUID(response["X-Request-ID"]).version == 4

    @pytest.mark.parametrize("header", ["", "bad id with spaces", "x" * 200])
    def test_replaces_malformed_id(self, api_client, header):
        response = api_client.get("/health", HTTP_X_REQUEST_ID=header)

        assert response["X-Request-ID"] != header
        assert uuid.UUID(response["X-Request-ID"]).version == 4

    def test_id_is_bound_to_log_context_during_request(self):
        seen = {}

        def view(request):
            seen.update(structlog.contextvars.get_contextvars())
            return HttpResponse()

        request = RequestFactory().get("/health", HTTP_X_REQUEST_ID="req-42")
        response = CorrelationIdMiddleware(view)(request)

        assert seen["correlation_id"] == "req-42"
        assert response["X-Request-ID"] == "req-42"

