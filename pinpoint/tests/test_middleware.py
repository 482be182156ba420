"""Tests for middleware, CORS configuration and the health endpoint."""

import logging

import pytest
from httpx import ASGITransport, AsyncClient

from pinpoint.middleware import RequestIDLogFilter, request_id_var


@pytest.mark.asyncio
async def test_security_headers_present(mock_settings):
    """Every response includes security headers."""
    from pinpoint.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        response = await client.get("/api/pinpoint/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
    assert response.headers["Cache-Control"] == "no-store"


@pytest.mark.asyncio
async def test_request_id_is_echoed(mock_settings):
    from pinpoint.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        given = await client.get(
            "/api/pinpoint/health", headers={"X-Request-ID": "req-123"}
        )
        generated = await client.get("/api/pinpoint/health")

    assert given.headers["X-Request-ID"] == "req-123"
    assert len(generated.headers["X-Request-ID"]) == 36  # UUID4


@pytest.mark.asyncio
async def test_cors_allows_explicit_methods(mock_settings):
    """CORS preflight returns explicit methods, not wildcard."""
    from pinpoint.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        response = await client.options(
            "/api/pinpoint/feedback",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

    allowed = response.headers.get("Access-Control-Allow-Methods", "")
    assert "GET" in allowed
    assert "POST" in allowed
    assert allowed != "*"
    assert "Content-Type" in response.headers.get("Access-Control-Allow-Headers", "")


@pytest.mark.asyncio
async def test_health_ok_when_configured(mock_settings):
    from pinpoint.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        response = await client.get("/api/pinpoint/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["checks"] == {"config": "ok"}


@pytest.mark.asyncio
async def test_health_degraded_without_credentials(mock_settings):
    mock_settings.trello_api_token = ""
    from pinpoint.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        response = await client.get("/api/pinpoint/health")

    assert response.json()["status"] == "degraded"


def test_log_filter_adds_request_id():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    token = request_id_var.set("req-9")
    try:
        assert RequestIDLogFilter().filter(record) is True
    finally:
        request_id_var.reset(token)
    assert record.request_id == "req-9"


def test_log_filter_defaults_outside_requests():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    RequestIDLogFilter().filter(record)
    assert record.request_id == "-"
