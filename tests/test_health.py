"""Probes, request ids and the shape of error responses."""

from uuid import uuid4

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_liveness_endpoint(client: AsyncClient):
    response = await client.get("/health/live")

    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


@pytest.mark.asyncio
async def test_readiness_checks_both_databases(client: AsyncClient):
    """Readiness reports the registry and the tenant directory separately."""
    response = await client.get("/health/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["checks"] == {"database": "ok", "tenant_directory": "ok"}


@pytest.mark.asyncio
async def test_info_endpoint(client: AsyncClient):
    response = await client.get("/info")

    assert response.status_code == 200
    data = response.json()
    assert data["app"] == "ClubHub"
    assert "environment" in data
    assert "version" in data


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/health/live", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


@pytest.mark.asyncio
async def test_request_id_is_generated_when_absent(client: AsyncClient):
    response = await client.get("/health/live")

    assert response.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_error_is_a_problem_document_with_trace_id(client: AsyncClient):
    session_id = uuid4()

    response = await client.get(
        f"/api/v1/signup/sessions/{session_id}", headers={"X-Request-ID": "req-404"}
    )

    assert response.status_code == 404
    assert response.headers["content-type"].startswith("application/problem+json")
    body = response.json()
    assert body["type"].endswith("/errors/not_found")
    assert body["title"] == "Not Found"
    assert body["status"] == 404
    assert body["instance"] == f"/api/v1/signup/sessions/{session_id}"
    assert body["trace_id"] == "req-404"
    assert body["resource"] == "signup_session"
    assert body["resource_id"] == str(session_id)


@pytest.mark.asyncio
async def test_request_validation_lists_fields(client: AsyncClient):
    response = await client.post("/api/v1/signup/sessions", json={"email": "not-an-email"})

    assert response.status_code == 422
    body = response.json()
    assert body["type"].endswith("/errors/validation_error")
    fields = {error["field"] for error in body["errors"]}
    assert {"plan_id", "email"} <= fields
