"""Unit tests for FastAPI application setup.

Tests cover:
- Application factory creates FastAPI instance with shared services
- CORS and request logging middleware
- Health and readiness endpoints
- Actor header handling
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from httpx import ASGITransport, AsyncClient

from projectflow.config import ProjectflowConfig, WebConfig
from projectflow.lifecycle.engine import ProjectLifecycleEngine
from projectflow.logging import get_correlation_id
from projectflow.notifications import WebhookNotifier
from projectflow.web.app import create_app
from projectflow.web.middleware import RequestLoggingMiddleware


def _client(app: FastAPI) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.fixture
def app_with_mock_db() -> FastAPI:
    app = create_app()
    app.state.session_factory = MagicMock()
    return app


class TestCreateApp:
    """Test application factory function."""

    def test_returns_fastapi_instance(self) -> None:
        app = create_app()
        assert isinstance(app, FastAPI)
        assert app.title == "Projectflow"
        assert app.version == "0.1.0"

    def test_app_stores_config_in_state(self) -> None:
        config = ProjectflowConfig()
        app = create_app(config)
        assert app.state.config is config

    def test_app_state_holds_shared_services(self) -> None:
        app = create_app()
        assert isinstance(app.state.lifecycle_engine, ProjectLifecycleEngine)
        assert isinstance(app.state.notifier, WebhookNotifier)
        assert app.state.notifier.config is app.state.config.notifications

    def test_middleware_registered(self) -> None:
        origins = ["https://app.example.com"]
        app = create_app(ProjectflowConfig(web=WebConfig(cors_origins=origins)))

        by_class = {m.cls: m for m in app.user_middleware}
        assert RequestLoggingMiddleware in by_class
        assert by_class[CORSMiddleware].kwargs["allow_origins"] == origins

    def test_routes_registered(self) -> None:
        app = create_app()
        paths = set(app.openapi()["paths"])

        assert "/health/ready" in paths
        assert "/projects/mine" in paths
        assert "/projects/{project_id}/pipeline/stages/{stage_name}" in paths
        assert "/projects/{project_id}/history" in paths
        assert "/tasks/mine" in paths
        assert "/tasks/{task_id}/status" in paths


class TestHealthEndpoints:
    """Test health and readiness endpoints."""

    @pytest.mark.asyncio
    async def test_health_endpoint(self, app_with_mock_db: FastAPI) -> None:
        async with _client(app_with_mock_db) as client:
            response = await client.get("/health/")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_readiness_when_db_healthy(self) -> None:
        app = create_app()
        session = AsyncMock()
        factory = MagicMock()
        factory.return_value.__aenter__ = AsyncMock(return_value=session)
        factory.return_value.__aexit__ = AsyncMock(return_value=None)
        app.state.session_factory = factory

        async with _client(app) as client:
            response = await client.get("/health/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "database": "connected"}
        session.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_readiness_when_db_fails(self) -> None:
        app = create_app()
        factory = MagicMock()
        factory.return_value.__aenter__ = AsyncMock(side_effect=ConnectionError("refused"))
        factory.return_value.__aexit__ = AsyncMock(return_value=None)
        app.state.session_factory = factory

        async with _client(app) as client:
            response = await client.get("/health/ready")

        assert response.status_code == 503
        assert response.json() == {"status": "unhealthy", "database": "disconnected"}


class TestCorrelationId:
    """Test correlation ID handling in middleware."""

    @pytest.mark.asyncio
    async def test_response_includes_correlation_id(self, app_with_mock_db: FastAPI) -> None:
        async with _client(app_with_mock_db) as client:
            response = await client.get("/health/")
        assert "X-Correlation-ID" in response.headers

    @pytest.mark.asyncio
    async def test_response_echoes_provided_correlation_id(
        self, app_with_mock_db: FastAPI
    ) -> None:
        async with _client(app_with_mock_db) as client:
            response = await client.get("/health/", headers={"X-Correlation-ID": "corr-42"})
        assert response.headers["X-Correlation-ID"] == "corr-42"

    @pytest.mark.asyncio
    async def test_request_context_bound_for_handlers(self, app_with_mock_db: FastAPI) -> None:
        @app_with_mock_db.get("/context")
        async def context() -> dict[str, Any]:
            return {
                "correlation_id": get_correlation_id(),
                **structlog.contextvars.get_contextvars(),
            }

        async with _client(app_with_mock_db) as client:
            response = await client.get("/context", headers={"X-Correlation-ID": "corr-7"})

        assert response.json() == {"correlation_id": "corr-7", "method": "GET", "path": "/context"}
        assert get_correlation_id() is None


class TestActorHeader:
    """Test identification of the acting user."""

    @pytest.mark.asyncio
    async def test_missing_header_is_unauthorized(self, app_with_mock_db: FastAPI) -> None:
        async with _client(app_with_mock_db) as client:
            response = await client.get("/projects/mine")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_malformed_header_is_unauthorized(self, app_with_mock_db: FastAPI) -> None:
        async with _client(app_with_mock_db) as client:
            response = await client.get("/tasks/mine", headers={"X-User-ID": "not-a-uuid"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_configured_header_name_is_used(self) -> None:
        app = create_app(ProjectflowConfig(web=WebConfig(actor_header="X-Remote-User")))
        app.state.session_factory = MagicMock()

        async with _client(app) as client:
            response = await client.get(
                "/tasks/mine",
                headers={"X-User-ID": "00000000-0000-0000-0000-000000000001"},
            )
        assert response.status_code == 401
