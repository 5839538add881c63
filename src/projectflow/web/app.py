"""FastAPI application factory for Projectflow.

This module provides the main application factory function that creates
and configures a FastAPI application with:
- CORS middleware for cross-origin requests
- Request logging middleware with correlation IDs
- Database connection lifecycle management
- The shared lifecycle engine and notification webhook client

Example usage:
    >>> from projectflow.config import ProjectflowConfig
    >>> from projectflow.web.app import create_app
    >>>
    >>> app = create_app(ProjectflowConfig())
    >>>
    >>> import uvicorn
    >>> uvicorn.run(app, host="0.0.0.0", port=8000)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from projectflow import __version__
from projectflow.config import ProjectflowConfig
from projectflow.database.connection import build_engine, build_session_factory
from projectflow.lifecycle.engine import ProjectLifecycleEngine
from projectflow.logging import get_logger
from projectflow.notifications import WebhookNotifier
from projectflow.web.middleware import RequestLoggingMiddleware
from projectflow.web.routes.health import create_health_router
from projectflow.web.routes.projects import create_projects_router
from projectflow.web.routes.tasks import create_tasks_router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle with database connections.

    Creates the database engine and session factory on startup and stores
    them in app.state. On shutdown the connection pool is disposed and the
    notifier's HTTP client is closed.
    """
    config: ProjectflowConfig = app.state.config

    logger.info("app_startup_begin", host=config.web.host, port=config.web.port)

    engine = build_engine(config.database)
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    logger.info(
        "database_pool_initialized",
        pool_size=config.database.pool_size,
        max_overflow=config.database.max_overflow,
    )

    yield

    logger.info("app_shutdown_begin")
    await app.state.notifier.close()
    await engine.dispose()
    logger.info("database_pool_disposed")


def create_app(config: ProjectflowConfig | None = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Args:
        config: Optional ProjectflowConfig. If None, creates default config.

    Returns:
        Configured FastAPI application instance.
    """
    if config is None:
        config = ProjectflowConfig()

    app = FastAPI(
        title="Projectflow",
        version=__version__,
        description="Project tracking with pipeline-derived status",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.lifecycle_engine = ProjectLifecycleEngine()
    app.state.notifier = WebhookNotifier(config.notifications)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(create_health_router())
    app.include_router(create_projects_router())
    app.include_router(create_tasks_router())

    logger.info(
        "app_created",
        cors_origins=config.web.cors_origins,
        version=__version__,
    )

    return app
