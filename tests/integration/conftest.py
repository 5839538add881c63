"""Pytest fixtures for integration tests.

Provides async database fixtures for testing query functions and API
routes against an in-memory SQLite database. Production uses PostgreSQL;
the models store JSON documents through a portable column type so the same
schema works on both.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from projectflow.database.models import Base
from projectflow.notifications import WebhookNotifier
from projectflow.web.app import create_app


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory SQLite async engine shared by all sessions of a test."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def head_id() -> UUID:
    return uuid4()


@pytest.fixture
def member_id() -> UUID:
    return uuid4()


@pytest.fixture
def outsider_id() -> UUID:
    return uuid4()


@pytest.fixture
def notifier() -> AsyncMock:
    """Notifier stand-in recording the notifications routes send."""
    return AsyncMock(spec=WebhookNotifier)


@pytest.fixture
def app(session_factory: async_sessionmaker[AsyncSession], notifier: AsyncMock) -> FastAPI:
    """Create the app wired to the test database without running its lifespan."""
    test_app = create_app()
    test_app.state.session_factory = session_factory
    test_app.state.notifier = notifier
    return test_app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
