"""Engine and session factories for the project store.

PostgreSQL (asyncpg) is the production backend. SQLite URLs are accepted
for local runs and tests; they get SQLAlchemy's default pool because the
sizing options only apply to a queue pool.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from projectflow.config import DatabaseConfig


def uses_sqlite(config: DatabaseConfig) -> bool:
    return make_url(config.url).get_backend_name() == "sqlite"


def build_engine(config: DatabaseConfig) -> AsyncEngine:
    """Create the async engine for the configured store."""
    options: dict[str, Any] = {"echo": config.echo}
    if not uses_sqlite(config):
        options.update(pool_size=config.pool_size, max_overflow=config.max_overflow)
    return create_async_engine(config.url, **options)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory shared by the web app and the CLI.

    Loaded projects stay readable after commit; routes serialize them once
    the session has been closed.
    """
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
