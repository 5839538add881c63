"""Migration environment for the Projectflow schema.

The database URL comes from the Projectflow configuration (TOML file and
``PROJECTFLOW_DATABASE__URL``). ``alembic -x url=...`` overrides it for a
single run, e.g. to render offline SQL against another server.
"""

from __future__ import annotations

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from projectflow.config import load_config
from projectflow.database.models import Base

alembic_config = context.config
if alembic_config.config_file_name is not None:
    fileConfig(alembic_config.config_file_name)

target_metadata = Base.metadata


def database_url() -> str:
    return context.get_x_argument(as_dictionary=True).get("url") or load_config().database.url


def configure_context(**options: object) -> None:
    # compare_type picks up enum member and JSON/JSONB changes on autogenerate
    context.configure(target_metadata=target_metadata, compare_type=True, **options)


def run_offline() -> None:
    configure_context(
        url=database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def migrate(connection: Connection) -> None:
    configure_context(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_online() -> None:
    engine = create_async_engine(database_url(), poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    asyncio.run(run_online())
