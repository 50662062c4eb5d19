"""Alembic migration environment for the export ledger.

The database URL and optional schema come from application settings, never
from alembic.ini. ``alembic -x database_url=...`` overrides the URL for a
single run.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool, text
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from dataset_export.core.config import get_settings
from dataset_export.models import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

settings = get_settings()
database_url = context.get_x_argument(as_dictionary=True).get("database_url", settings.database_url)
schema = settings.database_schema


def _configure(**kwargs: object) -> None:
    if schema is not None:
        kwargs["version_table_schema"] = schema
    context.configure(target_metadata=Base.metadata, compare_type=True, **kwargs)


def _migrate(connection: Connection) -> None:
    if schema is not None:
        connection.execute(text(f'SET search_path TO "{schema}", public'))
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def _migrate_online() -> None:
    engine = create_async_engine(database_url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            if schema is not None:
                await connection.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{schema}"'))
                await connection.commit()
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    # Emits SQL to stdout instead of connecting
    _configure(url=database_url, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()
else:
    asyncio.run(_migrate_online())
