"""Async engine and session factory for the export ledger database.

One engine per process, created by :func:`init_engine` during startup and
released by :func:`dispose_engine`. SQLAlchemy 2.x async with asyncpg in
production; tests run against aiosqlite.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Return the process engine.

    Raises:
        RuntimeError: If :func:`init_engine` has not been called.
    """
    if _engine is None:
        msg = "Database engine not initialized. Call init_engine() first."
        raise RuntimeError(msg)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory bound to the process engine.

    Raises:
        RuntimeError: If :func:`init_engine` has not been called.
    """
    if _session_factory is None:
        msg = "Session factory not initialized. Call init_engine() first."
        raise RuntimeError(msg)
    return _session_factory


def _connect_args(database_url: str, schema: str | None) -> dict[str, object]:
    if schema is None or not database_url.startswith("postgresql"):
        return {}
    # asyncpg applies server_settings on every new connection
    return {"server_settings": {"search_path": f"{schema},public"}}


def init_engine(
    database_url: str,
    *,
    schema: str | None = None,
    pool_size: int = 10,
    max_overflow: int = 5,
    echo: bool = False,
) -> AsyncEngine:
    """Create the process engine and session factory.

    Args:
        database_url: Async connection string (``postgresql+asyncpg://...``).
        schema: PostgreSQL schema searched before ``public``.
        pool_size: Connections kept open in the pool. Ignored for SQLite.
        max_overflow: Extra connections allowed above ``pool_size``. Ignored for SQLite.
        echo: Log every statement.

    Returns:
        The created engine.
    """
    global _engine, _session_factory  # noqa: PLW0603
    kwargs: dict[str, object] = {"echo": echo, "connect_args": _connect_args(database_url, schema)}
    if not database_url.startswith("sqlite"):
        kwargs["pool_size"] = pool_size
        kwargs["max_overflow"] = max_overflow
        kwargs["pool_pre_ping"] = True
    _engine = create_async_engine(database_url, **kwargs)
    # Loaded rows stay readable after the transaction that loaded them commits
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    return _engine


async def dispose_engine() -> None:
    """Dispose of the process engine and release its connections."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
