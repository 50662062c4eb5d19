"""Unit tests for engine lifecycle helpers."""

import pytest

from dataset_export.core import database
from dataset_export.core.database import dispose_engine, get_engine, get_session_factory, init_engine


class TestEngineLifecycle:
    async def test_accessors_fail_before_init(self) -> None:
        await dispose_engine()

        with pytest.raises(RuntimeError, match="not initialized"):
            get_engine()
        with pytest.raises(RuntimeError, match="not initialized"):
            get_session_factory()

    async def test_init_then_dispose(self) -> None:
        engine = init_engine("sqlite+aiosqlite:///:memory:")

        assert get_engine() is engine
        assert get_session_factory().kw["expire_on_commit"] is False

        await dispose_engine()
        assert database._engine is None
        assert database._session_factory is None

    def test_search_path_only_for_postgres(self) -> None:
        assert database._connect_args("sqlite+aiosqlite:///:memory:", "pr_42") == {}
        assert database._connect_args("postgresql+asyncpg://localhost/db", None) == {}
        assert database._connect_args("postgresql+asyncpg://localhost/db", "pr_42") == {
            "server_settings": {"search_path": "pr_42,public"}
        }
