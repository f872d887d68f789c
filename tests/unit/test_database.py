"""Unit tests for database pool helpers and migrations."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import asyncpg
import pytest

from identity_broker import database


class _Acquire:
    def __init__(self, conn):
        self._conn = conn

    async def __aenter__(self):
        return self._conn

    async def __aexit__(self, *args):
        pass


@pytest.fixture
def pool_and_conn():
    conn = MagicMock()
    conn.execute = AsyncMock()
    conn.fetchval = AsyncMock(return_value=1)
    pool = MagicMock()
    pool.acquire.return_value = _Acquire(conn)
    with patch.object(database, "get_pool", new=AsyncMock(return_value=pool)):
        yield pool, conn


class TestGetPool:
    @pytest.mark.asyncio
    async def test_uninitialized_pool_raises(self):
        with patch.object(database, "_pool", None):
            with pytest.raises(RuntimeError):
                await database.get_pool()


class TestRunMigrations:
    """Tests for run_migrations."""

    def test_schema_ships_inside_package(self):
        package_dir = Path(database.__file__).parent

        assert database.MIGRATIONS_DIR.parent == package_dir
        assert (database.MIGRATIONS_DIR / "001_users.sql").is_file()

    @pytest.mark.asyncio
    async def test_applies_users_schema(self, pool_and_conn):
        _, conn = pool_and_conn

        await database.run_migrations()

        applied = [call.args[0] for call in conn.execute.await_args_list]
        assert any("CREATE TABLE IF NOT EXISTS users" in sql for sql in applied)
        assert any("users_provider_id_key" in sql for sql in applied)

    @pytest.mark.asyncio
    async def test_applies_files_in_name_order(self, pool_and_conn, tmp_path):
        _, conn = pool_and_conn
        (tmp_path / "002_second.sql").write_text("SELECT 2;")
        (tmp_path / "001_first.sql").write_text("SELECT 1;")

        await database.run_migrations(tmp_path)

        assert [c.args[0] for c in conn.execute.await_args_list] == ["SELECT 1;", "SELECT 2;"]

    @pytest.mark.asyncio
    async def test_failing_file_aborts(self, pool_and_conn, tmp_path):
        _, conn = pool_and_conn
        conn.execute.side_effect = asyncpg.PostgresError("syntax error")
        (tmp_path / "001_broken.sql").write_text("CREATE TABLEX;")

        with pytest.raises(asyncpg.PostgresError):
            await database.run_migrations(tmp_path)

    @pytest.mark.asyncio
    async def test_missing_directory_is_skipped(self, pool_and_conn, tmp_path):
        _, conn = pool_and_conn

        await database.run_migrations(tmp_path / "absent")

        conn.execute.assert_not_awaited()


class TestHealthCheck:
    @pytest.mark.asyncio
    async def test_healthy(self, pool_and_conn):
        assert await database.health_check() is True

    @pytest.mark.asyncio
    async def test_unavailable(self):
        with patch.object(database, "get_pool", new=AsyncMock(side_effect=RuntimeError("x"))):
            assert await database.health_check() is False
