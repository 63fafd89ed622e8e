"""Tests for the asyncpg Database wrapper."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.storage.database import Database, _init_connection


class TestDatabase:
    """Tests for pool lifecycle and helpers."""

    def test_pool_before_connect_raises(self, test_settings):
        db = Database(database_url="postgresql://u:p@localhost:5432/x")
        with pytest.raises(RuntimeError, match="not connected"):
            _ = db.pool

    def test_uses_settings_defaults(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db:5432/content")
        monkeypatch.setenv("DB_POOL_MAX_SIZE", "7")
        db = Database()
        assert db._database_url == "postgresql://u:p@db:5432/content"
        assert db._max_size == 7

    @pytest.mark.asyncio
    async def test_connect_creates_pool_with_json_codec(self):
        pool = MagicMock()
        create_pool = AsyncMock(return_value=pool)

        with patch("src.storage.database.asyncpg.create_pool", create_pool):
            db = Database(database_url="postgresql://u:p@localhost:5432/x", min_size=1, max_size=2)
            await db.connect()

        assert db.pool is pool
        kwargs = create_pool.call_args.kwargs
        assert kwargs["min_size"] == 1
        assert kwargs["max_size"] == 2
        assert kwargs["init"] is _init_connection

    @pytest.mark.asyncio
    async def test_connect_failure_propagates(self):
        with patch(
            "src.storage.database.asyncpg.create_pool",
            AsyncMock(side_effect=OSError("refused")),
        ):
            db = Database(database_url="postgresql://u:p@localhost:5432/x")
            with pytest.raises(OSError):
                await db.connect()

    @pytest.mark.asyncio
    async def test_init_connection_registers_json_codecs(self):
        conn = AsyncMock()
        await _init_connection(conn)
        type_names = [c.args[0] for c in conn.set_type_codec.call_args_list]
        assert type_names == ["json", "jsonb"]

    @pytest.mark.asyncio
    async def test_health_check_false_on_error(self):
        db = Database(database_url="postgresql://u:p@localhost:5432/x")
        db.fetchval = AsyncMock(side_effect=OSError("gone"))
        assert await db.health_check() is False

    @pytest.mark.asyncio
    async def test_health_check_true(self):
        db = Database(database_url="postgresql://u:p@localhost:5432/x")
        db.fetchval = AsyncMock(return_value=1)
        assert await db.health_check() is True

    @pytest.mark.asyncio
    async def test_transaction_wraps_acquired_connection(self):
        conn = MagicMock()
        conn.transaction.return_value.__aenter__ = AsyncMock()
        conn.transaction.return_value.__aexit__ = AsyncMock(return_value=False)
        pool = MagicMock()
        pool.acquire.return_value.__aenter__ = AsyncMock(return_value=conn)
        pool.acquire.return_value.__aexit__ = AsyncMock(return_value=False)

        db = Database(database_url="postgresql://u:p@localhost:5432/x")
        db._pool = pool
        async with db.transaction() as yielded:
            assert yielded is conn

        conn.transaction.return_value.__aenter__.assert_awaited_once()
        conn.transaction.return_value.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_releases_pool(self):
        pool = MagicMock()
        pool.close = AsyncMock()
        db = Database(database_url="postgresql://u:p@localhost:5432/x")
        db._pool = pool

        await db.close()

        pool.close.assert_awaited_once()
        with pytest.raises(RuntimeError):
            _ = db.pool
