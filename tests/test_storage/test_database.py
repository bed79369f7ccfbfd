"""Tests for the Oracle Database connection manager."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import oracledb
import pytest

from oracle_vectorstore.storage.database import Database, error_code, lob_output_handler


@pytest.fixture
def cursor() -> MagicMock:
    """Mock AsyncCursor."""
    cursor = MagicMock()
    cursor.execute = AsyncMock()
    cursor.executemany = AsyncMock()
    cursor.fetchall = AsyncMock(return_value=[])
    cursor.fetchone = AsyncMock(return_value=None)
    cursor.getarraydmlrowcounts = MagicMock(return_value=[])
    cursor.rowcount = 0
    cursor.description = None
    return cursor


@pytest.fixture
def connection(cursor) -> MagicMock:
    """Mock AsyncConnection whose cursor() yields the mock cursor."""
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor
    conn.commit = AsyncMock()
    conn.rollback = AsyncMock()
    conn.ping = AsyncMock()
    return conn


@pytest.fixture
def pool(connection) -> MagicMock:
    """Mock AsyncConnectionPool."""
    pool = MagicMock()
    pool.acquire.return_value.__aenter__.return_value = connection
    pool.close = AsyncMock()
    return pool


@pytest.fixture
def database(pool) -> Database:
    db = Database(dsn="db.test:1521/freepdb1", user="vector", password="secret")
    db._pool = pool
    return db


class TestErrorCode:
    def test_oracle_error(self, ora_error):
        assert error_code(ora_error(955)) == 955

    def test_other_exception(self):
        assert error_code(RuntimeError("x")) is None


class TestLobOutputHandler:
    """Tests for fetching LOB columns by value."""

    def test_clob_fetched_as_long(self):
        cursor = MagicMock(arraysize=100)

        lob_output_handler(cursor, SimpleNamespace(type_code=oracledb.DB_TYPE_CLOB))

        cursor.var.assert_called_once_with(oracledb.DB_TYPE_LONG, arraysize=100)

    def test_blob_fetched_as_long_raw(self):
        cursor = MagicMock(arraysize=100)

        lob_output_handler(cursor, SimpleNamespace(type_code=oracledb.DB_TYPE_BLOB))

        cursor.var.assert_called_once_with(oracledb.DB_TYPE_LONG_RAW, arraysize=100)

    def test_other_types_untouched(self):
        cursor = MagicMock(arraysize=100)

        assert lob_output_handler(cursor, SimpleNamespace(type_code=oracledb.DB_TYPE_JSON)) is None
        cursor.var.assert_not_called()

    @pytest.mark.asyncio
    async def test_set_on_acquired_connections(self, database, connection):
        async with database.acquire() as conn:
            assert conn.outputtypehandler is lob_output_handler

        async with database.transaction() as conn:
            assert conn.outputtypehandler is lob_output_handler


class TestConnection:
    """Tests for connect/close."""

    @pytest.mark.asyncio
    async def test_connect_creates_pool_and_pings(self, pool, connection, monkeypatch):
        monkeypatch.setattr(oracledb.defaults, "fetch_lobs", True)
        db = Database(dsn="db.test:1521/freepdb1", user="vector", password="secret")

        with patch(
            "oracle_vectorstore.storage.database.oracledb.create_pool_async",
            return_value=pool,
        ) as create_pool:
            await db.connect()

        create_pool.assert_called_once()
        assert create_pool.call_args.kwargs["dsn"] == "db.test:1521/freepdb1"
        assert create_pool.call_args.kwargs["user"] == "vector"
        connection.ping.assert_awaited_once()
        assert oracledb.defaults.fetch_lobs is True
        assert db.pool is pool

    @pytest.mark.asyncio
    async def test_close(self, database, pool):
        await database.close()

        pool.close.assert_awaited_once()
        with pytest.raises(RuntimeError):
            _ = database.pool

    def test_pool_requires_connect(self):
        with pytest.raises(RuntimeError):
            _ = Database(password="x").pool


class TestTransaction:
    """Tests for transaction()."""

    @pytest.mark.asyncio
    async def test_commit_on_success(self, database, connection):
        async with database.transaction():
            pass

        connection.commit.assert_awaited_once()
        connection.rollback.assert_not_called()

    @pytest.mark.asyncio
    async def test_rollback_on_error(self, database, connection):
        with pytest.raises(ValueError):
            async with database.transaction():
                raise ValueError("boom")

        connection.rollback.assert_awaited_once()
        connection.commit.assert_not_called()


class TestQueries:
    """Tests for execute/executemany/fetch/fetchval."""

    @pytest.mark.asyncio
    async def test_execute_returns_rowcount(self, database, cursor, connection):
        cursor.rowcount = 3

        result = await database.execute("DELETE FROM t WHERE id = :id", {"id": "a"})

        assert result == 3
        cursor.execute.assert_awaited_once_with("DELETE FROM t WHERE id = :id", {"id": "a"})
        connection.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_executemany_batches(self, database, cursor):
        cursor.getarraydmlrowcounts.side_effect = [[1, 1], [1, 0], [1]]
        rows = [{"id": str(i)} for i in range(5)]

        counts = await database.executemany("DELETE FROM t WHERE id = :id", rows, batch_size=2)

        assert counts == [1, 1, 1, 0, 1]
        assert cursor.executemany.await_count == 3
        first_batch = cursor.executemany.await_args_list[0]
        assert first_batch.args[1] == rows[:2]
        assert first_batch.kwargs["arraydmlrowcounts"] is True

    @pytest.mark.asyncio
    async def test_executemany_single_transaction(self, database, cursor, connection):
        cursor.executemany.side_effect = [None, RuntimeError("ORA-00001")]
        cursor.getarraydmlrowcounts.return_value = [1, 1]

        with pytest.raises(RuntimeError):
            await database.executemany("INSERT", [{"id": "1"}, {"id": "2"}, {"id": "3"}], batch_size=2)

        connection.rollback.assert_awaited_once()
        connection.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_executemany_empty(self, database, cursor):
        assert await database.executemany("INSERT", []) == []
        cursor.executemany.assert_not_called()

    @pytest.mark.asyncio
    async def test_fetch_returns_dicts(self, database, cursor):
        cursor.description = [("ID",), ("DISTANCE",)]
        cursor.fetchall.return_value = [("a", 0.1), ("b", 0.2)]

        rows = await database.fetch("SELECT id, distance FROM t")

        assert rows == [{"id": "a", "distance": 0.1}, {"id": "b", "distance": 0.2}]

    @pytest.mark.asyncio
    async def test_fetchval(self, database, cursor):
        cursor.fetchone.return_value = (1,)

        assert await database.fetchval("SELECT 1 FROM dual") == 1

    @pytest.mark.asyncio
    async def test_health_check(self, database, cursor):
        cursor.fetchone.return_value = (1,)

        assert await database.health_check() is True

    @pytest.mark.asyncio
    async def test_health_check_failure(self, database, cursor):
        cursor.execute.side_effect = RuntimeError("down")

        assert await database.health_check() is False


class TestGlobalDatabase:
    """Tests for get_database/close_database."""

    @pytest.mark.asyncio
    async def test_get_database_connects_once(self, pool, monkeypatch):
        from oracle_vectorstore.storage import database as database_module

        monkeypatch.setattr(database_module, "_database", None)

        with patch(
            "oracle_vectorstore.storage.database.oracledb.create_pool_async",
            return_value=pool,
        ) as create_pool:
            first = await database_module.get_database()
            second = await database_module.get_database()

        assert first is second
        create_pool.assert_called_once()

        await database_module.close_database()

        pool.close.assert_awaited_once()
        assert database_module._database is None
