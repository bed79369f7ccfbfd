"""
Oracle Database connection management.

Uses python-oracledb's asyncio API for non-blocking database operations.
Provides connection pooling and transaction management.
"""

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from types import TracebackType
from typing import Any

import oracledb

from oracle_vectorstore.config.settings import get_settings

logger = logging.getLogger(__name__)


def error_code(exc: BaseException) -> int | None:
    """
    Extract the ORA- error number from an oracledb exception.

    Returns:
        Error number (e.g. 955 for ORA-00955) or None if unavailable
    """
    if isinstance(exc, oracledb.Error) and exc.args:
        error = exc.args[0]
        return getattr(error, "code", None)
    return None


def lob_output_handler(cursor: oracledb.AsyncCursor, metadata: oracledb.FetchInfo) -> Any:
    """Output type handler fetching LOB columns by value."""
    if metadata.type_code in (oracledb.DB_TYPE_CLOB, oracledb.DB_TYPE_NCLOB):
        return cursor.var(oracledb.DB_TYPE_LONG, arraysize=cursor.arraysize)
    if metadata.type_code == oracledb.DB_TYPE_BLOB:
        return cursor.var(oracledb.DB_TYPE_LONG_RAW, arraysize=cursor.arraysize)
    return None


class Database:
    """
    Async Oracle database connection manager.

    Uses an oracledb AsyncConnectionPool for efficient connection reuse.
    Provides transaction context managers and health checks.

    Usage:
        db = Database()
        await db.connect()

        async with db.transaction() as conn:
            with conn.cursor() as cursor:
                await cursor.execute("INSERT INTO ...")

        await db.close()
    """

    def __init__(
        self,
        dsn: str | None = None,
        user: str | None = None,
        password: str | None = None,
        min_size: int | None = None,
        max_size: int | None = None,
    ):
        """
        Initialize database connection manager.

        Args:
            dsn: Oracle connect string (host:port/service)
            user: Database user
            password: Database password
            min_size: Minimum pool size
            max_size: Maximum pool size
        """
        settings = get_settings()

        self._dsn = dsn or settings.oracle_dsn
        self._user = user or settings.oracle_user
        self._password = password or settings.oracle_password.get_secret_value()
        self._min_size = min_size or settings.db_pool_min_size
        self._max_size = max_size or settings.db_pool_max_size

        self._pool: oracledb.AsyncConnectionPool | None = None

    async def connect(self) -> None:
        """Establish database connection pool."""
        try:
            self._pool = oracledb.create_pool_async(
                user=self._user,
                password=self._password,
                dsn=self._dsn,
                min=self._min_size,
                max=self._max_size,
            )

            # Validate connectivity up front
            async with self._pool.acquire() as conn:
                await conn.ping()

            logger.info(
                f"Database connected (pool: {self._min_size}-{self._max_size})"
            )

        except Exception as e:
            logger.error(f"Failed to connect to database: {e}")
            raise

    async def close(self) -> None:
        """Close database connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Database connection closed")

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def pool(self) -> oracledb.AsyncConnectionPool:
        """Get connection pool, raising if not connected."""
        if self._pool is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._pool

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[oracledb.AsyncConnection]:
        """
        Acquire a connection from the pool.

        The connection fetches CLOB/BLOB columns as str/bytes instead of
        LOB locators. oracledb.defaults is left untouched.

        Usage:
            async with db.acquire() as conn:
                ...
        """
        async with self.pool.acquire() as conn:
            conn.outputtypehandler = lob_output_handler
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[oracledb.AsyncConnection]:
        """
        Start a transaction.

        Commits when the block exits normally, rolls back on error.
        """
        async with self.acquire() as conn:
            try:
                yield conn
            except BaseException:
                await conn.rollback()
                raise
            else:
                await conn.commit()

    async def execute(
        self,
        query: str,
        params: dict[str, Any] | Sequence[Any] | None = None,
    ) -> int:
        """
        Execute a statement and commit.

        DDL statements auto-commit in Oracle; the explicit commit covers DML.

        Args:
            query: SQL statement
            params: Bind parameters

        Returns:
            Number of rows affected (0 for DDL)
        """
        async with self.transaction() as conn:
            with conn.cursor() as cursor:
                await cursor.execute(query, params)
                return cursor.rowcount or 0

    async def executemany(
        self,
        query: str,
        rows: Sequence[dict[str, Any]] | Sequence[Sequence[Any]],
        batch_size: int | None = None,
    ) -> list[int]:
        """
        Execute a statement once per row and commit.

        Rows are sent in round trips of `batch_size` (all at once if None),
        all inside one transaction: a failure in any batch rolls back
        every batch of the call.

        Args:
            query: SQL statement with bind placeholders
            rows: One set of bind values per execution
            batch_size: Rows per round trip

        Returns:
            Rows affected by each execution, in input order
        """
        if not rows:
            return []

        step = batch_size or len(rows)
        counts: list[int] = []

        async with self.transaction() as conn:
            with conn.cursor() as cursor:
                for start in range(0, len(rows), step):
                    batch = rows[start : start + step]
                    await cursor.executemany(query, batch, arraydmlrowcounts=True)
                    counts.extend(cursor.getarraydmlrowcounts())

        return counts

    async def fetch(
        self,
        query: str,
        params: dict[str, Any] | Sequence[Any] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Execute a query and fetch all results.

        Args:
            query: SQL query
            params: Bind parameters

        Returns:
            List of rows as dicts keyed by lower-cased column name
        """
        async with self.acquire() as conn:
            with conn.cursor() as cursor:
                await cursor.execute(query, params)
                columns = [col[0].lower() for col in cursor.description or []]
                rows = await cursor.fetchall()
                return [dict(zip(columns, row)) for row in rows]

    async def fetchval(
        self,
        query: str,
        params: dict[str, Any] | Sequence[Any] | None = None,
    ) -> Any:
        """
        Execute a query and fetch a single value.

        Returns:
            First column of the first row, or None
        """
        async with self.acquire() as conn:
            with conn.cursor() as cursor:
                await cursor.execute(query, params)
                row = await cursor.fetchone()
                return row[0] if row else None

    async def health_check(self) -> bool:
        """
        Check if database is healthy.

        Returns:
            True if database is accessible
        """
        try:
            result = await self.fetchval("SELECT 1 FROM dual")
            return result == 1
        except Exception:
            return False


# Global database instance
_database: Database | None = None


async def get_database() -> Database:
    """
    Get global database instance.

    Creates and connects if not already connected.

    Returns:
        Connected Database instance
    """
    global _database

    if _database is None:
        _database = Database()
        await _database.connect()

    return _database


async def close_database() -> None:
    """Close global database connection."""
    global _database

    if _database is not None:
        await _database.close()
        _database = None
