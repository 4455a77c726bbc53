"""
Database connectivity for the PostgreSQL storage backend.

Builds the async connection pool that the repositories share, creates the
schema, and translates psycopg failures into the service's storage errors.
The pool is owned by the composition root and passed to repositories
explicitly; there is no module-level pool.

Includes retry logic for transient failures using tenacity.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import psycopg
from psycopg import errors, sql
from psycopg_pool import AsyncConnectionPool, PoolTimeout
from tenacity import (
    AsyncRetrying,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.config import Settings
from src.domain.exceptions import StoreRejected, StoreUnavailable
from src.utils.logging import get_logger

log = get_logger(__name__)

# SQLSTATE class 53: insufficient resources (disk, memory, connection slots).
_REJECTED_SQLSTATE_CLASS = "53"
_REJECTED_ERRORS = (PoolTimeout, errors.QueryCanceled)
_UNAVAILABLE_ERRORS = (
    psycopg.OperationalError,
    psycopg.InterfaceError,
    errors.SerializationFailure,
    errors.DeadlockDetected,
)


def build_dsn(settings: Settings) -> str:
    """Compose a DSN string from settings."""
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def create_async_pool(settings: Settings, dsn_override: str | None = None) -> AsyncConnectionPool:
    """
    Create (but do not open) the async pool used by the repositories.

    Connections run in autocommit mode: every repository call is a single
    statement, so there is nothing to group into a transaction.
    """
    return AsyncConnectionPool(
        conninfo=dsn_override or build_dsn(settings),
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        kwargs={
            "autocommit": True,
            "options": f"-c statement_timeout={settings.db_statement_timeout_ms}",
        },
        open=False,
    )


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, OSError)),
    reraise=True,
)
async def open_pool(pool: AsyncConnectionPool, timeout: float = 10.0) -> AsyncConnectionPool:
    """
    Open the pool and wait for `min_size` connections, with automatic retry.

    Raises
    ------
    psycopg_pool.PoolTimeout
        If the pool cannot be filled after all retry attempts.
    """
    log.info("Opening database pool", extra={"min_size": pool.min_size, "max_size": pool.max_size})
    await pool.open(wait=True, timeout=timeout)
    return pool


def store_retrying(attempts: int) -> AsyncRetrying:
    """
    Retry policy for single store operations.

    Only `StoreUnavailable` is retried; `StoreRejected` goes straight back to
    the caller so backpressure is not amplified.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
        retry=retry_if_exception_type(StoreUnavailable),
        reraise=True,
    )


@asynccontextmanager
async def translate_errors(operation: str) -> AsyncIterator[None]:
    """
    Map psycopg failures raised inside the block onto storage errors.

    Programming and data errors are bugs, not outages, and propagate unchanged.
    """
    try:
        yield
    except psycopg.Error as exc:
        if _is_rejection(exc):
            raise StoreRejected(f"{operation} rejected by database: {exc}") from exc
        if isinstance(exc, _UNAVAILABLE_ERRORS):
            raise StoreUnavailable(f"{operation} failed, database unavailable: {exc}") from exc
        raise


def _is_rejection(exc: psycopg.Error) -> bool:
    """Capacity or throttling condition: the server is up but refusing work."""
    if isinstance(exc, _REJECTED_ERRORS):
        return True
    return (exc.sqlstate or "").startswith(_REJECTED_SQLSTATE_CLASS)


async def ensure_schema(pool: AsyncConnectionPool, settings: Settings) -> None:
    """Create the aggregate and driver tables if they do not exist."""
    statements = [
        sql.SQL(
            """
            CREATE TABLE IF NOT EXISTS {table} (
                pk TEXT NOT NULL,
                sk TEXT NOT NULL,
                total_amount NUMERIC NOT NULL,
                created_at TIMESTAMPTZ NOT NULL,
                updated_at TIMESTAMPTZ NOT NULL,
                PRIMARY KEY (pk, sk)
            )
            """
        ).format(table=sql.Identifier(settings.tips_table)),
        sql.SQL(
            """
            CREATE TABLE IF NOT EXISTS {table} (
                id TEXT PRIMARY KEY,
                firstname TEXT NOT NULL,
                lastname TEXT NOT NULL,
                driver_license_id TEXT NOT NULL
            )
            """
        ).format(table=sql.Identifier(settings.drivers_table)),
    ]
    async with translate_errors("ensure_schema"):
        async with pool.connection() as conn:
            for statement in statements:
                await conn.execute(statement)
    log.info(
        "Schema ready",
        extra={"tips_table": settings.tips_table, "drivers_table": settings.drivers_table},
    )


__all__ = [
    "build_dsn",
    "create_async_pool",
    "ensure_schema",
    "open_pool",
    "store_retrying",
    "translate_errors",
]
