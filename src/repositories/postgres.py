"""
PostgreSQL storage backends (psycopg 3, async pool).

The aggregate increment is one `INSERT ... ON CONFLICT DO UPDATE` statement.
Postgres takes the row lock for the conflicting key, so concurrent increments
on the same bucket serialize inside the database and none is lost; the
`created_at` column is only written by the INSERT branch, which makes the
first write win.

Row layout mirrors a key-value medium: `pk` = `DRIVER#<driver_id>`,
`sk` = bucket key.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from src.domain.models import Driver, TipAggregate
from src.infrastructure.db_factory import store_retrying, translate_errors
from src.repositories.abstract import AbstractAggregateStore, partition_key
from src.utils.logging import get_logger

log = get_logger(__name__)

_PK_PREFIX = partition_key("")


class PostgresAggregateStore(AbstractAggregateStore):
    """
    Aggregate store backed by a single PostgreSQL table.

    Transient failures are retried in-process (`retry_attempts` total tries)
    before `StoreUnavailable` reaches the caller.
    """

    def __init__(
        self,
        pool: AsyncConnectionPool,
        table: str = "driver_tip_aggregates",
        retry_attempts: int = 3,
    ) -> None:
        self._pool = pool
        self._table = sql.Identifier(table)
        self._retry_attempts = retry_attempts
        self._increment_sql = sql.SQL(
            """
            INSERT INTO {table} AS agg (pk, sk, total_amount, created_at, updated_at)
            VALUES (%s, %s, %s, %s, %s)
            ON CONFLICT (pk, sk) DO UPDATE
            SET total_amount = agg.total_amount + EXCLUDED.total_amount,
                updated_at = EXCLUDED.updated_at
            """
        ).format(table=self._table)
        self._get_sql = sql.SQL(
            "SELECT pk, sk, total_amount, created_at, updated_at FROM {table} "
            "WHERE pk = %s AND sk = %s"
        ).format(table=self._table)

    async def increment(
        self, driver_id: str, aggregation_key: str, amount: Decimal, now: datetime
    ) -> None:
        params = (partition_key(driver_id), aggregation_key, amount, now, now)
        async for attempt in store_retrying(self._retry_attempts):
            with attempt:
                async with translate_errors("increment"):
                    async with self._pool.connection() as conn:
                        await conn.execute(self._increment_sql, params)
        log.debug(
            "Aggregate incremented",
            extra={"driver_id": driver_id, "aggregation_key": aggregation_key, "amount": str(amount)},
        )

    async def get(self, driver_id: str, aggregation_key: str) -> Optional[TipAggregate]:
        row = None
        async for attempt in store_retrying(self._retry_attempts):
            with attempt:
                async with translate_errors("get"):
                    async with self._pool.connection() as conn:
                        async with conn.cursor(row_factory=dict_row) as cur:
                            await cur.execute(
                                self._get_sql, (partition_key(driver_id), aggregation_key)
                            )
                            row = await cur.fetchone()
        return _to_aggregate(row) if row else None


def _to_aggregate(row: dict) -> TipAggregate:
    return TipAggregate(
        driver_id=row["pk"].removeprefix(_PK_PREFIX),
        aggregation_key=row["sk"],
        total_amount=row["total_amount"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresDriverRepository:
    def __init__(self, pool: AsyncConnectionPool, table: str = "drivers") -> None:
        self._pool = pool
        self._table = sql.Identifier(table)

    async def find_by_id(self, driver_id: str) -> Optional[Driver]:
        query = sql.SQL(
            "SELECT id, firstname, lastname, driver_license_id FROM {table} WHERE id = %s"
        ).format(table=self._table)
        async with translate_errors("find_driver"):
            async with self._pool.connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cur:
                    await cur.execute(query, (driver_id,))
                    row = await cur.fetchone()
        return Driver.model_validate(row) if row else None

    async def create(self, driver: Driver) -> Driver:
        query = sql.SQL(
            "INSERT INTO {table} (id, firstname, lastname, driver_license_id) "
            "VALUES (%s, %s, %s, %s)"
        ).format(table=self._table)
        async with translate_errors("create_driver"):
            async with self._pool.connection() as conn:
                await conn.execute(
                    query, (driver.id, driver.firstname, driver.lastname, driver.driver_license_id)
                )
        return driver

    async def find_all(self) -> List[Driver]:
        query = sql.SQL(
            "SELECT id, firstname, lastname, driver_license_id FROM {table} ORDER BY lastname, id"
        ).format(table=self._table)
        async with translate_errors("list_drivers"):
            async with self._pool.connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cur:
                    await cur.execute(query)
                    rows = await cur.fetchall()
        return [Driver.model_validate(r) for r in rows]


__all__ = ["PostgresAggregateStore", "PostgresDriverRepository"]
