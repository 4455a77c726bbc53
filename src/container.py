"""
Composition root for the driver tips service.

The only place that chooses concrete implementations. Every component gets its
collaborators through its constructor; the HTTP app, the queue entrypoint and
the CLI each build one `Container` and close it when they are done.

Usage:
    async with container_scope(get_settings()) as container:
        failed = await container.consumer.process_batch(items)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterator, Callable, Optional

from psycopg_pool import AsyncConnectionPool

from src.config import Settings, get_settings
from src.infrastructure.db_factory import create_async_pool, open_pool
from src.repositories.abstract import AbstractAggregateStore, DriverRepository
from src.repositories.memory import InMemoryAggregateStore, InMemoryDriverRepository
from src.repositories.postgres import PostgresAggregateStore, PostgresDriverRepository
from src.services.batch_consumer import BatchConsumer
from src.services.driver_service import DriverService
from src.services.tip_processor import TipEventProcessor
from src.services.tip_query import TipQueryService
from src.utils.logging import get_logger
from src.utils.time_buckets import utc_now

log = get_logger(__name__)


@dataclass
class Container:
    settings: Settings
    store: AbstractAggregateStore
    drivers: DriverRepository
    processor: TipEventProcessor
    consumer: BatchConsumer
    query: TipQueryService
    driver_service: DriverService
    pool: Optional[AsyncConnectionPool] = None

    async def aclose(self) -> None:
        if self.pool is not None:
            await self.pool.close()
            self.pool = None


def wire(
    settings: Settings,
    store: AbstractAggregateStore,
    drivers: DriverRepository,
    pool: Optional[AsyncConnectionPool] = None,
    clock: Callable[[], datetime] = utc_now,
) -> Container:
    """Assemble services around already-constructed repositories."""
    processor = TipEventProcessor(store, clock=clock)
    return Container(
        settings=settings,
        store=store,
        drivers=drivers,
        processor=processor,
        consumer=BatchConsumer(processor, concurrency=settings.consumer_concurrency),
        query=TipQueryService(drivers, store, clock=clock),
        driver_service=DriverService(drivers),
        pool=pool,
    )


async def build_container(
    settings: Optional[Settings] = None,
    clock: Callable[[], datetime] = utc_now,
) -> Container:
    """
    Build a container for the configured storage backend.

    For the postgres backend this opens the connection pool; callers own the
    container and must `aclose()` it.
    """
    settings = settings or get_settings()
    log.info("Building container", extra={"storage_backend": settings.storage_backend})

    if settings.storage_backend == "memory":
        return wire(settings, InMemoryAggregateStore(), InMemoryDriverRepository(), clock=clock)

    pool = await open_pool(create_async_pool(settings))
    store = PostgresAggregateStore(
        pool, table=settings.tips_table, retry_attempts=settings.store_retry_attempts
    )
    drivers = PostgresDriverRepository(pool, table=settings.drivers_table)
    return wire(settings, store, drivers, pool=pool, clock=clock)


@asynccontextmanager
async def container_scope(settings: Optional[Settings] = None) -> AsyncIterator[Container]:
    container = await build_container(settings)
    try:
        yield container
    finally:
        await container.aclose()


__all__ = ["Container", "build_container", "container_scope", "wire"]
