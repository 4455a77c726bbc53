"""
Pytest configuration for the driver tips service.

Provides fixtures for:
- In-memory repositories and a fixed clock for unit tests
- A fully wired container (memory backend)
- Database connection management for integration tests
"""

from __future__ import annotations

import os
from datetime import UTC, datetime
from typing import AsyncGenerator, Callable

import psycopg
import pytest
import pytest_asyncio

from src.config import Settings
from src.container import Container, wire
from src.domain.models import Driver
from src.infrastructure.db_factory import build_dsn, create_async_pool, ensure_schema
from src.repositories.memory import InMemoryAggregateStore, InMemoryDriverRepository

FIXED_NOW = datetime(2024, 1, 15, 10, 30, tzinfo=UTC)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def fixed_clock(fixed_now: datetime) -> Callable[[], datetime]:
    return lambda: fixed_now


@pytest.fixture
def store() -> InMemoryAggregateStore:
    return InMemoryAggregateStore()


@pytest.fixture
def driver() -> Driver:
    return Driver(id="d1", firstname="Linda", lastname="Doe", driver_license_id="12345")


@pytest.fixture
def drivers(driver: Driver) -> InMemoryDriverRepository:
    return InMemoryDriverRepository([driver])


@pytest.fixture
def memory_settings() -> Settings:
    return Settings(storage_backend="memory", consumer_concurrency=4, log_level="DEBUG")


@pytest.fixture
def container(
    memory_settings: Settings,
    store: InMemoryAggregateStore,
    drivers: InMemoryDriverRepository,
    fixed_clock: Callable[[], datetime],
) -> Container:
    return wire(memory_settings, store, drivers, clock=fixed_clock)


# --- integration -----------------------------------------------------------


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "driver_tips"),
        tips_table="test_driver_tip_aggregates",
        drivers_table="test_drivers",
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    return build_dsn(test_settings)


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest_asyncio.fixture
async def pg_pool(test_settings: Settings, db_connection_available: bool) -> AsyncGenerator:
    """
    Open a pool against the test database with clean tables.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    pool = create_async_pool(test_settings)
    await pool.open(wait=True, timeout=10)
    try:
        await ensure_schema(pool, test_settings)
        async with pool.connection() as conn:
            await conn.execute(
                f"TRUNCATE TABLE {test_settings.tips_table}, {test_settings.drivers_table}"
            )
        yield pool
    finally:
        await pool.close()
