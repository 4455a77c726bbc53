from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from src.repositories.abstract import AggregateStore
from src.repositories.memory import InMemoryAggregateStore

CONCURRENT_CALLERS = 200
T0 = datetime(2024, 1, 15, 10, 0, tzinfo=UTC)


def test_memory_store_satisfies_protocol(store: InMemoryAggregateStore):
    assert isinstance(store, AggregateStore)


@pytest.mark.asyncio
async def test_first_increment_creates_row(store: InMemoryAggregateStore):
    await store.increment("d1", "DAY#2024-01-15", Decimal("5.50"), T0)

    agg = await store.get("d1", "DAY#2024-01-15")
    assert agg is not None
    assert agg.driver_id == "d1"
    assert agg.aggregation_key == "DAY#2024-01-15"
    assert agg.total_amount == Decimal("5.50")
    assert agg.created_at == agg.updated_at == T0


@pytest.mark.asyncio
async def test_get_absent_returns_none(store: InMemoryAggregateStore):
    assert await store.get("d1", "DAY#2024-01-15") is None
    assert await store.get_daily_total("d1", "2024-01-15") is None
    assert await store.get_weekly_total("d1", "2024-W03") is None


@pytest.mark.asyncio
async def test_concurrent_increments_lose_no_updates(store: InMemoryAggregateStore):
    amounts = [Decimal("0.01") * (i % 7 + 1) for i in range(CONCURRENT_CALLERS)]

    await asyncio.gather(
        *(
            store.increment("d1", "WEEK#2024-W03", amount, T0 + timedelta(seconds=i))
            for i, amount in enumerate(amounts)
        )
    )

    agg = await store.get_weekly_total("d1", "2024-W03")
    assert agg is not None
    assert agg.total_amount == sum(amounts)


@pytest.mark.asyncio
async def test_created_at_is_first_write_and_updated_at_is_last(store: InMemoryAggregateStore):
    stamps = [T0, T0 + timedelta(minutes=1), T0 + timedelta(minutes=2)]
    for stamp in stamps:
        await store.increment("d1", "DAY#2024-01-15", Decimal("1"), stamp)

    agg = await store.get_daily_total("d1", "2024-01-15")
    assert agg is not None
    assert agg.created_at == stamps[0]
    assert agg.updated_at == stamps[-1]
    assert agg.created_at <= agg.updated_at
    assert agg.total_amount == Decimal("3")


@pytest.mark.asyncio
async def test_keys_are_independent(store: InMemoryAggregateStore):
    await asyncio.gather(
        store.increment("d1", "DAY#2024-01-15", Decimal("2"), T0),
        store.increment("d2", "DAY#2024-01-15", Decimal("3"), T0),
        store.increment("d1", "DAY#2024-01-16", Decimal("4"), T0),
    )

    assert (await store.get("d1", "DAY#2024-01-15")).total_amount == Decimal("2")
    assert (await store.get("d2", "DAY#2024-01-15")).total_amount == Decimal("3")
    assert (await store.get("d1", "DAY#2024-01-16")).total_amount == Decimal("4")
    assert len(store) == 3


class _SlowReadStore(InMemoryAggregateStore):
    """Suspends on every read, so increments interleave between read and write."""

    async def _fetch(self, key):
        await asyncio.sleep(0)
        return await super()._fetch(key)


@pytest.mark.asyncio
async def test_per_key_lock_serializes_interleaved_increments():
    store = _SlowReadStore()

    await asyncio.gather(
        *(store.increment("d1", "DAY#2024-01-15", Decimal("1"), T0) for _ in range(CONCURRENT_CALLERS))
    )

    agg = await store.get_daily_total("d1", "2024-01-15")
    assert agg.total_amount == Decimal(CONCURRENT_CALLERS)
    assert agg.created_at == T0
