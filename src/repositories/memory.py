"""
In-memory storage backends.

Used by the unit tests and by `STORAGE_BACKEND=memory` for local runs. The
aggregate store serializes each key's read-modify-write behind its own
`asyncio.Lock`, giving the same no-lost-update guarantee as the database
upsert while leaving different keys fully concurrent.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from src.domain.models import Driver, TipAggregate
from src.repositories.abstract import AbstractAggregateStore

_Key = Tuple[str, str]


class InMemoryAggregateStore(AbstractAggregateStore):
    """
    Dict-backed aggregate store with per-key locking.

    Not shared across processes; state lives only as long as the instance.
    """

    def __init__(self) -> None:
        self._rows: Dict[_Key, TipAggregate] = {}
        self._locks: defaultdict[_Key, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def increment(
        self, driver_id: str, aggregation_key: str, amount: Decimal, now: datetime
    ) -> None:
        key = (driver_id, aggregation_key)
        async with self._locks[key]:
            current = await self._fetch(key)
            if current is None:
                self._rows[key] = TipAggregate(
                    driver_id=driver_id,
                    aggregation_key=aggregation_key,
                    total_amount=amount,
                    created_at=now,
                    updated_at=now,
                )
            else:
                self._rows[key] = current.model_copy(
                    update={"total_amount": current.total_amount + amount, "updated_at": now}
                )

    async def get(self, driver_id: str, aggregation_key: str) -> Optional[TipAggregate]:
        return await self._fetch((driver_id, aggregation_key))

    async def _fetch(self, key: _Key) -> Optional[TipAggregate]:
        return self._rows.get(key)

    def __len__(self) -> int:
        return len(self._rows)


class InMemoryDriverRepository:
    def __init__(self, drivers: Optional[List[Driver]] = None) -> None:
        self._drivers: Dict[str, Driver] = {d.id: d for d in drivers or []}

    async def find_by_id(self, driver_id: str) -> Optional[Driver]:
        return self._drivers.get(driver_id)

    async def create(self, driver: Driver) -> Driver:
        self._drivers[driver.id] = driver
        return driver

    async def find_all(self) -> List[Driver]:
        return list(self._drivers.values())


__all__ = ["InMemoryAggregateStore", "InMemoryDriverRepository"]
