"""
Storage interfaces for the driver tips service.

Concrete backends (in-memory, PostgreSQL) implement the `AggregateStore` and
`DriverRepository` protocols. `AbstractAggregateStore` is an optional ABC that
adds the day/week lookup helpers on top of the two primitive operations.
"""

from __future__ import annotations

import abc
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Protocol, runtime_checkable

from src.domain.models import Driver, TipAggregate
from src.utils.time_buckets import DAY_PREFIX, WEEK_PREFIX


def partition_key(driver_id: str) -> str:
    """Partition identity under which all of a driver's aggregates live."""
    return f"DRIVER#{driver_id}"


@runtime_checkable
class AggregateStore(Protocol):
    """
    Keyed counters with atomic increment and point lookup.

    Implementations must guarantee that any number of concurrent `increment`
    calls on the same `(driver_id, aggregation_key)` lose no updates.
    """

    async def increment(
        self, driver_id: str, aggregation_key: str, amount: Decimal, now: datetime
    ) -> None:
        """
        Add `amount` to the bucket total, creating the row on first use.

        Parameters
        ----------
        driver_id : str
            Driver the aggregate belongs to.
        aggregation_key : str
            Bucket key, `DAY#YYYY-MM-DD` or `WEEK#YYYY-Www`.
        amount : Decimal
            Value to add; absence of a row counts as zero.
        now : datetime
            Written to `updated_at` always and to `created_at` only when the
            row is new.

        Raises
        ------
        StoreUnavailable
            Transient infrastructure failure.
        StoreRejected
            The medium refused the write for capacity or throttling reasons.
        """
        ...

    async def get(self, driver_id: str, aggregation_key: str) -> Optional[TipAggregate]:
        """Point lookup; returns None when no tip has landed in the bucket."""
        ...


class AbstractAggregateStore(abc.ABC):
    """
    Optional ABC helper for class-based stores.

    Subclasses implement `increment` and `get`; the day/week lookups come free.
    """

    @abc.abstractmethod
    async def increment(
        self, driver_id: str, aggregation_key: str, amount: Decimal, now: datetime
    ) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    async def get(
        self, driver_id: str, aggregation_key: str
    ) -> Optional[TipAggregate]:  # pragma: no cover - interface only
        raise NotImplementedError

    async def get_daily_total(self, driver_id: str, day: str) -> Optional[TipAggregate]:
        return await self.get(driver_id, DAY_PREFIX + day)

    async def get_weekly_total(self, driver_id: str, week: str) -> Optional[TipAggregate]:
        return await self.get(driver_id, WEEK_PREFIX + week)


@runtime_checkable
class DriverRepository(Protocol):
    async def find_by_id(self, driver_id: str) -> Optional[Driver]:
        ...

    async def create(self, driver: Driver) -> Driver:
        ...

    async def find_all(self) -> List[Driver]:
        ...


__all__ = [
    "AggregateStore",
    "AbstractAggregateStore",
    "DriverRepository",
    "partition_key",
]
