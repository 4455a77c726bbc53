"""
Read path for a driver's current tip totals.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Callable, Optional

from src.domain.exceptions import DriverNotFoundError
from src.domain.models import DriverTips
from src.repositories.abstract import AggregateStore, DriverRepository
from src.utils.time_buckets import day_key, utc_now, week_key


class TipQueryService:
    """
    Fetches today's and this week's aggregates for a driver.

    Bucket keys come from the same functions the consumer writes with, so a
    tip applied "now" is visible in the buckets queried "now".
    """

    def __init__(
        self,
        drivers: DriverRepository,
        store: AggregateStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.drivers = drivers
        self.store = store
        self._clock = clock

    async def get_driver_tips(self, driver_id: str, now: Optional[datetime] = None) -> DriverTips:
        """
        Raises
        ------
        DriverNotFoundError
            If the driver does not exist; no aggregate is read in that case.
        """
        if await self.drivers.find_by_id(driver_id) is None:
            raise DriverNotFoundError(driver_id)

        now = now or self._clock()
        daily, weekly = await asyncio.gather(
            self.store.get(driver_id, day_key(now)),
            self.store.get(driver_id, week_key(now)),
        )
        return DriverTips(daily=daily, weekly=weekly)


__all__ = ["TipQueryService"]
