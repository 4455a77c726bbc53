"""
Applies a validated tip event to its day and week aggregates.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Callable

from src.domain.models import TipEvent
from src.repositories.abstract import AggregateStore
from src.utils.logging import get_logger
from src.utils.time_buckets import day_key, utc_now, week_key

log = get_logger(__name__)


class TipEventProcessor:
    """
    Routes one tip into two independent bucket increments.

    Both increments are issued concurrently and both are awaited before the
    outcome is decided. If either fails the event fails as a whole and must be
    redelivered; the bucket that did succeed keeps its increment (at-least-once).
    """

    def __init__(self, store: AggregateStore, clock: Callable[[], datetime] = utc_now) -> None:
        self.store = store
        self._clock = clock

    async def apply_tip(self, event: TipEvent) -> None:
        now = self._clock()
        keys = (day_key(event.event_time), week_key(event.event_time))

        results = await asyncio.gather(
            *(self.store.increment(event.driver_id, key, event.amount, now) for key in keys),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            applied = [k for k, r in zip(keys, results) if not isinstance(r, BaseException)]
            log.warning(
                "[TIP PARTIAL] %d of %d bucket updates failed",
                len(failures),
                len(keys),
                extra={"driver_id": event.driver_id, "applied_keys": applied},
            )
            raise failures[0]

        log.debug(
            "[TIP APPLIED]",
            extra={"driver_id": event.driver_id, "amount": str(event.amount), "keys": list(keys)},
        )


__all__ = ["TipEventProcessor"]
