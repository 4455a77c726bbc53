"""
Batch consumer for queued tip events.

Each delivered item is its own failure domain: it is decoded, validated and
applied independently, and whatever goes wrong is recorded as that item's
outcome instead of escaping into the rest of the batch. The caller (the queue
delivery integration) receives the ids to redeliver.

Usage:
    consumer = BatchConsumer(TipEventProcessor(store), concurrency=10)
    failed = await consumer.process_batch([("msg-1", '{"driverId": ...}')])
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from src.domain.exceptions import ValidationError
from src.domain.models import TipEvent
from src.services.tip_processor import TipEventProcessor
from src.utils.logging import get_logger

log = get_logger(__name__)

RawPayload = Union[str, bytes, Dict[str, Any]]
BatchItem = Tuple[str, RawPayload]


class ItemStatus(str, Enum):
    APPLIED = "applied"
    PARSE_FAILED = "parse_failed"
    INVALID = "invalid"
    PROCESSING_FAILED = "processing_failed"


@dataclass(frozen=True)
class ItemOutcome:
    item_id: str
    status: ItemStatus
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is ItemStatus.APPLIED


@dataclass
class BatchReport:
    """Per-item outcomes of one batch, in delivery order."""

    outcomes: List[ItemOutcome] = field(default_factory=list)

    @property
    def failed_ids(self) -> Set[str]:
        return {o.item_id for o in self.outcomes if not o.ok}

    @property
    def applied_count(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    def to_response(self) -> Dict[str, List[Dict[str, str]]]:
        """Partial-batch response understood by the queue integration."""
        seen: Set[str] = set()
        failures: List[Dict[str, str]] = []
        for outcome in self.outcomes:
            if outcome.ok or outcome.item_id in seen:
                continue
            seen.add(outcome.item_id)
            failures.append({"itemIdentifier": outcome.item_id})
        return {"batchItemFailures": failures}


def _decode(raw: RawPayload) -> Any:
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    if not isinstance(raw, str):
        raise TypeError(f"unsupported payload type {type(raw).__name__}")
    return json.loads(raw)


class BatchConsumer:
    """
    Drives a batch of raw tip events through the processor.

    Items run concurrently, at most `concurrency` at a time. The batch size is
    whatever the delivery system hands over; it is not capped here.
    """

    def __init__(self, processor: TipEventProcessor, concurrency: int = 10) -> None:
        self.processor = processor
        self.concurrency = concurrency

    async def process_batch(self, items: Sequence[BatchItem]) -> Set[str]:
        """Apply every item and return the ids that must be redelivered."""
        report = await self.consume(items)
        return report.failed_ids

    async def consume(self, items: Iterable[BatchItem]) -> BatchReport:
        items = list(items)
        log.info("[BATCH START]", extra={"items": len(items), "concurrency": self.concurrency})
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _bounded(item_id: str, raw: RawPayload) -> ItemOutcome:
            async with semaphore:
                return await self._process_item(item_id, raw)

        outcomes = await asyncio.gather(*(_bounded(item_id, raw) for item_id, raw in items))
        report = BatchReport(outcomes=list(outcomes))
        log.info(
            "[BATCH COMPLETE]",
            extra={
                "items": len(items),
                "applied": report.applied_count,
                "failed": len(report.failed_ids),
            },
        )
        return report

    async def _process_item(self, item_id: str, raw: RawPayload) -> ItemOutcome:
        try:
            return await self._apply_item(item_id, raw)
        except Exception as exc:  # noqa: BLE001
            log.exception(
                f"[ITEM FAILED] unexpected error for message {item_id}",
                extra={"item_id": item_id},
            )
            return ItemOutcome(item_id, ItemStatus.PROCESSING_FAILED, f"{type(exc).__name__}: {exc}")

    async def _apply_item(self, item_id: str, raw: RawPayload) -> ItemOutcome:
        try:
            payload = _decode(raw)
        except (ValueError, TypeError, RecursionError) as exc:
            log.error(
                f"[ITEM FAILED] could not decode message {item_id}",
                extra={"item_id": item_id, "error": str(exc)},
            )
            return ItemOutcome(item_id, ItemStatus.PARSE_FAILED, str(exc))

        try:
            event = TipEvent.parse_payload(payload)
        except ValidationError as exc:
            log.error(
                f"[ITEM FAILED] validation failed for message {item_id}",
                extra={"item_id": item_id, "errors": exc.details},
            )
            return ItemOutcome(item_id, ItemStatus.INVALID, str(exc))

        try:
            await self.processor.apply_tip(event)
        except Exception as exc:  # noqa: BLE001
            log.exception(
                f"[ITEM FAILED] could not apply tip for message {item_id}",
                extra={"item_id": item_id, "driver_id": event.driver_id},
            )
            return ItemOutcome(item_id, ItemStatus.PROCESSING_FAILED, f"{type(exc).__name__}: {exc}")

        log.info(
            f"[ITEM APPLIED] tip for driver {event.driver_id}, amount: {event.amount}",
            extra={"item_id": item_id, "driver_id": event.driver_id},
        )
        return ItemOutcome(item_id, ItemStatus.APPLIED)


__all__ = [
    "BatchConsumer",
    "BatchItem",
    "BatchReport",
    "ItemOutcome",
    "ItemStatus",
    "RawPayload",
]
