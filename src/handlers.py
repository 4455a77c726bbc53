"""
Queue entrypoint for tip events.

Accepts the delivery envelope used by the tip queue,
`{"Records": [{"messageId": ..., "body": ...}, ...]}`, and answers with the
partial-batch response `{"batchItemFailures": [{"itemIdentifier": ...}]}` so
that only failed messages are redelivered.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Mapping

from src.services.batch_consumer import BatchConsumer, BatchItem

BatchResponse = Dict[str, List[Dict[str, str]]]
TipEventHandler = Callable[[Mapping[str, Any]], Awaitable[BatchResponse]]


def records_to_items(event: Mapping[str, Any]) -> List[BatchItem]:
    """
    Extract `(messageId, body)` pairs from a delivery envelope.

    A record without a `body` is passed on as an empty payload so that it is
    reported as failed under its own id instead of breaking the batch.
    """
    items: List[BatchItem] = []
    for index, record in enumerate(event.get("Records") or []):
        message_id = str(record.get("messageId") or f"record-{index}")
        items.append((message_id, record.get("body", "")))
    return items


def make_tip_event_handler(consumer: BatchConsumer) -> TipEventHandler:
    """Bind a handler to an already-wired consumer."""

    async def handle_tip_event(event: Mapping[str, Any]) -> BatchResponse:
        report = await consumer.consume(records_to_items(event))
        return report.to_response()

    return handle_tip_event


__all__ = ["BatchResponse", "TipEventHandler", "make_tip_event_handler", "records_to_items"]
