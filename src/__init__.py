"""
Driver Tips - tip aggregation service for ride-hailing drivers.

Consumes tip events from a queue and maintains per-driver daily and weekly
totals, exposed together with driver records through a small HTTP API:

- Time bucketing of event timestamps into day/week keys
- Atomic, concurrency-safe aggregate counters (PostgreSQL upsert or in-memory)
- Per-event processing into both buckets
- Batch consumption with per-item failure isolation and partial-batch responses
- Current day/week tip queries per driver
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from src.config import Settings, get_settings
from src.container import Container, build_container, container_scope, wire
from src.domain import (
    DriverNotFoundError,
    DriverTips,
    StoreRejected,
    StoreUnavailable,
    TipAggregate,
    TipEvent,
    ValidationError,
)
from src.repositories import AggregateStore, InMemoryAggregateStore, PostgresAggregateStore
from src.services import BatchConsumer, BatchReport, TipEventProcessor, TipQueryService
from src.utils.logging import configure_logging, get_logger
from src.utils.time_buckets import day_bucket, week_bucket

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Composition
    "Container",
    "build_container",
    "container_scope",
    "wire",
    # Domain
    "DriverNotFoundError",
    "DriverTips",
    "StoreRejected",
    "StoreUnavailable",
    "TipAggregate",
    "TipEvent",
    "ValidationError",
    # Storage
    "AggregateStore",
    "InMemoryAggregateStore",
    "PostgresAggregateStore",
    # Services
    "BatchConsumer",
    "BatchReport",
    "TipEventProcessor",
    "TipQueryService",
    # Bucketing
    "day_bucket",
    "week_bucket",
    # Logging
    "configure_logging",
    "get_logger",
]
