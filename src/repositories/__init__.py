"""
Repositories package for the driver tips service.

Re-exports the storage interfaces and the concrete backends so downstream code
can import from `src.repositories` directly.
"""

from src.repositories.abstract import (
    AbstractAggregateStore,
    AggregateStore,
    DriverRepository,
    partition_key,
)
from src.repositories.memory import InMemoryAggregateStore, InMemoryDriverRepository
from src.repositories.postgres import PostgresAggregateStore, PostgresDriverRepository

__all__ = [
    # Interfaces
    "AbstractAggregateStore",
    "AggregateStore",
    "DriverRepository",
    "partition_key",
    # Backends
    "InMemoryAggregateStore",
    "InMemoryDriverRepository",
    "PostgresAggregateStore",
    "PostgresDriverRepository",
]
