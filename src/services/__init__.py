"""
Services package for the driver tips service.

Business logic lives here and talks to storage only through the repository
interfaces it is constructed with.
"""

from src.services.batch_consumer import (
    BatchConsumer,
    BatchReport,
    ItemOutcome,
    ItemStatus,
)
from src.services.driver_service import DriverService
from src.services.tip_processor import TipEventProcessor
from src.services.tip_query import TipQueryService

__all__ = [
    "BatchConsumer",
    "BatchReport",
    "ItemOutcome",
    "ItemStatus",
    "DriverService",
    "TipEventProcessor",
    "TipQueryService",
]
