"""
Domain package for the driver tips service.

Exports the models and the exception hierarchy shared by repositories,
services and the HTTP layer. Keep this package free of I/O.
"""

from src.domain.exceptions import (
    DriverNotFoundError,
    NotFoundError,
    StoreError,
    StoreRejected,
    StoreUnavailable,
    TipsError,
    ValidationError,
)
from src.domain.models import CreateDriverRequest, Driver, DriverTips, TipAggregate, TipEvent

__all__ = [
    "CreateDriverRequest",
    "Driver",
    "DriverTips",
    "TipAggregate",
    "TipEvent",
    "DriverNotFoundError",
    "NotFoundError",
    "StoreError",
    "StoreRejected",
    "StoreUnavailable",
    "TipsError",
    "ValidationError",
]
