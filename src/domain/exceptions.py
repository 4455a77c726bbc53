"""
Exception hierarchy for the driver tips service.

Services raise these typed errors and let them propagate; the batch consumer
turns them into per-item outcomes and the HTTP layer maps them to status codes.
"""

from __future__ import annotations

from typing import Any, Optional


class TipsError(Exception):
    """Base exception for the driver tips service"""


class ValidationError(TipsError):
    """Malformed or out-of-range input"""

    def __init__(self, message: str, details: Optional[list[dict[str, Any]]] = None) -> None:
        super().__init__(message)
        self.details = details or []


class NotFoundError(TipsError):
    """Referenced entity does not exist"""


class DriverNotFoundError(NotFoundError):
    def __init__(self, driver_id: str) -> None:
        super().__init__(f"Driver with id '{driver_id}' not found")
        self.driver_id = driver_id


class StoreError(TipsError):
    """Base exception for storage failures; always worth retrying later"""


class StoreUnavailable(StoreError):
    """Transient infrastructure failure (connection lost, failover, deadlock)"""


class StoreRejected(StoreError):
    """Storage refused the operation for capacity or throttling reasons"""


__all__ = [
    "TipsError",
    "ValidationError",
    "NotFoundError",
    "DriverNotFoundError",
    "StoreError",
    "StoreUnavailable",
    "StoreRejected",
]
