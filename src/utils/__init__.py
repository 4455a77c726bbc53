"""
Utilities package for the driver tips service.

Exports shared helpers for logging and time bucketing. Keep this package
lightweight and free of I/O.
"""

from src.utils.logging import configure_logging, get_logger
from src.utils.time_buckets import day_bucket, day_key, to_iso, utc_now, week_bucket, week_key

__all__ = [
    "configure_logging",
    "get_logger",
    "day_bucket",
    "day_key",
    "to_iso",
    "utc_now",
    "week_bucket",
    "week_key",
]
