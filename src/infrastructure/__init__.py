"""
Infrastructure package for the driver tips service.

Centralizes database connectivity concerns (pool creation, schema, error
translation and retry policy). Keep this layer focused on I/O and resource
management, decoupled from service logic.
"""

from src.infrastructure.db_factory import (
    build_dsn,
    create_async_pool,
    ensure_schema,
    open_pool,
    store_retrying,
    translate_errors,
)

__all__ = [
    "build_dsn",
    "create_async_pool",
    "ensure_schema",
    "open_pool",
    "store_retrying",
    "translate_errors",
]
