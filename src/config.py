"""
Configuration settings for the driver tips service.

Uses Pydantic Settings to load environment variables for database connections,
logging, storage selection, and consumer tuning. Components never read the
environment directly; they receive a `Settings` instance from the composition
root (see `src.container`).
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("driver_tips", alias="DB_NAME")
    db_statement_timeout_ms: int = Field(5_000, alias="DB_STATEMENT_TIMEOUT_MS")
    db_pool_min_size: int = Field(1, alias="DB_POOL_MIN_SIZE")
    db_pool_max_size: int = Field(10, alias="DB_POOL_MAX_SIZE")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")
    api_host: str = Field("127.0.0.1", alias="API_HOST")
    api_port: int = Field(8000, alias="API_PORT")

    # Storage
    storage_backend: Literal["postgres", "memory"] = Field("postgres", alias="STORAGE_BACKEND")
    tips_table: str = Field("driver_tip_aggregates", alias="TIPS_TABLE")
    drivers_table: str = Field("drivers", alias="DRIVERS_TABLE")

    # Tip consumer
    consumer_concurrency: int = Field(10, alias="CONSUMER_CONCURRENCY", ge=1)
    store_retry_attempts: int = Field(3, alias="STORE_RETRY_ATTEMPTS", ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
