"""
Configuration management for querykit.

This module provides environment-based configuration using Pydantic BaseSettings
for the query logging pipeline: slow-query threshold and dispatch mode of the
query log channels.

Environment variables are loaded with the QUERYKIT_ prefix, optionally from a
``.env`` file in the project root (override its location with QUERYKIT_ENV_FILE).
"""

import logging
import os
from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Literal

import structlog
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)

# Determine project root for resolving .env by default
PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
ENV_FILE_OVERRIDE = os.getenv("QUERYKIT_ENV_FILE")
if ENV_FILE_OVERRIDE:
    env_file_candidate = Path(ENV_FILE_OVERRIDE).expanduser()
    if not env_file_candidate.is_absolute():
        env_file_candidate = PROJECT_ROOT / env_file_candidate
    SETTINGS_ENV_FILE = env_file_candidate
else:
    SETTINGS_ENV_FILE = DEFAULT_ENV_FILE


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    For example, QUERYKIT_SLOW_QUERY_THRESHOLD_MS=250 lowers the slow-query
    threshold to a quarter of a second.

    Fields:
    - LOG_LEVEL: Level of the package's own diagnostic logging
    - SLOW_QUERY_THRESHOLD_MS: Queries at or above this duration hit the slow channel
    - LOG_ASYNC: Dispatch query log records on a background worker
    - LOG_QUEUE_SIZE: Capacity of the background worker queue
    - LOG_QUEUE_POLICY: What to do when the queue is full ("block" or "drop")
    - ERROR_LOG_TO_STDERR: Attach stderr as the error channel sink by default
    """

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (uppercase)",
    )
    SLOW_QUERY_THRESHOLD_MS: int = Field(
        default=1000,
        description="Slow query threshold in milliseconds",
    )
    LOG_ASYNC: bool = Field(
        default=False,
        description="Write query logs from a background worker thread",
    )
    LOG_QUEUE_SIZE: int = Field(
        default=1000,
        description="Maximum number of query log records waiting for the worker",
    )
    LOG_QUEUE_POLICY: Literal["block", "drop"] = Field(
        default="block",
        description="Behaviour when the query log queue is full",
    )
    ERROR_LOG_TO_STDERR: bool = Field(
        default=True,
        description="Attach stderr to the error channel of new handles",
    )

    @model_validator(mode="after")
    def validate_logging_settings(self) -> "Settings":
        """Normalize the log level and reject impossible thresholds."""
        self.LOG_LEVEL = self.LOG_LEVEL.upper()
        if not isinstance(logging.getLevelName(self.LOG_LEVEL), int):
            raise ValueError(f"Unknown LOG_LEVEL: {self.LOG_LEVEL}")
        if self.SLOW_QUERY_THRESHOLD_MS < 0:
            raise ValueError("SLOW_QUERY_THRESHOLD_MS must be >= 0")
        if self.LOG_QUEUE_SIZE < 1:
            raise ValueError("LOG_QUEUE_SIZE must be >= 1")
        return self

    @property
    def slow_query_threshold(self) -> timedelta:
        """Slow query threshold as a timedelta."""
        return timedelta(milliseconds=self.SLOW_QUERY_THRESHOLD_MS)

    model_config = SettingsConfigDict(
        env_prefix="QUERYKIT_",
        env_file=str(SETTINGS_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are loaded once and reused across
    the application lifecycle.

    Returns:
        Settings instance with loaded configuration
    """
    settings = Settings()
    logger.debug(
        "configuration.loaded",
        slow_query_threshold_ms=settings.SLOW_QUERY_THRESHOLD_MS,
        log_async=settings.LOG_ASYNC,
    )
    return settings
