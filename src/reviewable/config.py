# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Reviewable Contributors

import logging
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from ``REVIEWABLE_*`` environment variables."""

    database_url: str = "sqlite+aiosqlite:///./reviewable.db"
    database_echo: bool = False
    log_level: str = "info"

    # Default for is_reviewable(accept_ip=...) when not given explicitly.
    default_accept_ip: bool = False
    # How many times a review insert that lost a uniqueness race is retried
    # as an update before giving up.
    upsert_retries: int = 3

    model_config = {"env_prefix": "REVIEWABLE_", "env_file": ".env", "extra": "ignore"}

    @field_validator("upsert_retries")
    @classmethod
    def _validate_upsert_retries(cls, value: int) -> int:
        if value < 0:
            raise ValueError("upsert_retries must not be negative")
        return value


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance. Lazy-loaded to avoid import-time failures."""
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Apply the configured log level to the package logger."""
    settings = settings or get_settings()
    logging.getLogger("reviewable").setLevel(settings.log_level.upper())
