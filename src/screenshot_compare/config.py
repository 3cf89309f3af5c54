"""Pydantic settings for the screenshot comparison engine."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TextIO

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine configuration loaded from environment variables."""

    model_config = {"env_prefix": "SCREENSHOT_"}

    worker_timeout_seconds: float = 2.5
    worker_python: str = ""  # empty -> the running interpreter
    pixelmatch_threshold: float = 0.1
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()


def configure_logging(settings: Settings, stream: TextIO | None = None) -> None:
    """Configure root logging from *settings*.

    Worker processes pass ``sys.stderr`` because stdout carries the reply.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=stream,
    )
