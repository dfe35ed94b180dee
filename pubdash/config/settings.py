"""
Public dashboard settings.

Loaded from environment variables once per process:

    PUBLIC_DASHBOARDS_ENABLED       "true"/"false" (default true)
    PUBLIC_DASHBOARD_TOKEN_BYTES    entropy per access token (default 16)
    PUBLIC_DASHBOARD_TOKEN_ATTEMPTS token generate+insert attempts (default 2)
    PUBLIC_DASHBOARD_DEFAULT_FROM   fallback range start (default now-6h)
    PUBLIC_DASHBOARD_DEFAULT_TO     fallback range end (default now)

Usage:
    from pubdash.config.settings import get_settings

    settings = get_settings()
    if settings.enabled:
        ...
"""

import logging
import os
from functools import lru_cache

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


class PublicDashboardSettings(BaseModel):
    """Configuration for public dashboard access."""
    enabled: bool = True
    token_bytes: int = Field(16, ge=16, le=32)
    token_attempts: int = Field(2, ge=1, le=5)
    default_time_from: str = "now-6h"
    default_time_to: str = "now"

    @classmethod
    def from_env(cls) -> "PublicDashboardSettings":
        return cls(
            enabled=os.getenv("PUBLIC_DASHBOARDS_ENABLED", "true").lower() in _TRUTHY,
            token_bytes=int(os.getenv("PUBLIC_DASHBOARD_TOKEN_BYTES", "16")),
            token_attempts=int(os.getenv("PUBLIC_DASHBOARD_TOKEN_ATTEMPTS", "2")),
            default_time_from=os.getenv("PUBLIC_DASHBOARD_DEFAULT_FROM", "now-6h"),
            default_time_to=os.getenv("PUBLIC_DASHBOARD_DEFAULT_TO", "now"),
        )


@lru_cache(maxsize=1)
def get_settings() -> PublicDashboardSettings:
    """Return the process-wide settings, reading the environment on first call."""
    settings = PublicDashboardSettings.from_env()
    logger.info(
        "Public dashboard settings loaded",
        extra={
            "enabled": settings.enabled,
            "token_bytes": settings.token_bytes,
            "token_attempts": settings.token_attempts,
        },
    )
    return settings
