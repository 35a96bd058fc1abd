"""Bootstrap wiring for logging configuration."""

from __future__ import annotations

import os

from assent.infrastructure.observability import configure_structlog

ENVIRONMENT_ENV = "ASSENT_ENV"


def configure_logging(environment: str | None = None, level: str | None = None) -> None:
    """Configure structlog for the given environment.

    Falls back to ASSENT_ENV, then to "production" (JSON output). The
    level falls back to LOG_LEVEL, then INFO.
    """
    configure_structlog(
        environment=environment or os.getenv(ENVIRONMENT_ENV, "production"),
        level=level,
    )


__all__ = ["configure_logging"]
