"""structlog setup for signing workflows.

Every log line carries the correlation id and, inside an agreement
context, the agreement id. Values that could let a reader impersonate
a signer (verification codes, HMAC secrets, raw signature captures) are
replaced before rendering.

Production output is one JSON object per line:
    {"event": "signature_recorded", "level": "info",
     "timestamp": "2026-01-01T00:00:00Z", "correlation_id": "...",
     "agreement_id": "agr-123", "email": "ana@example.com", ...}

Usage:
    from assent.infrastructure.observability import configure_structlog

    configure_structlog(environment="development", level="DEBUG")
"""

import logging
import os
from collections.abc import MutableMapping
from typing import Any, Optional, cast

import structlog
from structlog.typing import Processor

from assent.infrastructure.observability.correlation import context_processor

LOG_LEVEL_ENV = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"

REDACTED = "[redacted]"

# Keys whose values never reach a log sink
SENSITIVE_KEYS = frozenset(
    {
        "code",
        "submitted_code",
        "signing_secret",
        "private_key",
        "signature_data",
        "signature_image",
    }
)


def redact_signing_secrets(
    _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Replace sensitive values in a log entry, including one level of nesting."""
    for key, value in list(event_dict.items()):
        if key in SENSITIVE_KEYS and value is not None:
            event_dict[key] = REDACTED
        elif isinstance(value, dict):
            event_dict[key] = {
                k: REDACTED if k in SENSITIVE_KEYS and v is not None else v
                for k, v in value.items()
            }
    return event_dict


def _resolve_level(level: Optional[str]) -> int:
    name = (level or os.getenv(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_structlog(
    environment: str = "production", level: Optional[str] = None
) -> None:
    """Configure structlog for the hosting process.

    Args:
        environment: "production" renders JSON; anything else renders
            coloured console output.
        level: Minimum level name. Falls back to LOG_LEVEL, then INFO.
            Unknown names resolve to INFO.
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        cast(Processor, context_processor),
        cast(Processor, redact_signing_secrets),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if environment == "production":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_resolve_level(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
