"""Observability infrastructure for structured logging and correlation.

This module provides cross-cutting observability concerns:
- Structured JSON logging with structlog
- Correlation and agreement context for every log entry

Usage:
    from assent.infrastructure.observability import (
        agreement_context,
        configure_structlog,
        set_correlation_id,
    )

    configure_structlog(environment="production")
    set_correlation_id(request_correlation_id)
"""

from assent.infrastructure.observability.correlation import (
    agreement_context,
    context_processor,
    generate_correlation_id,
    get_agreement_id,
    get_correlation_id,
    set_correlation_id,
)
from assent.infrastructure.observability.logging import (
    configure_structlog,
    redact_signing_secrets,
)

__all__: list[str] = [
    "agreement_context",
    "configure_structlog",
    "context_processor",
    "generate_correlation_id",
    "get_agreement_id",
    "get_correlation_id",
    "redact_signing_secrets",
    "set_correlation_id",
]
