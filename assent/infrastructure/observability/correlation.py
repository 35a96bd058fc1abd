"""Correlation and agreement context for structured logs.

This module keeps two context variables:
- correlation_id: ties together every log line of one caller request
- agreement_id: the agreement whose workflow is being mutated

Both survive async boundaries (contextvars) and are injected into every
log entry by context_processor.

Usage:
    # At request start
    set_correlation_id(request_id or generate_correlation_id())

    # Inside the per-agreement exclusive section
    with agreement_context(agreement_id):
        engine.record_sign(...)

    # In structlog configuration
    processors = [..., context_processor, ...]
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any
from uuid import uuid4

# Empty string means "not set"
_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")
_agreement_id: ContextVar[str] = ContextVar("agreement_id", default="")


def generate_correlation_id() -> str:
    """Generate a new correlation ID (UUID4)."""
    return str(uuid4())


def get_correlation_id() -> str:
    """Get the current correlation ID, or an empty string if not set."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID in the current context."""
    _correlation_id.set(correlation_id)


def get_agreement_id() -> str:
    """Get the agreement bound to the current context, or an empty string."""
    return _agreement_id.get()


@contextmanager
def agreement_context(agreement_id: str) -> Iterator[None]:
    """Bind an agreement id to every log entry emitted inside the block.

    The previous value is restored on exit, so contexts nest.
    """
    token = _agreement_id.set(agreement_id)
    try:
        yield
    finally:
        _agreement_id.reset(token)


def context_processor(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor adding correlation_id and agreement_id.

    Values explicitly passed to the log call win over context values.

    Args:
        logger: The logger instance (unused, required by structlog).
        method_name: The logging method name (unused, required by structlog).
        event_dict: The event dictionary to modify.

    Returns:
        The event dictionary with context fields added.
    """
    correlation_id = get_correlation_id()
    if correlation_id:
        event_dict.setdefault("correlation_id", correlation_id)
    agreement_id = get_agreement_id()
    if agreement_id:
        event_dict.setdefault("agreement_id", agreement_id)
    return event_dict
