"""Base service logging mixin.

Services that mutate or verify signing state log every operation with
the same bound context: the service class, its component, the operation
name and the caller's correlation id.

Usage:
    from assent.application.services.base import LoggingMixin

    class MyService(LoggingMixin):
        def __init__(self, time_authority: TimeAuthorityProtocol) -> None:
            self._time = time_authority
            self._init_logger(component="signing")

        def do_something(self, agreement_id: str) -> None:
            log = self._log_operation("do_something", agreement_id=agreement_id)
            log.info("operation_started")
"""

import structlog

from assent.infrastructure.observability.correlation import get_correlation_id


class LoggingMixin:
    """Mixin providing structured logging for services.

    The logger is bound with:
    - service: The class name of the service
    - component: The component type (default: "signing")

    Each operation gets:
    - operation: The name of the operation being performed
    - correlation_id: From context, when the caller set one
    - Any additional context passed to _log_operation()

    Attributes:
        _log: The structlog BoundLogger for this service instance.
    """

    _log: structlog.BoundLogger

    def _init_logger(self, component: str = "signing") -> None:
        """Initialize the logger with service name binding.

        Should be called in __init__ after setting up dependencies.

        Args:
            component: The component type for log categorization.
        """
        self._log = structlog.get_logger().bind(
            service=self.__class__.__name__,
            component=component,
        )

    def _log_operation(
        self,
        operation: str,
        **context: object,
    ) -> structlog.BoundLogger:
        """Create operation-scoped logger with correlation ID.

        Args:
            operation: Name of the operation being performed.
            **context: Additional context to bind to the logger.

        Returns:
            BoundLogger with operation and correlation context.

        Example:
            log = self._log_operation("record_sign", agreement_id=agreement_id)
            log.info("signature_recorded", step=2)
        """
        correlation_id = get_correlation_id()
        if correlation_id:
            context["correlation_id"] = correlation_id
        return self._log.bind(operation=operation, **context)
