"""Unit tests for the service LoggingMixin."""

from __future__ import annotations

from structlog.testing import capture_logs

from assent.application.services.base import LoggingMixin
from assent.infrastructure.observability import set_correlation_id


class _Service(LoggingMixin):
    def __init__(self) -> None:
        self._init_logger(component="wallet")

    def run(self) -> None:
        self._log_operation("run", agreement_id="agr-1").info("ran")


class TestLoggingMixin:
    """Tests for bound service context."""

    def test_binds_service_component_and_operation(self) -> None:
        with capture_logs() as logs:
            _Service().run()

        (entry,) = logs
        assert entry["event"] == "ran"
        assert entry["service"] == "_Service"
        assert entry["component"] == "wallet"
        assert entry["operation"] == "run"
        assert entry["agreement_id"] == "agr-1"
        assert "correlation_id" not in entry

    def test_binds_correlation_id_when_set(self) -> None:
        set_correlation_id("req-42")
        try:
            with capture_logs() as logs:
                _Service().run()
        finally:
            set_correlation_id("")
        assert logs[0]["correlation_id"] == "req-42"
